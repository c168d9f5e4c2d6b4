"""Discovery services."""

from .base import BaseDiscoveryService, ContainerFinder, ServiceFinder
from .discoverer import Discoverer
from .kubernetes import KubeletContainerDiscovery, KubernetesServiceDiscovery

__all__ = [
    "BaseDiscoveryService",
    "ContainerFinder",
    "ServiceFinder",
    "Discoverer",
    "KubeletContainerDiscovery",
    "KubernetesServiceDiscovery",
]
