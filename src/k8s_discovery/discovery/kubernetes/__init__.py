"""Kubernetes discovery services."""

from .container_discovery import KubeletContainerDiscovery
from .service_discovery import KubernetesServiceDiscovery

__all__ = [
    "KubeletContainerDiscovery",
    "KubernetesServiceDiscovery",
]
