from .kubelet import DefaultConnector, KubeletHttpClient, StaticConnector
from .kubernetes import KubernetesClient, KubernetesClientFactory

__all__ = [
    "DefaultConnector",
    "KubeletHttpClient",
    "StaticConnector",
    "KubernetesClient",
    "KubernetesClientFactory",
]
