"""Service discovery through the Kubernetes API."""

from typing import List, Optional

from kubernetes.client import V1Service, V1ServicePort, V1ServiceSpec

from k8s_discovery.clients.kubernetes.k8s_client import KubernetesClient
from k8s_discovery.config.settings import Settings
from k8s_discovery.discovery.base import BaseDiscoveryService
from k8s_discovery.models.discovery_models import ServiceInfo, ServicePortInfo


class KubernetesServiceDiscovery(BaseDiscoveryService):
    """Lists services from the API server, not from the kubelet."""

    def __init__(self, k8s_client: KubernetesClient, settings: Settings):
        super().__init__(k8s_client, settings)

    def get_discovery_type(self) -> str:
        return "kubernetes_services"

    def find_services(self, namespaces: Optional[List[str]] = None) -> List[ServiceInfo]:
        """Services in ``namespaces`` (all when empty); fails on the first failing call."""
        services = transform_services(self.cluster_name, self.client.list_services(namespaces))
        self.logger.info(f"Discovered {len(services)} services", namespaces=namespaces or "all")
        return services


def transform_services(cluster_name: str, services: List[V1Service]) -> List[ServiceInfo]:
    result = []
    for service in services:
        metadata = service.metadata
        spec = service.spec
        result.append(ServiceInfo(
            name=metadata.name,
            namespace=metadata.namespace or "",
            type=spec.type or "",
            cluster_ip=spec.cluster_ip or "",
            external_ips=external_ips(spec),
            ports=[transform_port(port) for port in (spec.ports or [])],
            selector=spec.selector or {},
            labels=metadata.labels or {},
            annotations=metadata.annotations or {},
            cluster=cluster_name,
        ))
    return result


def external_ips(spec: V1ServiceSpec) -> List[str]:
    # kubernetes-client 36 renamed external_i_ps to external_ips
    value = getattr(spec, "external_ips", None)
    if value is None:
        value = getattr(spec, "external_i_ps", None)
    return list(value or [])


def transform_port(port: V1ServicePort) -> ServicePortInfo:
    # target_port is an int-or-string, named ports stay names
    target_port = "" if port.target_port is None else str(port.target_port)
    return ServicePortInfo(
        name=port.name or "",
        port=port.port,
        target_port=target_port,
        protocol=port.protocol or "",
        node_port=port.node_port or None,
    )
