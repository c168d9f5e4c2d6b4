"""Container discovery through the kubelet pod listing."""

from typing import List, Optional

from pydantic import ValidationError

from k8s_discovery.clients.kubelet.http_client import KubeletHttpClient
from k8s_discovery.config.settings import Settings
from k8s_discovery.core.exceptions import DecodeException, DiscoveryException, KubeletHttpError
from k8s_discovery.discovery.base import BaseDiscoveryService
from k8s_discovery.models.discovery_models import ContainerInfo, PortsMap
from k8s_discovery.models.kubelet_models import ContainerSpec, Pod, PodList

PODS_PATH = "/pods"


class KubeletContainerDiscovery(BaseDiscoveryService):
    """Lists running containers of running pods from the local kubelet."""

    def __init__(self, http_client: KubeletHttpClient, settings: Settings):
        super().__init__(http_client, settings)

    def get_discovery_type(self) -> str:
        return "kubelet_containers"

    def find_containers(self, namespaces: Optional[List[str]] = None) -> List[ContainerInfo]:
        """Running containers of running pods in ``namespaces`` (all when empty)."""
        pods = filter_by_namespace(self.get_pods(), namespaces)
        containers = get_containers(self.cluster_name, self.node_name, pods)
        self.logger.info(f"Discovered {len(containers)} containers", pods=len(pods), namespaces=namespaces or "all")
        return containers

    def get_pods(self) -> List[Pod]:
        try:
            response = self.client.get(PODS_PATH)
        except KubeletHttpError as e:
            raise DiscoveryException("pod listing", f"failed to execute request against kubelet: {e}") from e

        try:
            return PodList.model_validate_json(response.content).items
        except ValidationError as e:
            raise DecodeException(
                f"failed to unmarshal kubelet response into a list of pods: {e.error_count()} errors",
                {"errors": e.errors(include_url=False)}
            ) from e
        finally:
            response.close()


def filter_by_namespace(pods: List[Pod], namespaces: Optional[List[str]]) -> List[Pod]:
    if not namespaces:
        return list(pods)
    wanted = set(namespaces)
    return [pod for pod in pods if pod.metadata.namespace in wanted]


def get_containers(cluster_name: str, node_name: str, pods: List[Pod]) -> List[ContainerInfo]:
    containers = []
    for pod in pods:
        if not pod.is_running:
            continue

        for status in pod.status.container_statuses:
            if not status.is_running:
                continue

            containers.append(ContainerInfo(
                name=status.name,
                id=status.container_id,
                image=status.image,
                image_id=status.image_id,
                ports=get_ports(pod.container_spec(status.name)),
                pod_labels=pod.metadata.labels,
                pod_annotations=pod.metadata.annotations,
                pod_ip=pod.status.pod_ip,
                pod_name=pod.metadata.name,
                node_name=node_name,
                node_ip=pod.status.host_ip,
                namespace=pod.metadata.namespace,
                cluster=cluster_name,
            ))
    return containers


def get_ports(container: Optional[ContainerSpec]) -> PortsMap:
    """Ports by position and, when declared, by name."""
    ports: PortsMap = {}
    if container is None:
        return ports
    for index, port in enumerate(container.ports):
        ports[str(index)] = port.container_port
        if port.name:
            ports[port.name] = port.container_port
    return ports
