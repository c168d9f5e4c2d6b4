# src/k8s_discovery/clients/kubernetes/k8s_client.py
"""Kubernetes API client limited to what kubelet discovery needs."""

from typing import List, Optional
import structlog
import urllib3
from kubernetes import client
from kubernetes.client.rest import ApiException

from k8s_discovery.core.exceptions import ClientConnectionException, DiscoveryException

logger = structlog.get_logger(__name__)

NODE_PROXY_PATH = "/api/v1/nodes/{node_name}/proxy/"


class KubernetesClient:
    """Kubernetes client wrapping CoreV1Api for nodes and services."""

    def __init__(self,
                 configuration: client.Configuration,
                 cluster_name: Optional[str] = None,
                 core_v1: Optional[client.CoreV1Api] = None):
        self.configuration = configuration
        self.cluster_name = cluster_name or "unknown"
        self.v1 = core_v1
        self.logger = logger.bind(client="KubernetesClient")

    @property
    def is_connected(self) -> bool:
        return self.v1 is not None

    @property
    def host(self) -> str:
        """API server base URL, e.g. ``https://10.0.0.1:443``."""
        return self.configuration.host.rstrip("/")

    def connect(self) -> None:
        """Build the API clients from the loaded configuration."""
        if self.v1 is not None:
            return
        try:
            self.v1 = client.CoreV1Api(client.ApiClient(self.configuration))
            self.logger.debug("Kubernetes client ready", host=self.configuration.host)
        except Exception as e:
            raise ClientConnectionException("Kubernetes", f"building API client: {e}") from e

    def node_proxy_url(self, node_name: str) -> str:
        """Base URL reaching the kubelet of ``node_name`` through the API server."""
        return self.host + NODE_PROXY_PATH.format(node_name=node_name)

    def get_kubelet_port(self, node_name: str) -> int:
        """Read the kubelet port advertised in the Node status."""
        self.connect()
        try:
            node = self.v1.read_node(node_name)
        except (ApiException, urllib3.exceptions.HTTPError) as e:
            raise DiscoveryException("node", f"getting node {node_name!r}: {_reason(e)}") from e

        endpoints = node.status.daemon_endpoints if node.status else None
        kubelet_endpoint = endpoints.kubelet_endpoint if endpoints else None
        if not kubelet_endpoint or not kubelet_endpoint.port:
            raise DiscoveryException("node", f"node {node_name!r} does not advertise a kubelet port")

        self.logger.debug("Kubelet port found in node status", node=node_name, port=kubelet_endpoint.port)
        return kubelet_endpoint.port

    def list_services(self, namespaces: Optional[List[str]] = None) -> List[client.V1Service]:
        """List services across all namespaces, or per requested namespace.

        Any failing call aborts the whole listing.
        """
        self.connect()
        if not namespaces:
            try:
                return list(self.v1.list_service_for_all_namespaces().items)
            except (ApiException, urllib3.exceptions.HTTPError) as e:
                raise DiscoveryException("services", f"failed to list services: {_reason(e)}") from e

        services = []
        for namespace in namespaces:
            try:
                services.extend(self.v1.list_namespaced_service(namespace).items)
            except (ApiException, urllib3.exceptions.HTTPError) as e:
                raise DiscoveryException(
                    "services",
                    f"failed to list services in namespace {namespace}: {_reason(e)}",
                    {"namespace": namespace}
                ) from e

        self.logger.info(f"Listed {len(services)} services", namespaces=namespaces)
        return services


def _reason(error: Exception) -> str:
    if isinstance(error, ApiException):
        return f"{error.status} {error.reason}"
    return str(error)
