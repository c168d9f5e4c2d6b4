# src/k8s_discovery/clients/kubernetes/client_factory.py
"""Kubernetes client factory."""

from pathlib import Path
from typing import Optional
import structlog
from kubernetes import client, config
from kubernetes.config.config_exception import ConfigException

from k8s_discovery.config.settings import Settings
from k8s_discovery.core.exceptions import ClientConnectionException
from .k8s_client import KubernetesClient

logger = structlog.get_logger(__name__)

DEFAULT_KUBECONFIG = Path.home() / ".kube" / "config"


class KubernetesClientFactory:
    """Factory for creating Kubernetes clients.

    The in-cluster service account is tried first, then the kubeconfig file
    from the settings or ``~/.kube/config``.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.kubeconfig_path = settings.kubeconfig
        self.logger = logger.bind(factory="kubernetes")

    def load_configuration(self) -> client.Configuration:
        """Load the API server configuration, credentials included."""
        configuration = client.Configuration()
        try:
            config.load_incluster_config(client_configuration=configuration)
            self.logger.debug("Loaded in cluster configuration")
            return configuration
        except ConfigException as e:
            self.logger.warning("collecting in cluster config failed", error=str(e))

        kubeconfig = self.kubeconfig_path or str(DEFAULT_KUBECONFIG)
        configuration = client.Configuration()
        try:
            config.load_kube_config(config_file=kubeconfig, client_configuration=configuration)
        except (ConfigException, OSError) as e:
            raise ClientConnectionException("Kubernetes config", f"could not load local kube config: {e}") from e

        self.logger.warning("using local kube config", kubeconfig=kubeconfig)
        return configuration

    def create_client(self, configuration: Optional[client.Configuration] = None) -> KubernetesClient:
        """Create a connected Kubernetes client."""
        k8s_client = KubernetesClient(
            configuration=configuration or self.load_configuration(),
            cluster_name=self.settings.cluster_name,
        )
        k8s_client.connect()
        return k8s_client
