"""Base discovery service interfaces."""

from abc import ABC, abstractmethod
from typing import List, Optional, Protocol, runtime_checkable
import structlog

from k8s_discovery.config.settings import Settings
from k8s_discovery.models.discovery_models import ContainerInfo, ServiceInfo

logger = structlog.get_logger(__name__)


@runtime_checkable
class ContainerFinder(Protocol):
    """Finds running containers on the node."""

    def find_containers(self, namespaces: Optional[List[str]] = None) -> List[ContainerInfo]:
        ...


@runtime_checkable
class ServiceFinder(Protocol):
    """Finds services in the cluster."""

    def find_services(self, namespaces: Optional[List[str]] = None) -> List[ServiceInfo]:
        ...


class BaseDiscoveryService(ABC):
    """Abstract base class for all discovery services."""

    def __init__(self, client, settings: Settings):
        self.client = client
        self.settings = settings
        self.cluster_name = settings.cluster_name
        self.node_name = settings.node_name
        self.logger = logger.bind(service=self.__class__.__name__, discovery_type=self.get_discovery_type())

    @abstractmethod
    def get_discovery_type(self) -> str:
        """Get the type of discovery this service performs."""
        pass
