# src/k8s_discovery/discovery/discoverer.py
"""Discoverer coordinating one discovery run."""

from typing import List, Optional
import structlog

from k8s_discovery.core.exceptions import ConfigurationException
from k8s_discovery.discovery.base import ContainerFinder, ServiceFinder
from k8s_discovery.mappers.discovery_mapper import DiscoveryMapper
from k8s_discovery.models.discovery_models import DiscoveredItem

logger = structlog.get_logger(__name__)


class Discoverer:
    """
    Runs either container discovery (default) or service discovery and maps
    the records into output items, keeping the order of the upstream listing.
    """

    def __init__(
        self,
        namespaces: Optional[List[str]],
        kubelet: Optional[ContainerFinder],
        discover_services: bool = False,
        service_discoverer: Optional[ServiceFinder] = None,
        mapper: Optional[DiscoveryMapper] = None,
    ):
        self.namespaces = list(namespaces or [])
        self.kubelet = kubelet
        self.discover_services = discover_services
        self.service_discoverer = service_discoverer
        self.mapper = mapper or DiscoveryMapper()
        self.logger = logger.bind(component="discoverer", discover_services=discover_services)

    def run(self) -> List[DiscoveredItem]:
        """Execute one discovery run."""
        if not self.discover_services:
            if self.kubelet is None:
                raise ConfigurationException("kubelet client not configured")
            containers = self.kubelet.find_containers(self.namespaces)
            return self.mapper.map_containers(containers)

        if self.service_discoverer is None:
            raise ConfigurationException("service discoverer not configured but discover-services flag is set")
        services = self.service_discoverer.find_services(self.namespaces)
        return self.mapper.map_services(services)
