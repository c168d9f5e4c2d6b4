"""
Property mapper
Turns discovered containers and services into the items consumed by the
monitoring agent: the variables used for templating, the metric annotations
attached to samples, and the entity rewrite rule.
"""

from typing import Iterable, List, Optional
import structlog

from k8s_discovery.models.discovery_models import (
    ContainerInfo, DiscoveredItem, Replacement, ServiceInfo, VariablesMap
)

logger = structlog.get_logger(__name__)

# Variable names
LABEL_PREFIX = "label."
ANNOTATION_PREFIX = "annotation."
CLUSTER = "clusterName"
NAMESPACE = "namespace"
NODE_IP = "nodeIP"
NODE_NAME = "nodeName"
POD_NAME = "podName"
IMAGE = "image"
NAME = "name"
ID = "id"
IP = "ip"
PORTS = "ports"
SERVICE_NAME = "serviceName"
SERVICE_TYPE = "serviceType"
CLUSTER_IP = "clusterIP"
EXTERNAL_IPS = "externalIPs"

ENTITY_REWRITE_ACTION_REPLACE = "replace"
CONTAINER_ENTITY_MATCH = "${" + IP + "}"
CONTAINER_ENTITY_REPLACE_FIELD = "k8s:${clusterName}:${namespace}:pod:${podName}:${name}"
SERVICE_ENTITY_MATCH = "${" + CLUSTER_IP + "}"
SERVICE_ENTITY_REPLACE_FIELD = "k8s:${clusterName}:${namespace}:service:${serviceName}"

# Keys never attached to metrics, besides annotations.
CONTAINER_ANNOTATION_EXCLUSIONS = (ID, IP, NODE_IP, PORTS)
SERVICE_ANNOTATION_EXCLUSIONS = (ID, IP, NODE_IP)


class DiscoveryMapper:
    """Maps discovery records to output items."""

    def __init__(
        self,
        container_exclusions: Optional[Iterable[str]] = None,
        service_exclusions: Optional[Iterable[str]] = None,
    ):
        self.container_exclusions = frozenset(
            CONTAINER_ANNOTATION_EXCLUSIONS if container_exclusions is None else container_exclusions
        )
        self.service_exclusions = frozenset(
            SERVICE_ANNOTATION_EXCLUSIONS if service_exclusions is None else service_exclusions
        )
        self.logger = logger.bind(component="discovery_mapper")

    def map_containers(self, containers: List[ContainerInfo]) -> List[DiscoveredItem]:
        items = [self.map_container(container) for container in containers]
        self.logger.debug(f"Mapped {len(items)} containers")
        return items

    def map_services(self, services: List[ServiceInfo]) -> List[DiscoveredItem]:
        items = [self.map_service(service) for service in services]
        self.logger.debug(f"Mapped {len(items)} services")
        return items

    def map_container(self, container: ContainerInfo) -> DiscoveredItem:
        variables: VariablesMap = {
            NAMESPACE: container.namespace,
            POD_NAME: container.pod_name,
            IP: container.pod_ip,
            CLUSTER: container.cluster,
            NODE_NAME: container.node_name,
            NODE_IP: container.node_ip,
        }
        # labels and annotations belong to the pod, every container gets them
        for key, value in container.pod_labels.items():
            variables[LABEL_PREFIX + key] = value
        variables[ID] = container.id
        variables[NAME] = container.name
        variables[IMAGE] = container.image
        variables[PORTS] = dict(container.ports)
        for key, value in container.pod_annotations.items():
            variables[ANNOTATION_PREFIX + key] = value

        return DiscoveredItem(
            variables=variables,
            metric_annotations=filter_annotations(variables, self.container_exclusions),
            entity_rewrites=[container_replacement()],
        )

    def map_service(self, service: ServiceInfo) -> DiscoveredItem:
        variables: VariablesMap = {
            CLUSTER: service.cluster,
            NAMESPACE: service.namespace,
            SERVICE_NAME: service.name,
            SERVICE_TYPE: service.type,
            CLUSTER_IP: service.cluster_ip,
        }
        if service.external_ips:
            variables[EXTERNAL_IPS] = list(service.external_ips)
        variables[PORTS] = [port.to_variable() for port in service.ports]

        # selector and labels share the label. prefix, labels win on collision
        for key, value in service.selector.items():
            variables[LABEL_PREFIX + key] = value
        for key, value in service.labels.items():
            variables[LABEL_PREFIX + key] = value
        for key, value in service.annotations.items():
            variables[ANNOTATION_PREFIX + key] = value

        return DiscoveredItem(
            variables=variables,
            metric_annotations=filter_annotations(variables, self.service_exclusions),
            entity_rewrites=[service_replacement()],
        )


def filter_annotations(variables: VariablesMap, exclusions: Iterable[str]) -> VariablesMap:
    """Variables without pod/service annotations and without excluded keys."""
    excluded = set(exclusions)
    return {
        key: value
        for key, value in variables.items()
        if not key.startswith(ANNOTATION_PREFIX) and key not in excluded
    }


def container_replacement() -> Replacement:
    return Replacement(
        action=ENTITY_REWRITE_ACTION_REPLACE,
        match=CONTAINER_ENTITY_MATCH,
        replace_field=CONTAINER_ENTITY_REPLACE_FIELD,
    )


def service_replacement() -> Replacement:
    return Replacement(
        action=ENTITY_REWRITE_ACTION_REPLACE,
        match=SERVICE_ENTITY_MATCH,
        replace_field=SERVICE_ENTITY_REPLACE_FIELD,
    )
