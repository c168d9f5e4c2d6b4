"""
Discovery Data Models
Flattened records produced from pods and services, and the output items
handed to the monitoring agent.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Container ports indexed by position and, when declared, by name.
PortsMap = Dict[str, int]
LabelsMap = Dict[str, str]
AnnotationsMap = Dict[str, str]
VariablesMap = Dict[str, Any]


class DiscoveryModel(BaseModel):
    """Base model for discovery records."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class ContainerInfo(DiscoveryModel):
    """A running container of a running pod, as seen by the kubelet."""

    name: str
    id: str = ""
    image: str = ""
    image_id: str = ""
    ports: PortsMap = Field(default_factory=dict)
    pod_labels: LabelsMap = Field(default_factory=dict)
    pod_annotations: AnnotationsMap = Field(default_factory=dict)
    pod_ip: str = ""
    pod_name: str = ""
    node_name: str = ""
    node_ip: str = ""
    namespace: str = ""
    cluster: str = ""


class ServicePortInfo(DiscoveryModel):
    """A service port, target port always rendered as a string."""

    name: str = ""
    port: int = 0
    target_port: str = Field("", alias="targetPort")
    protocol: str = ""
    node_port: Optional[int] = Field(None, alias="nodePort")

    def to_variable(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ServiceInfo(DiscoveryModel):
    """A Kubernetes service as seen by the API server."""

    name: str
    namespace: str = ""
    type: str = ""
    cluster_ip: str = ""
    external_ips: List[str] = Field(default_factory=list)
    ports: List[ServicePortInfo] = Field(default_factory=list)
    selector: LabelsMap = Field(default_factory=dict)
    labels: LabelsMap = Field(default_factory=dict)
    annotations: AnnotationsMap = Field(default_factory=dict)
    cluster: str = ""


class Replacement(DiscoveryModel):
    """Instruction for the agent to compute the entity name."""

    action: str
    match: str
    replace_field: str = Field(alias="replaceField")


class DiscoveredItem(DiscoveryModel):
    """Single discovered entity."""

    variables: VariablesMap = Field(default_factory=dict)
    metric_annotations: VariablesMap = Field(default_factory=dict, alias="metricAnnotations")
    entity_rewrites: List[Replacement] = Field(default_factory=list, alias="entityRewrites")


def dump_output(items: List[DiscoveredItem]) -> List[Dict[str, Any]]:
    """JSON-ready representation of the discovery output."""
    return [item.model_dump(by_alias=True, mode="json") for item in items]
