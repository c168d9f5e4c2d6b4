"""
Kubelet wire models.

Only the subset of the Pod schema that discovery reads is modelled; unknown
fields are ignored so newer kubelets keep decoding.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

POD_RUNNING = "Running"


class KubeletModel(BaseModel):
    """Base for kubelet payload models, camelCase on the wire."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ObjectMeta(KubeletModel):
    name: str = ""
    namespace: str = ""
    labels: Dict[str, str] = Field(default_factory=dict)
    annotations: Dict[str, str] = Field(default_factory=dict)


class ContainerPort(KubeletModel):
    name: Optional[str] = None
    container_port: int = Field(0, alias="containerPort")
    protocol: Optional[str] = None


class ContainerSpec(KubeletModel):
    name: str = ""
    image: Optional[str] = None
    ports: List[ContainerPort] = Field(default_factory=list)


class PodSpec(KubeletModel):
    containers: List[ContainerSpec] = Field(default_factory=list)
    node_name: Optional[str] = Field(None, alias="nodeName")


class ContainerState(KubeletModel):
    # Each state is an object when present, its content is not needed.
    running: Optional[dict] = None
    waiting: Optional[dict] = None
    terminated: Optional[dict] = None


class ContainerStatus(KubeletModel):
    name: str = ""
    container_id: str = Field("", alias="containerID")
    image: str = ""
    image_id: str = Field("", alias="imageID")
    ready: bool = False
    state: ContainerState = Field(default_factory=ContainerState)

    @property
    def is_running(self) -> bool:
        return self.state.running is not None


class PodStatus(KubeletModel):
    phase: str = ""
    pod_ip: str = Field("", alias="podIP")
    host_ip: str = Field("", alias="hostIP")
    container_statuses: List[ContainerStatus] = Field(default_factory=list, alias="containerStatuses")


class Pod(KubeletModel):
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    spec: PodSpec = Field(default_factory=PodSpec)
    status: PodStatus = Field(default_factory=PodStatus)

    @property
    def is_running(self) -> bool:
        return self.status.phase == POD_RUNNING

    def container_spec(self, name: str) -> Optional[ContainerSpec]:
        for container in self.spec.containers:
            if container.name == name:
                return container
        return None


class PodList(KubeletModel):
    kind: Optional[str] = None
    items: List[Pod] = Field(default_factory=list)
