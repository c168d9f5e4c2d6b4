from .discovery_models import *
from .kubelet_models import Pod, PodList, ContainerStatus, ContainerSpec, ContainerPort

__all__ = [
    "ContainerInfo",
    "ServiceInfo",
    "ServicePortInfo",
    "Replacement",
    "DiscoveredItem",
    "PortsMap",
    "LabelsMap",
    "AnnotationsMap",
    "VariablesMap",
    "dump_output",
    "Pod",
    "PodList",
    "ContainerStatus",
    "ContainerSpec",
    "ContainerPort",
]
