# Pydantic models
from .workload import (
    WorkloadSpec, ContainerSpec, VolumeSpec, VolumeKind, SecretData, SecretType,
    WorkloadStatus, ContainerStatus, ContainerState, PodPhase, PodCondition, PodSnapshot,
)
from .eci import (
    ContainerGroup, ContainerGroupResp, ContainerInfo, CreateContainerGroup,
    DeleteContainerGroup, DescribeContainerGroupsRequest,
)

__all__ = [
    # Workload
    'WorkloadSpec', 'ContainerSpec', 'VolumeSpec', 'VolumeKind', 'SecretData', 'SecretType',
    'WorkloadStatus', 'ContainerStatus', 'ContainerState', 'PodPhase', 'PodCondition', 'PodSnapshot',
    # ECI
    'ContainerGroup', 'ContainerGroupResp', 'ContainerInfo', 'CreateContainerGroup',
    'DeleteContainerGroup', 'DescribeContainerGroupsRequest',
]
