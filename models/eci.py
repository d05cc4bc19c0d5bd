"""
ECI OpenAPI 요청/응답 모델
필드 이름은 원격 API 의 JSON 키와 동일하게 유지
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, model_validator


class EciModel(BaseModel):
    """원격 응답의 null 값은 기본값으로 처리"""
    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


VOL_TYPE_NFS = "NFSVolume"
VOL_TYPE_EMPTYDIR = "EmptyDirVolume"
VOL_TYPE_CONFIGFILEVOLUME = "ConfigFileVolume"


class ContainerState(EciModel):
    state: str = ""
    detail_status: str = ""
    exit_code: int = 0
    start_time: str = ""
    finish_time: str = ""


class ContainerPort(EciModel):
    port: int
    protocol: str = ""


class EnvironmentVar(EciModel):
    key: str
    value: str = ""


class VolumeMount(EciModel):
    mount_path: str
    read_only: bool = False
    name: str


class ContainerInfo(EciModel):
    id: Optional[str] = None
    name: str
    image: str = ""
    version: str = ""
    image_pull_policy: str = ""
    working_dir: str = ""
    arg: List[str] = []
    command: List[str] = []
    memory: float = 0.0
    cpu: float = 0.0
    ports: List[ContainerPort] = []
    environment_var: List[EnvironmentVar] = []
    volume_mounts: List[VolumeMount] = []
    restart_count: Optional[int] = None
    previous_state: Optional[ContainerState] = None
    current_state: Optional[ContainerState] = None


class ImageRegistryCredential(EciModel):
    server: str
    user_name: str = ""
    password: str = ""


class ConfigFileToPath(EciModel):
    content: str
    path: str


class Volume(EciModel):
    type: str
    name: str
    nfs_volume_path: str = ""
    nfs_volume_server: str = ""
    nfs_volume_read_only: bool = False
    empty_dir_volume_enable: bool = False
    config_file_to_paths: List[ConfigFileToPath] = []


class Event(EciModel):
    count: int = 0
    type: str = ""
    name: str = ""
    message: str = ""
    first_timestamp: str = ""
    last_timestamp: str = ""


class CreateContainerGroup(EciModel):
    """CreateContainerGroup 요청 body"""
    site_id: str = ""
    cluster_id: str = ""
    node_id: str = ""
    node_name: Optional[str] = None
    namespace: str
    bill_method: int = 0
    owner_references: Dict[str, str] = {}
    name: str
    pod_name: str
    cpu: float = 0.0
    memory: float = 0.0
    restart_policy: str = ""
    ephemeral_storage_type: str = "high_disk"
    ephemeral_storage_size: int = 20
    private_pipe_id: str = ""
    container: List[ContainerInfo] = []
    init_container: List[ContainerInfo] = []
    volumes: List[Volume] = []
    image_registry_credential: List[ImageRegistryCredential] = []
    creation_timestamp: str = ""

    def to_body(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class DeleteContainerGroup(EciModel):
    container_group_id: str


class DescribeContainerGroupsRequest(EciModel):
    site_id: str = ""
    limit: Optional[int] = None
    node_name: Optional[str] = None
    node_id: Optional[str] = None
    container_group_name: Optional[str] = None
    container_group_id: Optional[str] = None
    namespace: Optional[str] = None

    def to_body(self) -> Dict[str, Any]:
        # omitempty
        return {k: v for k, v in self.model_dump(exclude_none=True).items() if v != ""}


class ContainerGroup(EciModel):
    """DescribeContainerGroups 결과 항목"""
    container_group_id: str = ""
    container_group_name: str = ""
    pod_name: str = ""
    namespace: str = ""
    site_id: str = ""
    memory: float = 0.0
    cpu: float = 0.0
    private_id: str = ""
    restart_policy: str = ""
    intranet_ip: str = ""
    status: str = ""
    task_state: str = ""
    creation_time: str = ""
    succeeded_time: str = ""
    volumes: List[Volume] = []
    events: List[Event] = []
    containers: List[ContainerInfo] = []


class ContainerGroupResp(EciModel):
    eci: List[ContainerGroup] = []


__all__ = [
    "VOL_TYPE_NFS",
    "VOL_TYPE_EMPTYDIR",
    "VOL_TYPE_CONFIGFILEVOLUME",
    "ContainerState",
    "ContainerPort",
    "EnvironmentVar",
    "VolumeMount",
    "ContainerInfo",
    "ImageRegistryCredential",
    "ConfigFileToPath",
    "Volume",
    "Event",
    "CreateContainerGroup",
    "DeleteContainerGroup",
    "DescribeContainerGroupsRequest",
    "ContainerGroup",
    "ContainerGroupResp",
]
