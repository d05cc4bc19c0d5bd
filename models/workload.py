"""
Workload(Pod) 관련 Pydantic 모델
오케스트레이터가 넘겨주는 Pod 명세와 우리가 돌려주는 Pod 상태
"""
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


# ============================================
# Spec
# ============================================

class OwnerReference(BaseModel):
    kind: str
    name: str


class ResourceRequirements(BaseModel):
    """Kubernetes quantity 문자열 (e.g. {"cpu": "500m", "memory": "256Mi"})"""
    limits: Dict[str, str] = {}
    requests: Dict[str, str] = {}


class ContainerPortSpec(BaseModel):
    container_port: int
    protocol: str = "TCP"


class EnvVar(BaseModel):
    name: str
    value: str = ""


class VolumeMountSpec(BaseModel):
    name: str
    mount_path: str
    read_only: bool = False


class ContainerSpec(BaseModel):
    """컨테이너 명세"""
    name: str
    image: str
    command: List[str] = []
    args: List[str] = []
    resources: ResourceRequirements = Field(default_factory=ResourceRequirements)
    ports: List[ContainerPortSpec] = []
    env: List[EnvVar] = []
    volume_mounts: List[VolumeMountSpec] = []
    working_dir: str = ""
    image_pull_policy: str = ""


class VolumeKind(str, Enum):
    """지원하는 볼륨 종류"""
    EMPTY_DIR = "emptyDir"
    NFS = "nfs"
    CONFIG_MAP = "configMap"
    SECRET = "secret"


class EmptyDirSource(BaseModel):
    medium: str = ""


class NFSSource(BaseModel):
    server: str
    path: str
    read_only: bool = False


class ConfigMapSource(BaseModel):
    name: str
    optional: Optional[bool] = None


class SecretSource(BaseModel):
    secret_name: str
    optional: Optional[bool] = None


class VolumeSpec(BaseModel):
    """볼륨 명세 - source 중 정확히 하나만 채워져야 함"""
    name: str
    empty_dir: Optional[EmptyDirSource] = None
    nfs: Optional[NFSSource] = None
    config_map: Optional[ConfigMapSource] = None
    secret: Optional[SecretSource] = None

    @property
    def kind(self) -> Optional[VolumeKind]:
        """채워진 source 의 종류. 없거나 둘 이상이면 None"""
        populated = [
            kind for kind, source in (
                (VolumeKind.EMPTY_DIR, self.empty_dir),
                (VolumeKind.NFS, self.nfs),
                (VolumeKind.CONFIG_MAP, self.config_map),
                (VolumeKind.SECRET, self.secret),
            )
            if source is not None
        ]
        if len(populated) != 1:
            return None
        return populated[0]


class WorkloadSpec(BaseModel):
    """Pod 명세 (오케스트레이터가 호출마다 새로 전달)"""
    namespace: str = Field(min_length=1)
    name: str = Field(min_length=1)
    creation_timestamp: Optional[datetime] = None
    owner_references: List[OwnerReference] = []
    restart_policy: str = "Always"
    annotations: Dict[str, str] = {}
    containers: List[ContainerSpec] = []
    init_containers: List[ContainerSpec] = []
    volumes: List[VolumeSpec] = []
    image_pull_secrets: List[str] = []

    # 오케스트레이터가 마지막으로 관측한 상태
    status_phase: str = ""
    status_reason: str = ""
    status_message: str = ""

    @property
    def group_name(self) -> str:
        """원격 서비스 조회용 이름"""
        return f"{self.namespace}-{self.name}"


# ============================================
# Secret / ConfigMap collaborator
# ============================================

class SecretType(str, Enum):
    """Secret type 태그"""
    OPAQUE = "Opaque"
    DOCKERCFG = "kubernetes.io/dockercfg"
    DOCKER_CONFIG_JSON = "kubernetes.io/dockerconfigjson"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SecretType":
        if not value:
            return cls.OPAQUE
        for item in cls:
            if item.value == value:
                return item
        return cls.OTHER


class SecretData(BaseModel):
    name: str
    type: SecretType = SecretType.OPAQUE
    raw_type: str = ""
    data: Dict[str, bytes] = {}


# ============================================
# Status
# ============================================

class PodPhase(str, Enum):
    PENDING = "Pending"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    UNKNOWN = "Unknown"


class PodCondition(BaseModel):
    type: str  # "Ready", "Initialized", "PodScheduled"
    status: str = "True"
    last_transition_time: Optional[datetime] = None


class ContainerStateRunning(BaseModel):
    started_at: datetime


class ContainerStateWaiting(BaseModel):
    reason: str = ""
    message: str = ""


class ContainerStateTerminated(BaseModel):
    exit_code: int = 0
    reason: str = ""
    message: str = ""
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None


class ContainerState(BaseModel):
    """running / waiting / terminated 중 하나, 또는 전부 비어 있음"""
    running: Optional[ContainerStateRunning] = None
    waiting: Optional[ContainerStateWaiting] = None
    terminated: Optional[ContainerStateTerminated] = None

    @property
    def is_empty(self) -> bool:
        return self.running is None and self.waiting is None and self.terminated is None


class ContainerStatus(BaseModel):
    """컨테이너 상태 정보"""
    name: str
    ready: bool = False
    restart_count: int = 0
    image: str = ""
    container_id: str = ""
    state: ContainerState = Field(default_factory=ContainerState)
    last_state: ContainerState = Field(default_factory=ContainerState)


class WorkloadStatus(BaseModel):
    """Pod 상태"""
    phase: PodPhase = PodPhase.UNKNOWN
    conditions: List[PodCondition] = []
    message: str = ""
    reason: str = ""
    host_ip: str = ""
    pod_ip: str = ""
    start_time: Optional[datetime] = None
    container_statuses: List[ContainerStatus] = []


class ContainerView(BaseModel):
    name: str
    image: str = ""
    command: List[str] = []
    resources: ResourceRequirements = Field(default_factory=ResourceRequirements)


class PodSnapshot(BaseModel):
    """원격 container group 으로부터 재구성한 Pod"""
    name: str
    namespace: str
    uid: str
    cluster_name: str = ""
    node_name: str = ""
    creation_timestamp: Optional[datetime] = None
    annotations: Dict[str, str] = {}
    containers: List[ContainerView] = []
    status: WorkloadStatus = Field(default_factory=WorkloadStatus)


__all__ = [
    "OwnerReference",
    "ResourceRequirements",
    "ContainerPortSpec",
    "EnvVar",
    "VolumeMountSpec",
    "ContainerSpec",
    "VolumeKind",
    "EmptyDirSource",
    "NFSSource",
    "ConfigMapSource",
    "SecretSource",
    "VolumeSpec",
    "WorkloadSpec",
    "SecretType",
    "SecretData",
    "PodPhase",
    "PodCondition",
    "ContainerStateRunning",
    "ContainerStateWaiting",
    "ContainerStateTerminated",
    "ContainerState",
    "ContainerStatus",
    "WorkloadStatus",
    "ContainerView",
    "PodSnapshot",
]
