"""
Pod 명세 -> CreateContainerGroup 요청 변환

컨테이너:
- image 는 마지막 ':' 기준으로 이름/태그 분리 (태그 없으면 latest)
- command 와 args 는 하나의 command 리스트로 이어 붙인다 (arg 필드는 비움)
- cpu/memory 는 limits -> requests -> 기본값 순서
  (일반 컨테이너 1코어/2GiB, init 컨테이너 0/0)

볼륨:
- emptyDir -> EmptyDirVolume
- nfs -> NFSVolume
- configMap / secret -> ConfigFileVolume (path, content 목록)
"""
import base64
import binascii
import json
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

from core.config import ProviderConfig
from core.errors import (
    MissingResourceError,
    TranslationError,
    UnsupportedCredentialError,
    UnsupportedVolumeError,
)
from core.kubernetes import ResourceManager, ResourceNotFound
from models.eci import (
    VOL_TYPE_CONFIGFILEVOLUME,
    VOL_TYPE_EMPTYDIR,
    VOL_TYPE_NFS,
    ConfigFileToPath,
    ContainerInfo,
    ContainerPort,
    CreateContainerGroup,
    EnvironmentVar,
    ImageRegistryCredential,
    Volume,
    VolumeMount,
)
from models.workload import ContainerSpec, SecretType, VolumeKind, VolumeSpec, WorkloadSpec
from services.status import POD_TAG_TIME_FORMAT
from utils.resources import parse_cpu, parse_memory

logger = logging.getLogger(__name__)

DEFAULT_CPU = 1.0
DEFAULT_MEMORY = 2.0
DEFAULT_STORAGE_TYPE = "high_disk"
DEFAULT_STORAGE_SIZE = 20

STORAGE_TYPE_ANNOTATION = "eci-storage-type"
STORAGE_SIZE_ANNOTATION = "eci-storage-size"

DOCKER_CONFIG_KEY = ".dockercfg"
DOCKER_CONFIG_JSON_KEY = ".dockerconfigjson"


def split_image(image: str) -> Tuple[str, str]:
    """'nginx:1.21' -> ('nginx', '1.21'), 'registry:5000/app' -> ('registry:5000/app', 'latest')"""
    name, sep, tag = image.rpartition(":")
    if not sep or "/" in tag:
        return image, "latest"
    return name, tag or "latest"


def _resource_value(
    container: ContainerSpec,
    key: str,
    default: float,
    parser: Callable[[str], float],
) -> float:
    resources = container.resources
    for source in (resources.limits, resources.requests):
        if key in source:
            try:
                value = parser(source[key])
            except ValueError as e:
                raise TranslationError(f"container {container.name}: invalid {key} quantity: {e}") from e
            if value < 0:
                raise TranslationError(f"container {container.name}: negative {key} {source[key]!r}")
            return value
    return default


def make_storage_type(workload: WorkloadSpec) -> Tuple[str, int]:
    """임시 스토리지 타입/크기 (annotation, 기본값 high_disk / 20)"""
    storage_type = workload.annotations.get(STORAGE_TYPE_ANNOTATION) or DEFAULT_STORAGE_TYPE
    try:
        size = int(workload.annotations.get(STORAGE_SIZE_ANNOTATION) or DEFAULT_STORAGE_SIZE)
    except ValueError:
        size = DEFAULT_STORAGE_SIZE
    if size <= 0:
        size = DEFAULT_STORAGE_SIZE
    return storage_type, size


class WorkloadTranslator:
    """WorkloadSpec -> CreateContainerGroup"""

    def __init__(self, provider_config: ProviderConfig, resource_manager: ResourceManager):
        self.config = provider_config
        self.resource_manager = resource_manager

    def to_create_request(self, workload: WorkloadSpec) -> CreateContainerGroup:
        containers, cpu, memory = self.get_containers(workload, init=False)
        init_containers, init_cpu, init_memory = self.get_containers(workload, init=True)
        volumes = self.get_volumes(workload)
        credentials = self.get_image_pull_secrets(workload)
        storage_type, storage_size = make_storage_type(workload)

        owner = {}
        if workload.owner_references:
            owner = {
                "kind": workload.owner_references[0].kind,
                "name": workload.owner_references[0].name,
            }

        created = workload.creation_timestamp or datetime.now(timezone.utc)
        if created.tzinfo is not None:
            created = created.astimezone(timezone.utc)

        return CreateContainerGroup(
            site_id=self.config.site_id,
            cluster_id=self.config.cluster_id,
            node_id=self.config.node_id,
            node_name=self.config.node_name,
            namespace=workload.namespace,
            owner_references=owner,
            name=workload.group_name,
            pod_name=workload.name,
            cpu=cpu + init_cpu,
            memory=memory + init_memory,
            restart_policy=workload.restart_policy,
            ephemeral_storage_type=storage_type,
            ephemeral_storage_size=storage_size,
            private_pipe_id=self.config.private_id,
            container=containers,
            init_container=init_containers,
            volumes=volumes,
            image_registry_credential=credentials,
            creation_timestamp=created.strftime(POD_TAG_TIME_FORMAT),
        )

    def get_containers(self, workload: WorkloadSpec, init: bool) -> Tuple[List[ContainerInfo], float, float]:
        """컨테이너 목록과 cpu/memory 합계"""
        specs = workload.init_containers if init else workload.containers
        default_cpu = 0.0 if init else DEFAULT_CPU
        default_memory = 0.0 if init else DEFAULT_MEMORY

        containers: List[ContainerInfo] = []
        all_cpu = 0.0
        all_memory = 0.0
        for spec in specs:
            image, version = split_image(spec.image)
            cpu = _resource_value(spec, "cpu", default_cpu, parse_cpu)
            memory = _resource_value(spec, "memory", default_memory, parse_memory)
            containers.append(ContainerInfo(
                name=spec.name,
                image=image,
                version=version,
                image_pull_policy=spec.image_pull_policy,
                working_dir=spec.working_dir,
                command=list(spec.command) + list(spec.args),
                arg=[],
                cpu=cpu,
                memory=memory,
                ports=[ContainerPort(port=p.container_port, protocol=p.protocol) for p in spec.ports],
                environment_var=[EnvironmentVar(key=e.name, value=e.value) for e in spec.env],
                volume_mounts=[
                    VolumeMount(name=m.name, mount_path=m.mount_path, read_only=m.read_only)
                    for m in spec.volume_mounts
                ],
            ))
            all_cpu += cpu
            all_memory += memory
        return containers, all_cpu, all_memory

    def get_volumes(self, workload: WorkloadSpec) -> List[Volume]:
        volumes: List[Volume] = []
        for spec in workload.volumes:
            kind = spec.kind
            if kind is VolumeKind.EMPTY_DIR:
                volumes.append(Volume(type=VOL_TYPE_EMPTYDIR, name=spec.name, empty_dir_volume_enable=True))
            elif kind is VolumeKind.NFS:
                volumes.append(Volume(
                    type=VOL_TYPE_NFS,
                    name=spec.name,
                    nfs_volume_server=spec.nfs.server,
                    nfs_volume_path=spec.nfs.path,
                    nfs_volume_read_only=spec.nfs.read_only,
                ))
            elif kind is VolumeKind.CONFIG_MAP:
                volume = self._config_map_volume(workload, spec)
                if volume is not None:
                    volumes.append(volume)
            elif kind is VolumeKind.SECRET:
                volume = self._secret_volume(workload, spec)
                if volume is not None:
                    volumes.append(volume)
            else:
                raise UnsupportedVolumeError(spec.name, workload.name)
        return volumes

    def _encode_content(self, content: str) -> str:
        if self.config.config_file_base64:
            return base64.b64encode(content.encode("utf-8")).decode("ascii")
        return content

    def _config_map_volume(self, workload: WorkloadSpec, spec: VolumeSpec) -> Optional[Volume]:
        source = spec.config_map
        try:
            data = self.resource_manager.get_config_map(source.name, workload.namespace)
        except ResourceNotFound:
            if source.optional is False:
                raise MissingResourceError("ConfigMap", source.name, workload.name)
            logger.debug(f"optional ConfigMap {source.name} for Pod {workload.name} not found, skipping")
            return None

        files = [
            ConfigFileToPath(path=key, content=self._encode_content(data[key]))
            for key in sorted(data)
        ]
        if not files:
            return None
        return Volume(type=VOL_TYPE_CONFIGFILEVOLUME, name=spec.name, config_file_to_paths=files)

    def _secret_volume(self, workload: WorkloadSpec, spec: VolumeSpec) -> Optional[Volume]:
        source = spec.secret
        try:
            secret = self.resource_manager.get_secret(source.secret_name, workload.namespace)
        except ResourceNotFound:
            if source.optional is False:
                raise MissingResourceError("Secret", source.secret_name, workload.name)
            logger.debug(f"optional Secret {source.secret_name} for Pod {workload.name} not found, skipping")
            return None

        if self.config.config_file_base64:
            files = [
                ConfigFileToPath(path=key, content=base64.b64encode(secret.data[key]).decode("ascii"))
                for key in sorted(secret.data)
            ]
        else:
            files = []
            for key in sorted(secret.data):
                try:
                    content = secret.data[key].decode("utf-8")
                except UnicodeDecodeError as e:
                    raise TranslationError(
                        f"secret {source.secret_name} key {key} is not UTF-8 text, "
                        "enable CDS_CONFIG_FILE_BASE64 for binary data"
                    ) from e
                files.append(ConfigFileToPath(path=key, content=content))
        if not files:
            return None
        return Volume(type=VOL_TYPE_CONFIGFILEVOLUME, name=spec.name, config_file_to_paths=files)

    def get_image_pull_secrets(self, workload: WorkloadSpec) -> List[ImageRegistryCredential]:
        credentials: List[ImageRegistryCredential] = []
        for name in workload.image_pull_secrets:
            try:
                secret = self.resource_manager.get_secret(name, workload.namespace)
            except ResourceNotFound:
                raise MissingResourceError("Secret", name, workload.name)

            if secret.type is SecretType.DOCKERCFG:
                auths = self._load_auths(secret.data, DOCKER_CONFIG_KEY, name)
            elif secret.type is SecretType.DOCKER_CONFIG_JSON:
                config_json = self._load_auths(secret.data, DOCKER_CONFIG_JSON_KEY, name)
                auths = config_json.get("auths")
                if not isinstance(auths, dict):
                    raise TranslationError(f"malformed dockerconfigjson in secret {name}")
            else:
                raise UnsupportedCredentialError(name, secret.raw_type or secret.type.value)

            for server, auth in auths.items():
                credentials.append(_credential_from_auth(server, auth, name))
        return credentials

    @staticmethod
    def _load_auths(data: Dict[str, bytes], key: str, secret_name: str) -> dict:
        if key not in data:
            raise TranslationError(f"no {key.lstrip('.')} present in secret {secret_name}")
        try:
            parsed = json.loads(data[key])
        except ValueError as e:
            raise TranslationError(f"failed to unmarshal auth config in secret {secret_name}: {e}") from e
        if not isinstance(parsed, dict):
            raise TranslationError(f"malformed {key.lstrip('.')} in secret {secret_name}")
        return parsed


def _credential_from_auth(server: str, auth: dict, secret_name: str) -> ImageRegistryCredential:
    if not isinstance(auth, dict):
        raise TranslationError(f"malformed auth entry for {server} in secret {secret_name}")
    username = auth.get("username") or ""
    password = auth.get("password") or ""
    # username/password 없이 auth(base64 "user:pass") 만 있는 경우
    if not username and not password and auth.get("auth"):
        try:
            decoded = base64.b64decode(auth["auth"]).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise TranslationError(f"invalid auth for {server} in secret {secret_name}") from e
        username, _, password = decoded.partition(":")
    return ImageRegistryCredential(server=server, user_name=username, password=password)


__all__ = [
    "DEFAULT_CPU",
    "DEFAULT_MEMORY",
    "split_image",
    "make_storage_type",
    "WorkloadTranslator",
]
