"""
Kubernetes client initialization and Secret/ConfigMap lookup

번역기는 ResourceManager 인터페이스만 사용한다:
- get_secret(name, namespace) -> SecretData
- get_config_map(name, namespace) -> Dict[str, str]
없는 리소스는 ResourceNotFound 로 구분 (빈 데이터와 다름)
"""
import base64
import logging
from typing import Dict, Optional, Protocol, Tuple

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from models.workload import SecretData, SecretType

logger = logging.getLogger(__name__)


class ResourceNotFound(LookupError):
    """Secret 또는 ConfigMap 이 존재하지 않음"""

    def __init__(self, kind: str, name: str, namespace: str):
        self.kind = kind
        self.name = name
        self.namespace = namespace
        super().__init__(f"{kind} {namespace}/{name} not found")


class ResourceManager(Protocol):
    def get_secret(self, name: str, namespace: str) -> SecretData:
        ...

    def get_config_map(self, name: str, namespace: str) -> Dict[str, str]:
        ...


def get_core_v1_api() -> client.CoreV1Api:
    """CoreV1Api 초기화

    클러스터 내부에서 실행 중이면 in-cluster config 사용,
    아니면 kubeconfig 파일 사용
    """
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()

    return client.CoreV1Api()


class KubernetesResourceManager:
    """CoreV1Api 기반 ResourceManager"""

    def __init__(self, core_v1: Optional[client.CoreV1Api] = None):
        self._core_v1 = core_v1

    @property
    def core_v1(self) -> client.CoreV1Api:
        if self._core_v1 is None:
            self._core_v1 = get_core_v1_api()
        return self._core_v1

    def get_secret(self, name: str, namespace: str) -> SecretData:
        try:
            secret = self.core_v1.read_namespaced_secret(name, namespace)
        except ApiException as e:
            if e.status == 404:
                raise ResourceNotFound("Secret", name, namespace) from e
            raise
        # API 응답의 data 값은 base64 문자열
        data = {
            key: base64.b64decode(value)
            for key, value in (secret.data or {}).items()
        }
        return SecretData(
            name=name,
            type=SecretType.parse(secret.type),
            raw_type=secret.type or "",
            data=data,
        )

    def get_config_map(self, name: str, namespace: str) -> Dict[str, str]:
        try:
            config_map = self.core_v1.read_namespaced_config_map(name, namespace)
        except ApiException as e:
            if e.status == 404:
                raise ResourceNotFound("ConfigMap", name, namespace) from e
            raise
        return dict(config_map.data or {})


class StaticResourceManager:
    """메모리 기반 ResourceManager (테스트, 로컬 실행용)"""

    def __init__(
        self,
        secrets: Optional[Dict[Tuple[str, str], SecretData]] = None,
        config_maps: Optional[Dict[Tuple[str, str], Dict[str, str]]] = None,
    ):
        self.secrets = dict(secrets or {})
        self.config_maps = dict(config_maps or {})

    def get_secret(self, name: str, namespace: str) -> SecretData:
        try:
            return self.secrets[(namespace, name)]
        except KeyError:
            raise ResourceNotFound("Secret", name, namespace) from None

    def get_config_map(self, name: str, namespace: str) -> Dict[str, str]:
        try:
            return self.config_maps[(namespace, name)]
        except KeyError:
            raise ResourceNotFound("ConfigMap", name, namespace) from None


__all__ = [
    "ResourceNotFound",
    "ResourceManager",
    "get_core_v1_api",
    "KubernetesResourceManager",
    "StaticResourceManager",
    "ApiException",
]
