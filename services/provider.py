"""
ECI Provider (Reconciler)

오케스트레이터가 호출하는 create/update/delete/get/list 연산과
가상 노드 정보(capacity, conditions, addresses)를 제공한다.

원격 조회는 "<namespace>-<name>" 이름으로 하며, 결과가 정확히 1개일 때만
Pod 로 변환한다. 0개/2개 이상은 에러가 아니라 "결과 없음" 이다.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple

from core.config import ProviderConfig
from core.errors import (
    ApiStatusError,
    BackendUnavailableError,
    BusinessError,
    NotFoundError,
    QuotaExceededError,
    TaskCreationError,
    UnsupportedWorkloadError,
    WorkloadFailedError,
)
from core.kubernetes import ResourceManager
from models.eci import (
    ContainerGroup,
    ContainerGroupResp,
    DeleteContainerGroup,
    DescribeContainerGroupsRequest,
)
from models.workload import PodSnapshot, WorkloadSpec, WorkloadStatus
from services.cdsapi import Envelope, OpenApiClient
from services.status import (
    INSTANCE_ID_ANNOTATION,
    container_group_to_pod,
    pending_placeholder_status,
)
from services.translator import WorkloadTranslator

logger = logging.getLogger(__name__)

CREATE_CONTAINER_GROUP_ACTION = "CreateContainerGroup"
DELETE_CONTAINER_GROUP_ACTION = "DeleteContainerGroup"
DESCRIBE_CONTAINER_GROUPS_ACTION = "DescribeContainerGroups"

CLUSTER_ID_ANNOTATION = "cluster-id"
NODE_ID_ANNOTATION = "virtual-node-id"
PRIVATE_ID_ANNOTATION = "eci-private_id"
INSTANCE_CPU_ANNOTATION = "eci-instance-cpu"
INSTANCE_MEM_ANNOTATION = "eci-instance-mem"

SUCCESS_CODES = {"", "Success", "success", "OK", "0", "200"}

UNSUPPORTED_OWNER_KINDS = {"DaemonSet"}
PROVIDER_FAILED_REASON = "ProviderFailed"

# 노드마다 뜨는 CSI 플러그인 Pod 는 ECI 로 만들지 않음
IGNORED_POD_MARKERS = ("disk-csi-cds-node", "nas-csi-cds-node", "oss-csi-cds-node")


def check_business_code(envelope: Envelope) -> None:
    """2xx 응답 안의 비즈니스 에러 코드를 예외로 변환"""
    if envelope.code == "MaxPodError":
        raise QuotaExceededError(envelope.code, envelope.message)
    if envelope.code == "CreateEciTaskError":
        raise TaskCreationError(envelope.code, envelope.message)
    if envelope.code not in SUCCESS_CODES:
        raise BusinessError(envelope.code, envelope.message)


class LookupOutcome(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    NOT_YET_VISIBLE = "not_yet_visible"
    AMBIGUOUS = "ambiguous"


@dataclass
class Lookup:
    outcome: LookupOutcome
    group: Optional[ContainerGroup] = None
    matches: int = 0


class ECIProvider:
    """Virtual node provider backed by CDS ECI"""

    def __init__(
        self,
        provider_config: ProviderConfig,
        api_client: OpenApiClient,
        resource_manager: ResourceManager,
    ):
        self.config = provider_config
        self.api = api_client
        self.translator = WorkloadTranslator(provider_config, resource_manager)
        # create 성공 후 아직 조회되지 않은 (namespace, name)
        self._created: Set[Tuple[str, str]] = set()

    async def close(self) -> None:
        await self.api.aclose()

    # ============================================
    # Pod 연산
    # ============================================

    async def create_pod(self, workload: WorkloadSpec) -> None:
        """Pod 에 대응하는 container group 생성

        Raises:
            UnsupportedWorkloadError: DaemonSet Pod
            WorkloadFailedError: 이미 ProviderFailed 로 표시된 Pod
            TranslationError: 변환 실패
            BusinessError: 원격 비즈니스 에러 코드
        """
        if workload.owner_references and workload.owner_references[0].kind in UNSUPPORTED_OWNER_KINDS:
            raise UnsupportedWorkloadError(f"{workload.name} {workload.owner_references[0].kind} unsupported")
        if workload.status_reason == PROVIDER_FAILED_REASON:
            raise WorkloadFailedError(workload.status_message or f"{workload.name} {PROVIDER_FAILED_REASON}")

        logger.debug(
            f"create pod: {workload.namespace} {workload.name} "
            f"{workload.status_phase} {workload.status_reason} {workload.status_message}"
        )
        # Secret/ConfigMap 조회는 동기 CoreV1Api 호출
        request = await asyncio.to_thread(self.translator.to_create_request, workload)

        envelope = await self.api.call(CREATE_CONTAINER_GROUP_ACTION, "POST", body=request.to_body())
        logger.debug(f"create pod resp stat: {envelope.code}, {envelope.message}")
        check_business_code(envelope)

        self._created.add((workload.namespace, workload.name))
        logger.info(f"container group {workload.group_name} created")

    async def update_pod(self, workload: WorkloadSpec) -> Dict[str, str]:
        """annotation 만 갱신 (원격 생성/삭제 없음)

        Returns:
            dict: 갱신된 annotations (workload.annotations 와 같은 객체)
        """
        logger.debug(f"update pod: {workload.name} {workload.namespace} {workload.status_phase} {workload.status_reason}")
        annotations = workload.annotations
        annotations[CLUSTER_ID_ANNOTATION] = self.config.cluster_id
        annotations[NODE_ID_ANNOTATION] = self.config.node_id
        annotations[PRIVATE_ID_ANNOTATION] = self.config.private_id

        if not annotations.get(INSTANCE_ID_ANNOTATION):
            lookup = await self.lookup(workload.namespace, workload.name)
            instance_id, cpu, memory = "", "", ""
            if lookup.outcome is LookupOutcome.FOUND:
                instance_id = lookup.group.container_group_id
                cpu = f"{lookup.group.cpu:.1f}"
                memory = f"{lookup.group.memory:.1f}"
            annotations[INSTANCE_ID_ANNOTATION] = instance_id
            annotations[INSTANCE_CPU_ANNOTATION] = cpu
            annotations[INSTANCE_MEM_ANNOTATION] = memory
        return annotations

    async def delete_pod(self, workload: WorkloadSpec) -> None:
        """container group 삭제

        Raises:
            NotFoundError: instance id 를 찾을 수 없음
            BusinessError: 삭제 응답의 비즈니스 에러 코드
        """
        logger.debug(f"delete pod: {workload.name} {workload.namespace} {workload.status_phase} {workload.status_reason}")
        instance_id = workload.annotations.get(INSTANCE_ID_ANNOTATION, "")
        if not instance_id:
            lookup = await self.lookup(workload.namespace, workload.name)
            if lookup.outcome is LookupOutcome.FOUND:
                instance_id = lookup.group.container_group_id
        if not instance_id:
            logger.debug(f"delete pod fail: {workload.name} {workload.namespace}")
            raise NotFoundError(f"can't find Pod {workload.name}")

        body = DeleteContainerGroup(container_group_id=instance_id).model_dump()
        try:
            envelope = await self.api.call(DELETE_CONTAINER_GROUP_ACTION, "POST", body=body)
        except ApiStatusError as e:
            if 400 <= e.status_code < 500:
                logger.info(f"container group {instance_id} already deleted ({e.status_code})")
                self._created.discard((workload.namespace, workload.name))
                return
            raise
        logger.debug(f"delete pod resp stat: {envelope.code}, {envelope.message}")
        check_business_code(envelope)
        self._created.discard((workload.namespace, workload.name))

    async def describe(self, namespace: str = "", name: str = "") -> List[ContainerGroup]:
        """DescribeContainerGroups (namespace, name 둘 다 있을 때만 이름으로 필터)"""
        group_name = f"{namespace}-{name}" if namespace and name else None
        request = DescribeContainerGroupsRequest(
            site_id=self.config.site_id,
            node_id=self.config.node_id,
            namespace=namespace or None,
            container_group_name=group_name,
        )
        envelope = await self.api.call(
            DESCRIBE_CONTAINER_GROUPS_ACTION,
            "POST",
            body=request.to_body(),
            result_type=ContainerGroupResp,
            staggered_ms=self.config.describe_staggered_ms,
        )
        check_business_code(envelope)
        return envelope.result.eci

    async def lookup(self, namespace: str, name: str) -> Lookup:
        # 이름 없이 조회하면 노드의 모든 group 이 나오므로 조회하지 않음
        if not namespace or not name:
            logger.warning(f"lookup without namespace/name: {namespace!r}/{name!r}")
            return Lookup(LookupOutcome.NOT_FOUND)
        groups = await self.describe(namespace, name)
        key = (namespace, name)
        if len(groups) == 1:
            self._created.discard(key)
            return Lookup(LookupOutcome.FOUND, groups[0], 1)
        if len(groups) > 1:
            logger.warning(f"get pod is non-uniqueness: {namespace}/{name} ({len(groups)} matches)")
            return Lookup(LookupOutcome.AMBIGUOUS, None, len(groups))
        if key in self._created:
            logger.warning(f"container group for {namespace}/{name} was created but is not visible yet")
            return Lookup(LookupOutcome.NOT_YET_VISIBLE)
        logger.debug(f"get pod is null: {namespace}/{name}")
        return Lookup(LookupOutcome.NOT_FOUND)

    async def get_pod(self, namespace: str, name: str) -> Optional[PodSnapshot]:
        if any(marker in name for marker in IGNORED_POD_MARKERS):
            return None
        logger.debug(f"get pod: {namespace}/{name}")
        lookup = await self.lookup(namespace, name)
        if lookup.outcome is not LookupOutcome.FOUND:
            return None
        return container_group_to_pod(lookup.group, self.config.cluster_id, self.config.node_name)

    async def get_pod_status(self, namespace: str, name: str) -> Optional[WorkloadStatus]:
        """Pod 상태. 원격이 5xx 면 임시 Pending 상태를 반환"""
        try:
            pod = await self.get_pod(namespace, name)
        except BackendUnavailableError as e:
            logger.warning(f"get pod status {namespace}/{name}: {e}, reporting placeholder")
            return pending_placeholder_status(name)
        if pod is None:
            return None
        return pod.status

    async def get_pods(self) -> List[PodSnapshot]:
        pods = []
        for group in await self.describe():
            try:
                pods.append(container_group_to_pod(group, self.config.cluster_id, self.config.node_name))
            except ValueError as e:
                logger.error(f"error converting container group to pod {group.container_group_id}: {e}")
        return pods

    # ============================================
    # 노드 정보
    # ============================================

    def capacity(self) -> Dict[str, str]:
        return {
            "cpu": "1000",
            "memory": "4Ti",
            "pods": self.config.max_pods,
        }

    def node_conditions(self) -> List[Dict[str, str]]:
        now = datetime.now(timezone.utc).isoformat()

        def condition(type_: str, status: str, reason: str, message: str) -> Dict[str, str]:
            return {
                "type": type_,
                "status": status,
                "last_heartbeat_time": now,
                "last_transition_time": now,
                "reason": reason,
                "message": message,
            }

        return [
            condition("Ready", "True", "KubeletReady", "kubelet is ready."),
            condition("OutOfDisk", "False", "KubeletHasSufficientDisk", "kubelet has sufficient disk space available"),
            condition("MemoryPressure", "False", "KubeletHasSufficientMemory", "kubelet has sufficient memory available"),
            condition("DiskPressure", "False", "KubeletHasNoDiskPressure", "kubelet has no disk pressure"),
            condition("NetworkUnavailable", "False", "RouteCreated", "RouteController created a route"),
        ]

    def node_addresses(self) -> List[Dict[str, str]]:
        return [{"type": "InternalIP", "address": self.config.internal_ip}]

    def node_daemon_endpoints(self) -> Dict[str, Dict[str, int]]:
        return {"kubelet_endpoint": {"port": self.config.daemon_endpoint_port}}

    def operating_system(self) -> str:
        return self.config.operating_system


__all__ = [
    "CREATE_CONTAINER_GROUP_ACTION",
    "DELETE_CONTAINER_GROUP_ACTION",
    "DESCRIBE_CONTAINER_GROUPS_ACTION",
    "check_business_code",
    "LookupOutcome",
    "Lookup",
    "ECIProvider",
]
