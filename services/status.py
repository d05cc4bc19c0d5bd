"""
원격 ContainerGroup -> Pod 상태 변환

입력만 보고 결과를 만드는 순수 함수들. 타임스탬프 하나가 잘못되어도
해당 컨테이너 상태만 비우고 나머지 변환은 계속한다.
"""
from datetime import datetime, timezone
from typing import List, Optional

from models.eci import ContainerGroup
from models.eci import ContainerState as EciContainerState
from models.workload import (
    ContainerState,
    ContainerStateRunning,
    ContainerStateTerminated,
    ContainerStateWaiting,
    ContainerStatus,
    ContainerView,
    PodCondition,
    PodPhase,
    PodSnapshot,
    ResourceRequirements,
    WorkloadStatus,
)

TIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
POD_TAG_TIME_FORMAT = "%Y-%m-%dT%H-%M-%SZ"

INSTANCE_ID_ANNOTATION = "eci-instance-id"

_PHASES = {
    "Scheduling": PodPhase.PENDING,
    "ScheduleFailed": PodPhase.FAILED,
    "Pending": PodPhase.PENDING,
    "Running": PodPhase.RUNNING,
    "Failed": PodPhase.FAILED,
    "Succeeded": PodPhase.SUCCEEDED,
}

READY_CONDITIONS = ("Ready", "Initialized", "PodScheduled")


def parse_time(value: str, fmt: str = TIME_FORMAT) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.strptime(value, fmt).replace(tzinfo=timezone.utc)
    except ValueError:
        return None


def eci_state_to_pod_phase(state: Optional[str]) -> PodPhase:
    return _PHASES.get(state or "", PodPhase.UNKNOWN)


def eci_state_to_pod_conditions(state: str, transition_time: Optional[datetime]) -> List[PodCondition]:
    if state not in ("Running", "Succeeded"):
        return []
    return [
        PodCondition(type=condition, status="True", last_transition_time=transition_time)
        for condition in READY_CONDITIONS
    ]


def eci_container_state_to_container_state(cs: Optional[EciContainerState]) -> ContainerState:
    if cs is None:
        return ContainerState()

    started_at = parse_time(cs.start_time)
    if started_at is None:
        return ContainerState()

    if cs.state in ("Running", "Succeeded"):
        return ContainerState(running=ContainerStateRunning(started_at=started_at))

    finished_at = parse_time(cs.finish_time)
    if finished_at is None:
        return ContainerState()

    if cs.state in ("Failed", "Canceled"):
        return ContainerState(terminated=ContainerStateTerminated(
            exit_code=cs.exit_code,
            reason=cs.state,
            message=cs.detail_status,
            started_at=started_at,
            finished_at=finished_at,
        ))

    # 나머지 ECI 상태는 모두 대기 중
    return ContainerState(waiting=ContainerStateWaiting(reason=cs.state, message=cs.detail_status))


def container_group_to_status(cg: ContainerGroup) -> WorkloadStatus:
    creation_time = parse_time(cg.creation_time, POD_TAG_TIME_FORMAT)

    start_time = None
    if cg.containers and cg.containers[0].current_state is not None:
        start_time = parse_time(cg.containers[0].current_state.start_time)

    statuses = []
    for c in cg.containers:
        current = c.current_state.state if c.current_state is not None else ""
        statuses.append(ContainerStatus(
            name=c.name,
            ready=eci_state_to_pod_phase(current) is PodPhase.RUNNING,
            restart_count=c.restart_count or 0,
            image=c.image,
            container_id=c.id or "",
            state=eci_container_state_to_container_state(c.current_state),
            last_state=eci_container_state_to_container_state(c.previous_state),
        ))

    return WorkloadStatus(
        phase=eci_state_to_pod_phase(cg.status),
        conditions=eci_state_to_pod_conditions(cg.status, creation_time),
        message=cg.task_state,
        host_ip=cg.intranet_ip,
        pod_ip=cg.intranet_ip,
        start_time=start_time,
        container_statuses=statuses,
    )


def container_group_to_pod(cg: ContainerGroup, cluster_name: str = "", node_name: str = "") -> PodSnapshot:
    containers = []
    for c in cg.containers:
        quantities = {"cpu": f"{c.cpu:.2f}", "memory": f"{c.memory:.1f}G"}
        containers.append(ContainerView(
            name=c.name,
            image=c.image,
            command=list(c.command),
            resources=ResourceRequirements(limits=dict(quantities), requests=dict(quantities)),
        ))

    return PodSnapshot(
        name=cg.pod_name,
        namespace=cg.namespace,
        uid=cg.container_group_id,
        cluster_name=cluster_name,
        node_name=node_name,
        creation_timestamp=parse_time(cg.creation_time, POD_TAG_TIME_FORMAT),
        annotations={INSTANCE_ID_ANNOTATION: cg.container_group_id},
        containers=containers,
        status=container_group_to_status(cg),
    )


def pending_placeholder_status(name: str, message: str = "get status 50X") -> WorkloadStatus:
    """원격 조회가 5xx 로 실패했을 때 보고할 임시 Pending 상태"""
    waiting = ContainerState(waiting=ContainerStateWaiting(reason="Scheduling", message=message))
    return WorkloadStatus(
        phase=PodPhase.PENDING,
        message=message,
        start_time=datetime.now(timezone.utc),
        container_statuses=[ContainerStatus(name=name, state=waiting, last_state=waiting)],
    )


__all__ = [
    "TIME_FORMAT",
    "POD_TAG_TIME_FORMAT",
    "INSTANCE_ID_ANNOTATION",
    "parse_time",
    "eci_state_to_pod_phase",
    "eci_state_to_pod_conditions",
    "eci_container_state_to_container_state",
    "container_group_to_status",
    "container_group_to_pod",
    "pending_placeholder_status",
]
