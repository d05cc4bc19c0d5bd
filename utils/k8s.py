"""
Kubernetes 객체 변환 헬퍼
kubernetes.client.V1Pod -> WorkloadSpec
"""
from typing import Dict, List, Optional

from kubernetes import client

from models.workload import (
    ConfigMapSource,
    ContainerPortSpec,
    ContainerSpec,
    EmptyDirSource,
    EnvVar,
    NFSSource,
    OwnerReference,
    ResourceRequirements,
    SecretSource,
    VolumeMountSpec,
    VolumeSpec,
    WorkloadSpec,
)


def _quantities(values: Optional[Dict]) -> Dict[str, str]:
    return {key: str(value) for key, value in (values or {}).items()}


def container_from_v1(container: client.V1Container) -> ContainerSpec:
    resources = container.resources
    return ContainerSpec(
        name=container.name,
        image=container.image or "",
        command=list(container.command or []),
        args=list(container.args or []),
        resources=ResourceRequirements(
            limits=_quantities(resources.limits if resources else None),
            requests=_quantities(resources.requests if resources else None),
        ),
        ports=[
            ContainerPortSpec(container_port=p.container_port, protocol=p.protocol or "TCP")
            for p in (container.ports or [])
        ],
        # valueFrom 참조는 지원하지 않음 (value 만 전달)
        env=[EnvVar(name=e.name, value=e.value or "") for e in (container.env or [])],
        volume_mounts=[
            VolumeMountSpec(name=m.name, mount_path=m.mount_path, read_only=bool(m.read_only))
            for m in (container.volume_mounts or [])
        ],
        working_dir=container.working_dir or "",
        image_pull_policy=container.image_pull_policy or "",
    )


def volume_from_v1(volume: client.V1Volume) -> VolumeSpec:
    """지원하지 않는 source 는 비워 둔다 (번역 단계에서 에러)"""
    spec = VolumeSpec(name=volume.name)
    if volume.empty_dir is not None:
        spec.empty_dir = EmptyDirSource(medium=volume.empty_dir.medium or "")
    if volume.nfs is not None:
        spec.nfs = NFSSource(
            server=volume.nfs.server,
            path=volume.nfs.path,
            read_only=bool(volume.nfs.read_only),
        )
    if volume.config_map is not None:
        spec.config_map = ConfigMapSource(
            name=volume.config_map.name,
            optional=volume.config_map.optional,
        )
    if volume.secret is not None:
        spec.secret = SecretSource(
            secret_name=volume.secret.secret_name,
            optional=volume.secret.optional,
        )
    return spec


def workload_from_v1_pod(pod: client.V1Pod) -> WorkloadSpec:
    metadata = pod.metadata
    spec = pod.spec
    status = pod.status

    owners: List[OwnerReference] = [
        OwnerReference(kind=o.kind, name=o.name) for o in (metadata.owner_references or [])
    ]
    return WorkloadSpec(
        namespace=metadata.namespace or "default",
        name=metadata.name,
        creation_timestamp=metadata.creation_timestamp,
        owner_references=owners,
        restart_policy=spec.restart_policy or "Always",
        annotations=dict(metadata.annotations or {}),
        containers=[container_from_v1(c) for c in (spec.containers or [])],
        init_containers=[container_from_v1(c) for c in (spec.init_containers or [])],
        volumes=[volume_from_v1(v) for v in (spec.volumes or [])],
        image_pull_secrets=[ref.name for ref in (spec.image_pull_secrets or [])],
        status_phase=(status.phase or "") if status else "",
        status_reason=(status.reason or "") if status else "",
        status_message=(status.message or "") if status else "",
    )


__all__ = ["container_from_v1", "volume_from_v1", "workload_from_v1_pod"]
