"""
Pod management API
Provider 의 create/update/delete/get/list 연산을 HTTP 로 노출
"""
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from core.dependencies import get_provider
from core.errors import (
    BackendUnavailableError,
    BusinessError,
    ConfigurationError,
    NotFoundError,
    ProviderError,
    TransportError,
    TranslationError,
    UnsupportedWorkloadError,
    WorkloadFailedError,
)
from models.workload import PodSnapshot, WorkloadSpec, WorkloadStatus
from services.provider import ECIProvider
from services.status import INSTANCE_ID_ANNOTATION

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/pods", tags=["pods"])


def _to_http(e: ProviderError) -> HTTPException:
    """Provider 에러 -> HTTP 상태 코드"""
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, (UnsupportedWorkloadError, TranslationError)):
        return HTTPException(status_code=422, detail=str(e))
    if isinstance(e, (BusinessError, WorkloadFailedError)):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, (BackendUnavailableError, TransportError)):
        return HTTPException(status_code=503, detail=str(e))
    if isinstance(e, ConfigurationError):
        return HTTPException(status_code=500, detail=str(e))
    return HTTPException(status_code=502, detail=str(e))


@router.get("", response_model=List[PodSnapshot])
async def list_pods(provider: ECIProvider = Depends(get_provider)):
    """가상 노드의 모든 Pod"""
    try:
        return await provider.get_pods()
    except ProviderError as e:
        raise _to_http(e)


@router.get("/{namespace}/{name}", response_model=PodSnapshot)
async def get_pod(namespace: str, name: str, provider: ECIProvider = Depends(get_provider)):
    try:
        pod = await provider.get_pod(namespace, name)
    except ProviderError as e:
        raise _to_http(e)
    if pod is None:
        raise HTTPException(status_code=404, detail=f"Pod {namespace}/{name} not found")
    return pod


@router.get("/{namespace}/{name}/status", response_model=WorkloadStatus)
async def get_pod_status(namespace: str, name: str, provider: ECIProvider = Depends(get_provider)):
    try:
        status = await provider.get_pod_status(namespace, name)
    except ProviderError as e:
        raise _to_http(e)
    if status is None:
        raise HTTPException(status_code=404, detail=f"Pod {namespace}/{name} not found")
    return status


@router.post("", status_code=201)
async def create_pod(workload: WorkloadSpec, provider: ECIProvider = Depends(get_provider)):
    try:
        await provider.create_pod(workload)
    except ProviderError as e:
        logger.error(f"create pod {workload.namespace}/{workload.name} failed: {e}")
        raise _to_http(e)
    return {"status": "created", "namespace": workload.namespace, "name": workload.group_name}


@router.put("", response_model=Dict[str, str])
async def update_pod(workload: WorkloadSpec, provider: ECIProvider = Depends(get_provider)):
    """annotation 갱신 결과 반환"""
    try:
        return await provider.update_pod(workload)
    except ProviderError as e:
        raise _to_http(e)


@router.delete("/{namespace}/{name}")
async def delete_pod(
    namespace: str,
    name: str,
    instance_id: Optional[str] = Query(None, description="알고 있는 eci-instance-id"),
    provider: ECIProvider = Depends(get_provider),
):
    workload = WorkloadSpec(namespace=namespace, name=name)
    if instance_id:
        workload.annotations[INSTANCE_ID_ANNOTATION] = instance_id
    try:
        await provider.delete_pod(workload)
    except ProviderError as e:
        raise _to_http(e)
    return {"status": "deleted", "namespace": namespace, "name": name}
