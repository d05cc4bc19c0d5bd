"""
Virtual node API
노드 capacity, conditions, addresses
"""
from fastapi import APIRouter, Depends

from core.dependencies import get_provider
from services.provider import ECIProvider

router = APIRouter(prefix="/api/node", tags=["node"])


@router.get("")
async def get_node(provider: ECIProvider = Depends(get_provider)):
    """가상 노드 정보"""
    return {
        "name": provider.config.node_name,
        "operating_system": provider.operating_system(),
        "capacity": provider.capacity(),
        "allocatable": provider.capacity(),
        "conditions": provider.node_conditions(),
        "addresses": provider.node_addresses(),
        "daemon_endpoints": provider.node_daemon_endpoints(),
    }
