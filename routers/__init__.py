"""
API Routers

- pods  : Pod create/update/delete/get/list
- node  : 가상 노드 정보
- health: 헬스체크
"""
from .pods import router as pods_router
from .node import router as node_router
from .health import router as health_router

__all__ = [
    'pods_router',
    'node_router',
    'health_router',
]
