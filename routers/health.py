"""
Health check API
"""
from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/api/health")
async def health_check(request: Request):
    """API 헬스체크"""
    provider = getattr(request.app.state, "provider", None)
    return {
        "status": "healthy",
        "service": "cds-eci-provider",
        "provider_ready": provider is not None,
        "credentials_set": bool(provider and provider.config.is_access_key_set),
    }
