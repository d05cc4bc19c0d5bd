"""
FastAPI dependencies
"""
from fastapi import HTTPException, Request

from services.provider import ECIProvider


def get_provider(request: Request) -> ECIProvider:
    """app.state 에 등록된 ECIProvider"""
    provider = getattr(request.app.state, "provider", None)
    if provider is None:
        raise HTTPException(status_code=503, detail="provider not initialized")
    return provider
