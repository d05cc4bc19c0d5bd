"""
CDS ECI Virtual Node API

Pod 명세를 CDS ECI container group 으로 생성/조회/삭제하는 provider 서버
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import ProviderConfig, settings
from core.kubernetes import KubernetesResourceManager
from core.log import setup_logging
from routers import health_router, node_router, pods_router
from services.cdsapi import OpenApiClient
from services.provider import ECIProvider

logger = logging.getLogger(__name__)


def build_provider(provider_config: Optional[ProviderConfig] = None) -> ECIProvider:
    """환경 변수 설정으로 ECIProvider 생성"""
    provider_config = provider_config or ProviderConfig.from_env()
    if not provider_config.is_access_key_set:
        logger.warning("CDS_ACCESS_KEY_ID / CDS_ACCESS_KEY_SECRET not set, every API call will fail")
    return ECIProvider(
        provider_config,
        OpenApiClient(provider_config),
        KubernetesResourceManager(),
    )


def create_app(provider: Optional[ECIProvider] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = provider is None
        app.state.provider = provider or build_provider()
        logger.info(f"provider ready for node {app.state.provider.config.node_name}")
        yield
        if owned:
            await app.state.provider.close()

    app = FastAPI(title=settings.APP_TITLE, version=settings.APP_VERSION, lifespan=lifespan)

    # CORS 설정
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=settings.CORS_CREDENTIALS,
        allow_methods=settings.CORS_METHODS,
        allow_headers=settings.CORS_HEADERS,
    )

    # ============================================
    # 라우터 등록
    # ============================================
    app.include_router(health_router)
    app.include_router(pods_router)
    app.include_router(node_router)
    return app


setup_logging(settings.LOG_LEVEL)
app = create_app()


if __name__ == "__main__":
    import os
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
