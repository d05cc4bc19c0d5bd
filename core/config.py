"""
Application configuration settings

Provider 입력값(자격 증명, 호스트, 사이트/클러스터/노드 ID)은 전역 변수가 아니라
ProviderConfig 객체로 한 번 생성해서 각 컴포넌트 생성자에 전달한다.
"""
import os
from typing import List, Optional

from pydantic import BaseModel, Field


class Settings:
    """Application settings"""

    # App
    APP_TITLE: str = "CDS ECI Virtual Node API"
    APP_VERSION: str = "1.0.0"

    # CORS
    CORS_ORIGINS: List[str] = ["*"]
    CORS_CREDENTIALS: bool = True
    CORS_METHODS: List[str] = ["*"]
    CORS_HEADERS: List[str] = ["*"]

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key, "")
    try:
        return int(value)
    except ValueError:
        return default


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key, "")
    try:
        return float(value)
    except ValueError:
        return default


class ProviderConfig(BaseModel):
    """ECI provider 설정

    Signer, OpenApiClient, 번역기, Provider가 공유하는 설정값.
    테스트에서는 가짜 자격 증명으로 직접 생성한다.
    """
    access_key_id: str = Field(default="", description="OpenAPI AccessKeyId")
    access_key_secret: str = Field(default="", description="HMAC-SHA1 서명 키")
    api_host: str = Field(default="", description="OpenAPI 게이트웨이 (scheme 포함)")
    product_type: str = Field(default="cck", description="URL 경로 prefix")
    api_version: str = Field(default="2019-08-08", description="Version 파라미터")

    site_id: str = ""
    cluster_id: str = ""
    node_id: str = ""
    node_name: str = "cds-virtual-node"
    private_id: str = ""
    max_pods: str = "100"
    customer_id: Optional[str] = None
    user_id: Optional[str] = None

    # 응답 envelope 필드 이름 ("v1": Code/Message/Data, "v2": code/msg/data)
    envelope_schema: str = "v1"

    # 재시도 정책
    max_attempts: int = Field(default=3, ge=1)
    retry_backoff: float = Field(default=10.0, ge=0, description="재시도 전 대기 (초)")
    request_timeout: float = Field(default=30.0, gt=0)
    describe_staggered_ms: int = Field(default=3000, ge=0, description="조회 요청 jitter 상한 (ms)")

    # ConfigFileVolume content 를 base64 로 보낼지 여부
    config_file_base64: bool = False

    # 노드 정보
    operating_system: str = "Linux"
    internal_ip: str = ""
    daemon_endpoint_port: int = 10250

    @property
    def is_access_key_set(self) -> bool:
        return bool(self.access_key_id) and bool(self.access_key_secret)

    @classmethod
    def from_env(cls) -> "ProviderConfig":
        """환경 변수에서 설정 로드"""
        return cls(
            access_key_id=os.getenv("CDS_ACCESS_KEY_ID", ""),
            access_key_secret=os.getenv("CDS_ACCESS_KEY_SECRET", ""),
            api_host=os.getenv("OPENAPI_HOST", ""),
            site_id=os.getenv("SITE_ID", ""),
            cluster_id=os.getenv("CLUSTER_ID", ""),
            node_id=os.getenv("DEFAULT_NODE_ID", ""),
            node_name=os.getenv("DEFAULT_NODE_NAME") or "cds-virtual-node",
            private_id=os.getenv("PRIVATE_ID", ""),
            max_pods=os.getenv("MAX_PODS") or "100",
            customer_id=os.getenv("CUSTOMER_ID") or None,
            user_id=os.getenv("USER_ID") or None,
            envelope_schema=os.getenv("CDS_ENVELOPE_SCHEMA", "v1"),
            max_attempts=_env_int("CDS_MAX_ATTEMPTS", 3),
            retry_backoff=_env_float("CDS_RETRY_BACKOFF", 10.0),
            request_timeout=_env_float("CDS_REQUEST_TIMEOUT", 30.0),
            describe_staggered_ms=_env_int("CDS_DESCRIBE_STAGGERED_MS", 3000),
            config_file_base64=os.getenv("CDS_CONFIG_FILE_BASE64", "false").lower() == "true",
            internal_ip=os.getenv("VKUBELET_POD_IP", ""),
            daemon_endpoint_port=_env_int("KUBELET_PORT", 10250),
        )
