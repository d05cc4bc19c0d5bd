"""
CDS OpenAPI client

- 요청마다 Signer 로 서명된 URL 생성
- 첫 시도 전 jitter (조회 요청 폭주 분산)
- 전송 실패 / 5xx 는 고정 backoff 후 재시도, 4xx 는 그대로 반환
- 응답 envelope {code, message, data} 디코딩
"""
import asyncio
import json
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from core.config import ProviderConfig
from core.errors import (
    ApiStatusError,
    BackendUnavailableError,
    ConfigurationError,
    ResponseDecodeError,
    TransportError,
)
from services.signer import Signer

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

CCK_PRODUCT_TYPE = "cck"


@dataclass
class CloudRequest:
    """서명 전 요청 (호출마다 생성, 저장하지 않음)"""
    action: str
    method: str
    product_type: str = CCK_PRODUCT_TYPE
    params: Dict[str, str] = field(default_factory=dict)
    body: Any = None

    def __post_init__(self):
        self.method = self.method.upper()
        if self.params is None:
            self.params = {}


@dataclass(frozen=True)
class EnvelopeSchema:
    """응답 envelope 필드 이름. 앞쪽 이름이 우선"""
    version: str
    code_keys: Tuple[str, ...]
    message_keys: Tuple[str, ...]
    data_keys: Tuple[str, ...]


ENVELOPE_SCHEMAS: Dict[str, EnvelopeSchema] = {
    "v1": EnvelopeSchema(
        version="v1",
        code_keys=("Code", "code"),
        message_keys=("Message", "message", "msg"),
        data_keys=("Data", "data"),
    ),
    "v2": EnvelopeSchema(
        version="v2",
        code_keys=("code", "Code"),
        message_keys=("msg", "message", "Message"),
        data_keys=("data", "Data"),
    ),
}


def get_envelope_schema(version: str) -> EnvelopeSchema:
    try:
        return ENVELOPE_SCHEMAS[version]
    except KeyError:
        raise ConfigurationError(
            f"unknown envelope schema {version!r}, expected one of {sorted(ENVELOPE_SCHEMAS)}"
        ) from None


@dataclass
class Envelope:
    code: str = ""
    message: str = ""
    data: Any = None
    result: Any = None


def _first(payload: Dict[str, Any], keys: Tuple[str, ...], default: Any = None) -> Any:
    for key in keys:
        if key in payload:
            return payload[key]
    return default


class OpenApiClient:
    """서명 + 재시도 HTTP 클라이언트"""

    def __init__(
        self,
        provider_config: ProviderConfig,
        http_client: Optional[httpx.AsyncClient] = None,
        signer: Optional[Signer] = None,
    ):
        self.config = provider_config
        self.signer = signer or Signer.from_config(provider_config)
        self.schema = get_envelope_schema(provider_config.envelope_schema)
        self._http = http_client or httpx.AsyncClient(timeout=provider_config.request_timeout)

    async def aclose(self) -> None:
        await self._http.aclose()

    def new_cck_request(
        self,
        action: str,
        method: str,
        params: Optional[Dict[str, str]] = None,
        body: Any = None,
    ) -> CloudRequest:
        """CCK 요청 생성 (CustomerId / UserId 가 설정되어 있으면 추가)"""
        params = dict(params or {})
        if self.config.customer_id:
            params["CustomerId"] = self.config.customer_id
        if self.config.user_id:
            params["UserId"] = self.config.user_id
        return CloudRequest(
            action=action,
            method=method,
            product_type=self.config.product_type or CCK_PRODUCT_TYPE,
            params=params,
            body=body,
        )

    async def send(self, request: CloudRequest, staggered_ms: int = 0) -> httpx.Response:
        """요청 전송

        Args:
            request: 서명 전 요청
            staggered_ms: 첫 시도 전 [0, staggered_ms) ms 랜덤 대기

        Returns:
            httpx.Response: 2xx~4xx 응답

        Raises:
            ConfigurationError: 자격 증명 미설정
            BackendUnavailableError: 모든 시도가 5xx
            TransportError: 모든 시도가 전송 실패
        """
        if not self.config.is_access_key_set:
            raise ConfigurationError("AccessKeyID or accessKeySecret is empty")

        if staggered_ms > 0:
            await asyncio.sleep(random.randrange(staggered_ms) / 1000.0)

        body = json.dumps(request.body)
        attempts = self.config.max_attempts
        last_response: Optional[httpx.Response] = None
        last_error: Optional[httpx.HTTPError] = None

        for attempt in range(1, attempts + 1):
            if attempt > 1:
                await asyncio.sleep(self.config.retry_backoff)

            url = self.signer.sign_url(request.method, request.action, request.product_type, request.params)
            logger.debug(
                f"[{request.action}] attempt {attempt}/{attempts}: {body}",
                extra={"action": request.action},
            )
            try:
                response = await self._http.request(
                    request.method,
                    url,
                    content=body.encode("utf-8"),
                    headers={"Content-Type": "application/json"},
                )
            except httpx.HTTPError as e:
                last_error, last_response = e, None
                logger.warning(
                    f"[{request.action}] transport error on attempt {attempt}: {e}",
                    extra={"action": request.action},
                )
                continue

            if response.status_code >= 500:
                last_error, last_response = None, response
                logger.warning(
                    f"[{request.action}] {response.status_code} on attempt {attempt}",
                    extra={"action": request.action},
                )
                continue

            return response

        if last_response is not None:
            logger.error(
                f"[{request.action}] giving up after {attempts} attempts: {last_response.status_code}",
                extra={"action": request.action},
            )
            raise BackendUnavailableError(request.action, last_response.status_code, last_response.text)

        logger.error(
            f"[{request.action}] giving up after {attempts} attempts: {last_error}",
            extra={"action": request.action},
        )
        raise TransportError(request.action, last_error)

    def decode(
        self,
        response: httpx.Response,
        action: str,
        result_type: Optional[Type[T]] = None,
    ) -> Envelope:
        """응답 envelope 디코딩

        Raises:
            ApiStatusError: HTTP status >= 400
            ResponseDecodeError: JSON 이 아니거나 data 가 result_type 과 맞지 않음
        """
        content = response.text
        logger.debug(f"[{action}] response: {content}", extra={"action": action})
        if response.status_code >= 400:
            raise ApiStatusError(action, response.status_code, content)

        try:
            payload = json.loads(content)
        except ValueError as e:
            raise ResponseDecodeError(f"{action}: response is not JSON: {e}") from e
        if not isinstance(payload, dict):
            raise ResponseDecodeError(f"{action}: response envelope is not an object")

        code = _first(payload, self.schema.code_keys, "")
        message = _first(payload, self.schema.message_keys, "")
        data = _first(payload, self.schema.data_keys)
        envelope = Envelope(
            code="" if code is None else str(code),
            message="" if message is None else str(message),
            data=data,
        )

        if result_type is not None:
            try:
                envelope.result = result_type.model_validate(data if data is not None else {})
            except ValidationError as e:
                raise ResponseDecodeError(f"{action}: unexpected data shape: {e}") from e
        return envelope

    async def call(
        self,
        action: str,
        method: str,
        body: Any = None,
        result_type: Optional[Type[T]] = None,
        staggered_ms: int = 0,
    ) -> Envelope:
        """new_cck_request + send + decode"""
        request = self.new_cck_request(action, method, body=body)
        response = await self.send(request, staggered_ms=staggered_ms)
        return self.decode(response, action, result_type)


__all__ = [
    "CCK_PRODUCT_TYPE",
    "CloudRequest",
    "EnvelopeSchema",
    "ENVELOPE_SCHEMAS",
    "get_envelope_schema",
    "Envelope",
    "OpenApiClient",
]
