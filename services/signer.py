"""
OpenAPI 요청 서명 (HMAC-SHA1)

서명 절차:
1. 호출 파라미터 + 고정 파라미터(Action, AccessKeyId, SignatureMethod,
   SignatureNonce, SignatureVersion, Timestamp, Version) 병합
2. 키를 바이트 순서로 정렬
3. key=value 를 percent-encode 해서 & 로 연결
4. "<METHOD>&%2F&<encode(연결 문자열)>" 에 HMAC-SHA1, base64 -> Signature
5. Signature 포함 전체 파라미터를 query string 으로 붙여 URL 생성
"""
import base64
import hashlib
import hmac
import uuid
from datetime import datetime, timezone
from typing import Dict, Optional
from urllib.parse import quote_plus

SIGNATURE_METHOD = "HMAC-SHA1"
SIGNATURE_VERSION = "1.0"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def percent_encode(value: str) -> str:
    """Query escape: 영숫자와 -_.~ 외에는 모두 인코딩, 공백은 '+'"""
    return quote_plus(value, safe="")


def _sorted_keys(params: Dict[str, str]):
    return sorted(params, key=lambda k: k.encode("utf-8"))


def canonical_query(params: Dict[str, str]) -> str:
    return "&".join(
        f"{percent_encode(k)}={percent_encode(params[k])}" for k in _sorted_keys(params)
    )


def string_to_sign(method: str, params: Dict[str, str]) -> str:
    return f"{method.upper()}&%2F&{percent_encode(canonical_query(params))}"


def compute_signature(secret: str, base_string: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), base_string.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


class Signer:
    """ProviderConfig 자격 증명으로 요청 URL 을 만든다"""

    def __init__(self, access_key_id: str, access_key_secret: str, api_host: str, api_version: str):
        self.access_key_id = access_key_id
        self.access_key_secret = access_key_secret
        self.api_host = api_host.rstrip("/")
        self.api_version = api_version

    @classmethod
    def from_config(cls, provider_config) -> "Signer":
        return cls(
            access_key_id=provider_config.access_key_id,
            access_key_secret=provider_config.access_key_secret,
            api_host=provider_config.api_host,
            api_version=provider_config.api_version,
        )

    def signed_params(
        self,
        method: str,
        action: str,
        params: Optional[Dict[str, str]] = None,
        nonce: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> Dict[str, str]:
        """Signature 를 포함한 전체 파라미터

        nonce, timestamp 를 고정하면 같은 입력에 항상 같은 서명이 나온다.
        """
        if timestamp is None:
            timestamp = datetime.now(timezone.utc)
        elif timestamp.tzinfo is not None:
            timestamp = timestamp.astimezone(timezone.utc)

        url_params = {
            "Action": action,
            "AccessKeyId": self.access_key_id,
            "SignatureMethod": SIGNATURE_METHOD,
            "SignatureNonce": nonce or str(uuid.uuid4()),
            "SignatureVersion": SIGNATURE_VERSION,
            "Timestamp": timestamp.strftime(TIMESTAMP_FORMAT),
            "Version": self.api_version,
        }
        # 호출자 파라미터가 고정 파라미터를 덮어씀
        url_params.update(params or {})

        base_string = string_to_sign(method, url_params)
        url_params["Signature"] = compute_signature(self.access_key_secret, base_string)
        return url_params

    def sign_url(
        self,
        method: str,
        action: str,
        product_type: str,
        params: Optional[Dict[str, str]] = None,
        nonce: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> str:
        url_params = self.signed_params(method, action, params, nonce=nonce, timestamp=timestamp)
        return f"{self.api_host}/{product_type}?{canonical_query(url_params)}"


__all__ = [
    "SIGNATURE_METHOD",
    "SIGNATURE_VERSION",
    "TIMESTAMP_FORMAT",
    "percent_encode",
    "canonical_query",
    "string_to_sign",
    "compute_signature",
    "Signer",
]
