"""
Provider error hierarchy

- ConfigurationError: 자격 증명 누락 등 설정 오류
- TransportError / BackendUnavailableError: 재시도 후에도 실패한 전송 / 5xx
- ApiStatusError / ResponseDecodeError: 응답 처리 오류
- BusinessError: 2xx 응답 안의 비즈니스 에러 코드
- TranslationError: Pod -> 생성 요청 변환 실패
"""
from typing import Optional


class ProviderError(Exception):
    """Base class for all provider errors"""


class ConfigurationError(ProviderError):
    """Missing or invalid provider configuration"""


class TransportError(ProviderError):
    """Connection, DNS or timeout failure after all attempts"""

    def __init__(self, action: str, cause: Optional[BaseException] = None):
        self.action = action
        self.cause = cause
        super().__init__(f"{action}: transport failure: {cause}")


class BackendUnavailableError(ProviderError):
    """Remote service kept answering 5xx"""

    def __init__(self, action: str, status_code: int, body: str = ""):
        self.action = action
        self.status_code = status_code
        self.body = body
        super().__init__(f"{action}: backend unavailable (status {status_code})")


class ApiStatusError(ProviderError):
    """Transport-level status >= 400"""

    def __init__(self, action: str, status_code: int, body: str = ""):
        self.action = action
        self.status_code = status_code
        self.body = body
        super().__init__(f"{action}: response code: {status_code}")


class ResponseDecodeError(ProviderError):
    """Response body is not a valid envelope"""


class BusinessError(ProviderError):
    """Non-success business code inside a 2xx response"""

    def __init__(self, code: str, message: str = ""):
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}" if message else code)


class QuotaExceededError(BusinessError):
    """MaxPodError: too many pods on the virtual node"""


class TaskCreationError(BusinessError):
    """CreateEciTaskError: remote task could not be created"""


class TranslationError(ProviderError):
    """Workload could not be converted to a create request"""


class MissingResourceError(TranslationError):
    def __init__(self, kind: str, name: str, workload: str):
        self.kind = kind
        self.name = name
        self.workload = workload
        super().__init__(f"{kind} {name} is required by Pod {workload} and does not exist")


class UnsupportedVolumeError(TranslationError):
    def __init__(self, volume: str, workload: str):
        self.volume = volume
        self.workload = workload
        super().__init__(f"Pod {workload} requires volume {volume} which is of an unsupported type")


class UnsupportedCredentialError(TranslationError):
    def __init__(self, secret_name: str, secret_type: str):
        self.secret_name = secret_name
        self.secret_type = secret_type
        super().__init__(
            f"image pull secret {secret_name} has type {secret_type!r}, "
            "not one of kubernetes.io/dockercfg or kubernetes.io/dockerconfigjson"
        )


class UnsupportedWorkloadError(ProviderError):
    """Workload kind the provider refuses to run (e.g. DaemonSet pods)"""


class WorkloadFailedError(ProviderError):
    """Workload already marked failed by the orchestrator"""


class NotFoundError(ProviderError):
    """No remote container group for the workload"""


__all__ = [
    "ProviderError",
    "ConfigurationError",
    "TransportError",
    "BackendUnavailableError",
    "ApiStatusError",
    "ResponseDecodeError",
    "BusinessError",
    "QuotaExceededError",
    "TaskCreationError",
    "TranslationError",
    "MissingResourceError",
    "UnsupportedVolumeError",
    "UnsupportedCredentialError",
    "UnsupportedWorkloadError",
    "WorkloadFailedError",
    "NotFoundError",
]
