"""
Logging setup
"""
import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """루트 로거 설정 (앱 시작 시 1회)"""
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    # httpx 요청 로그는 너무 많음
    logging.getLogger("httpx").setLevel(logging.WARNING)
