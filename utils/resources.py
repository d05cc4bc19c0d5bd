"""
Kubernetes 리소스 단위 변환 유틸리티
CPU는 코어, 메모리는 GiB 단위 float 로 변환
"""
import math
import re
from decimal import Decimal, InvalidOperation
from typing import Optional

_BINARY_SUFFIXES = {
    "Ki": 2 ** 10,
    "Mi": 2 ** 20,
    "Gi": 2 ** 30,
    "Ti": 2 ** 40,
    "Pi": 2 ** 50,
    "Ei": 2 ** 60,
}

_DECIMAL_SUFFIXES = {
    "n": Decimal("1e-9"),
    "u": Decimal("1e-6"),
    "m": Decimal("1e-3"),
    "": Decimal(1),
    "k": Decimal("1e3"),
    "M": Decimal("1e6"),
    "G": Decimal("1e9"),
    "T": Decimal("1e12"),
    "P": Decimal("1e15"),
    "E": Decimal("1e18"),
}

_QUANTITY_RE = re.compile(r"^([+-]?[0-9.]+(?:[eE][+-]?[0-9]+)?)([a-zA-Z]*)$")

GIB = Decimal(2 ** 30)


def parse_quantity(quantity: Optional[str]) -> Decimal:
    """Kubernetes quantity 문자열을 기본 단위 Decimal 로 변환

    지원되는 형식:
    - '500m' -> 0.5
    - '2' -> 2
    - '256Mi' -> 268435456
    - '1G' -> 1000000000
    - '1e3' -> 1000

    Raises:
        ValueError: 형식이 잘못된 경우
    """
    if quantity is None:
        raise ValueError("empty quantity")
    text = str(quantity).strip()
    match = _QUANTITY_RE.match(text)
    if not match:
        raise ValueError(f"invalid quantity: {quantity!r}")
    number, suffix = match.groups()
    try:
        value = Decimal(number)
    except InvalidOperation as e:
        raise ValueError(f"invalid quantity: {quantity!r}") from e

    if suffix in _BINARY_SUFFIXES:
        return value * _BINARY_SUFFIXES[suffix]
    if suffix in _DECIMAL_SUFFIXES:
        return value * _DECIMAL_SUFFIXES[suffix]
    raise ValueError(f"invalid quantity suffix: {quantity!r}")


def parse_cpu(cpu_str: str) -> float:
    """CPU 문자열을 코어 수로 변환 (밀리코어 단위 올림)

    - '500m' -> 0.5
    - '2' -> 2.0
    - '100u' -> 0.001
    """
    value = parse_quantity(cpu_str)
    millis = math.ceil(value * 1000)
    return millis / 1000.0


def parse_memory(mem_str: str) -> float:
    """메모리 문자열을 GiB 로 변환 (바이트 단위 올림)

    - '256Mi' -> 0.25
    - '2Gi' -> 2.0
    """
    value = math.ceil(parse_quantity(mem_str))
    return float(Decimal(value) / GIB)


__all__ = ["parse_quantity", "parse_cpu", "parse_memory"]
