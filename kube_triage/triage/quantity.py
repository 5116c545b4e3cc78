"""Kubernetes quantity parsing.

CPU values are normalized to millicores and memory values to mebibytes.
Both parsers return None ("unset") instead of raising when the input is empty
or cannot be matched; callers must not treat None as zero.
"""
from __future__ import annotations
import re
from decimal import Decimal, InvalidOperation
from typing import Optional, Tuple

_QUANTITY_RE = re.compile(r'^\+?((?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)([A-Za-z]*)$')

_MI = Decimal(1024 * 1024)

# largest value a Kubernetes quantity can hold (int64)
_MAX_QUANTITY = Decimal(2 ** 63 - 1)

# multiplier to bytes
_MEMORY_SUFFIXES = {
    'Ki': Decimal(1024),
    'Mi': Decimal(1024 ** 2),
    'Gi': Decimal(1024 ** 3),
    'Ti': Decimal(1024 ** 4),
    'Pi': Decimal(1024 ** 5),
    'Ei': Decimal(1024 ** 6),
    'k': Decimal(1000),
    'K': Decimal(1000),
    'M': Decimal(1000 ** 2),
    'G': Decimal(1000 ** 3),
    'T': Decimal(1000 ** 4),
    'P': Decimal(1000 ** 5),
    'E': Decimal(1000 ** 6),
    'm': Decimal('0.001'),
    '': Decimal(1),
}

# multiplier to millicores
_CPU_SUFFIXES = {
    'n': Decimal('0.000001'),
    'u': Decimal('0.001'),
    'm': Decimal(1),
    '': Decimal(1000),
}


def _split(raw: Optional[str]) -> Optional[Tuple[Decimal, str]]:
    if raw is None:
        return None
    text = str(raw).strip()
    if not text:
        return None
    m = _QUANTITY_RE.match(text)
    if not m:
        return None
    try:
        return Decimal(m.group(1)), m.group(2)
    except InvalidOperation:
        return None


def _scaled(value: Decimal) -> Optional[int]:
    if value > _MAX_QUANTITY:
        return None
    return int(value)


def parse_cpu(raw: Optional[str]) -> Optional[int]:
    """Convert a CPU quantity ('250m', '1.5', '12345n') to millicores.

    Bare numbers are cores; fractional results are truncated toward zero.
    """
    parts = _split(raw)
    if parts is None:
        return None
    number, suffix = parts
    factor = _CPU_SUFFIXES.get(suffix)
    if factor is None:
        return None
    try:
        return _scaled(number * factor)
    except ArithmeticError:
        return None


def parse_memory(raw: Optional[str]) -> Optional[int]:
    """Convert a memory quantity ('512Mi', '1G', '1048576') to MiB.

    Binary suffixes scale by powers of 1024, decimal suffixes are SI byte
    multiples and a bare number is bytes.
    """
    parts = _split(raw)
    if parts is None:
        return None
    number, suffix = parts
    factor = _MEMORY_SUFFIXES.get(suffix)
    if factor is None:
        return None
    try:
        return _scaled(number * factor / _MI)
    except ArithmeticError:
        return None


def percentage(usage: Optional[int], limit: Optional[int]) -> Optional[float]:
    """usage/limit as a percent rounded to one decimal, or None without a usable limit."""
    if usage is None or limit is None or limit <= 0:
        return None
    return round(usage / limit * 100, 1)
