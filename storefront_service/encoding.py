"""
encoding.py — Precision-safe JSON handling for remote responses

Remote bodies are decoded with non-integral numbers as `Decimal` (Python ints
are already exact). `normalize()` then prepares a decoded value for the
storefront:

    • snake_case keys become camelCase
    • integers outside the JavaScript safe range become decimal strings
    • decimals become floats only when that is exact, strings otherwise
"""

import json
from decimal import Decimal
from typing import Any

MAX_SAFE_INTEGER = 2 ** 53 - 1


def loads(data) -> Any:
    """Decode a JSON document without routing any number through float."""
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    return json.loads(data, parse_float=Decimal)


def to_camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _normalize_number(value):
    if isinstance(value, Decimal):
        if not value.is_finite():
            return str(value)
        as_float = float(value)
        if Decimal(repr(as_float)) == value:
            return as_float
        return str(value)
    if abs(value) > MAX_SAFE_INTEGER:
        return str(value)
    return value


def normalize(value: Any, camelize: bool = True) -> Any:
    """
    Returns a JSON-ready copy of `value` in which no number can lose precision.

    Args:
        value: Decoded JSON (dicts, lists, scalars).
        camelize (bool): Convert dict keys from snake_case to camelCase.
    """
    if isinstance(value, dict):
        return {
            (to_camel(k) if camelize and isinstance(k, str) else k): normalize(v, camelize)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [normalize(v, camelize) for v in value]
    if isinstance(value, bool) or value is None or isinstance(value, str):
        return value
    if isinstance(value, (int, Decimal)):
        return _normalize_number(value)
    return value
