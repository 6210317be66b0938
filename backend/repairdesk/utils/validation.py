from __future__ import annotations
"""Reusable validation helpers for request payloads and lifecycle values.

Every helper raises a taxonomy error from ``repairdesk.errors`` so callers get
consistent 400 semantics without building messages themselves.
"""
import re
from typing import Any, Dict, Iterable
from repairdesk.errors import InvalidInput, InvalidState

PHONE_RE = re.compile(r'^1[3-9]\d{9}$')


def validate_status(new_status: Any, allowed: Iterable[str], field_name: str = 'status') -> str:
    """Validate that new_status is inside allowed.

    Returns the status (to enable inline usage) or raises InvalidState.
    """
    if not isinstance(new_status, str) or new_status not in allowed:
        raise InvalidState(f"{field_name} invalid")
    return new_status


def json_object(payload: Any) -> Dict[str, Any]:
    """Return a parsed JSON body as a dict; a missing body is empty, any non-object is rejected."""
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise InvalidInput('request body must be a JSON object')
    return payload


def require_fields(data: Dict[str, Any], fields: Iterable[str]) -> None:
    missing = [f for f in fields if data.get(f) in (None, '')]
    if missing:
        raise InvalidInput(f"{', '.join(missing)} required")


def require_str(data: Dict[str, Any], fields: Iterable[str]) -> None:
    """Reject non-string values for text fields; absent or null values pass."""
    bad = [f for f in fields if data.get(f) is not None and not isinstance(data.get(f), str)]
    if bad:
        raise InvalidInput(f"{', '.join(bad)} must be text")


def require_text(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput(f"{field_name} must not be empty")
    return value


def is_valid_phone(phone: Any) -> bool:
    return isinstance(phone, str) and bool(PHONE_RE.match(phone))


def validate_phone(phone: Any) -> str:
    if not is_valid_phone(phone):
        raise InvalidInput('phone invalid')
    return phone


# Signed 64-bit range accepted by the database integer columns
DB_INT_MIN, DB_INT_MAX = -(2 ** 63), 2 ** 63 - 1


def fits_db_int(value: int) -> bool:
    return DB_INT_MIN <= value <= DB_INT_MAX


def parse_int(value: Any, field_name: str, bounded: bool = True) -> int:
    if isinstance(value, bool):
        raise InvalidInput(f"{field_name} must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"{field_name} must be an integer")
    if bounded and not fits_db_int(number):
        raise InvalidInput(f"{field_name} out of range")
    return number


__all__ = [
    'json_object', 'validate_status', 'require_fields', 'require_str', 'require_text', 'is_valid_phone', 'validate_phone',
    'fits_db_int', 'parse_int',
]
