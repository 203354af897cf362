"""Helpers for turning API ``data`` payloads into snapshot dataclasses.

Absent keys take the zero value of the field's type. The API is loose about
numbers (``loadavg`` and ``cpuinfo.mhz`` arrive as strings), so numeric fields
are coerced rather than trusted.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from proxmox_cli.exceptions import DecodeError

T = TypeVar("T")

logger = logging.getLogger(__name__)


def _fail(message: str) -> DecodeError:
    logger.error("Error decoding response: %s", message)
    return DecodeError(message)


def as_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def as_int(value: Any) -> int:
    if value is None or value == "":
        return 0
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError) as exc:
        raise _fail(f"expected an integer, got {value!r}") from exc


def as_float(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise _fail(f"expected a number, got {value!r}") from exc


def require_object(data: Any, what: str) -> dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise _fail(f"expected {what} to be an object, got {type(data).__name__}")
    return data


def decode_list(data: Any, build: Callable[[dict[str, Any]], T], what: str) -> list[T]:
    """Build every item or raise; never return a partial list."""
    if not isinstance(data, list):
        raise _fail(f"expected {what} to be a list, got {type(data).__name__}")
    return [build(require_object(item, what)) for item in data]


def decode_task_id(data: Any) -> str:
    if not isinstance(data, str):
        raise _fail(f"expected a task identifier string, got {type(data).__name__}")
    return data


def as_float_tuple(value: Any) -> tuple[float, ...]:
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)):
        raise _fail(f"expected a list of numbers, got {value!r}")
    return tuple(as_float(v) for v in value)
