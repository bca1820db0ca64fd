"""Helpers for reconciling inconsistent backend JSON shapes.

The backend wraps payloads differently per endpoint (``{data: ...}``,
``{content: [...]}``, bare values) and is unversioned, so every field is read
through an ordered tuple of candidate extractors. First present value wins.
None of these helpers raise for any JSON-serializable input.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

Extractor = Callable[[Mapping[str, Any]], Any]


def is_present(value: Any) -> bool:
    """Absent means missing, null, or empty string."""
    return value is not None and value != ""


def field(name: str) -> Extractor:
    """Extractor reading one top-level key."""

    def _extract(payload: Mapping[str, Any]) -> Any:
        return payload.get(name)

    _extract.__name__ = f"field_{name}"
    return _extract


def first_present(payload: Mapping[str, Any], extractors: Iterable[Extractor]) -> Any:
    """Run extractors in order and return the first present value, else None."""
    for extract in extractors:
        value = extract(payload)
        if is_present(value):
            return value
    return None


def unwrap_entity(response: Any) -> Any:
    """Single-entity payload: ``response["data"]`` when set, else the response."""
    if isinstance(response, Mapping):
        data = response.get("data")
        if data:
            return data
    return response


def extract_collection(response: Any, keys: Sequence[str] = ("data", "content")) -> list[Any]:
    """Collection payload: the response if a list, else the first list under ``keys``.

    Unrecognized shapes are logged and yield an empty list.
    """
    if isinstance(response, list):
        return response
    if isinstance(response, Mapping):
        for key in keys:
            value = response.get(key)
            if isinstance(value, list):
                return value
    logger.warning(
        "normalize.unexpected_collection_shape",
        response_type=type(response).__name__,
        keys=sorted(response.keys()) if isinstance(response, Mapping) else None,
    )
    return []


def as_text(value: Any) -> str | None:
    """Coerce a scalar to text; containers and None become None."""
    if value is None or isinstance(value, (dict, list)):
        return None
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


def as_number(value: Any) -> float | None:
    """Coerce to a finite float; anything unusable becomes None."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def as_identifier(value: Any) -> int | str | None:
    """Keep ints and strings as-is; stringify other scalars."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, str)):
        return value
    return as_text(value)
