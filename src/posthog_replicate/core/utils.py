"""Helpers for reading loosely shaped values returned or raised by Replicate.

The Replicate SDK returns pydantic models (``Prediction``, ``ServerSentEvent``)
while test doubles and older code paths use plain mappings. These helpers read
both shapes the same way so the wrapper never has to care.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

DEFAULT_ERROR_STATUS = 500

_STATUS_FIELDS = ("status", "status_code", "statusCode")
_RESPONSE_STATUS_FIELDS = ("status", "status_code")

OUTPUT_EVENT = "output"


def get_field(record: Any, name: str, default: Any = None) -> Any:
    """Read ``name`` from a mapping key or an attribute.

    Args:
        record: Mapping, object or None.
        name: Key or attribute name.
        default: Value returned when the field is missing.

    Returns:
        The field value, or ``default``.
    """
    if record is None:
        return default
    if isinstance(record, Mapping):
        return record.get(name, default)
    return getattr(record, name, default)


def _int_field(record: Any, names: tuple[str, ...]) -> int | None:
    for name in names:
        value = get_field(record, name)
        # bool is an int subclass; True is not an HTTP status
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def extract_http_status(error: Any) -> int | None:
    """Extract an HTTP status code from an error raised by Replicate.

    Checks, in order: ``status``, ``status_code``, ``statusCode`` on the
    error itself, then ``status`` and ``status_code`` on its ``response``.
    ``replicate.exceptions.ReplicateError`` carries ``status``;
    ``httpx.HTTPStatusError`` carries a response with ``status_code``.

    Args:
        error: Raised exception or any error-shaped value.

    Returns:
        The first integer status found, or None.
    """
    if error is None or isinstance(error, (str, bytes, int, float)):
        return None

    status = _int_field(error, _STATUS_FIELDS)
    if status is not None:
        return status

    response = get_field(error, "response")
    if response is None:
        return None
    return _int_field(response, _RESPONSE_STATUS_FIELDS)


def http_status_for(error: Any) -> int:
    """Return the status extracted from ``error``, defaulting to 500."""
    status = extract_http_status(error)
    return status if status is not None else DEFAULT_ERROR_STATUS


def event_type(chunk: Any) -> str | None:
    """Return the SSE event type of a stream chunk as a plain string.

    Replicate's ``ServerSentEvent.event`` is an Enum; mapping chunks carry a
    plain string under ``"event"``.
    """
    kind = get_field(chunk, "event")
    if isinstance(kind, Enum):
        kind = kind.value
    return None if kind is None else str(kind)


def is_output_chunk(chunk: Any) -> bool:
    """Return True when ``chunk`` carries model output."""
    return event_type(chunk) == OUTPUT_EVENT


def chunk_text(chunk: Any) -> str:
    """Return the textual payload of a stream chunk."""
    data = get_field(chunk, "data", "")
    return data if isinstance(data, str) else str(data)


def model_identifier(value: Any) -> str | None:
    """Return a printable model/version/deployment identifier.

    Replicate accepts ``Model``, ``Version`` and ``Deployment`` objects as
    well as strings. Objects contribute their ``id`` (versions) or
    ``owner/name`` (models and deployments).
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value or None

    owner = get_field(value, "owner")
    name = get_field(value, "name")
    if owner and name:
        return f"{owner}/{name}"

    identifier = get_field(value, "id")
    if identifier:
        return str(identifier)
    return str(value)


__all__ = [
    "DEFAULT_ERROR_STATUS",
    "OUTPUT_EVENT",
    "chunk_text",
    "event_type",
    "extract_http_status",
    "get_field",
    "http_status_for",
    "is_output_chunk",
    "model_identifier",
]
