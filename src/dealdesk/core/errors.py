"""Tagged error types produced at the HTTP boundary.

Every failure a caller can observe is one of:

- ClientValidationError: a write payload was rejected before any request was sent.
- ApiError: the backend answered with an error status, or the request never
  completed (transport failure, raw_status 0).

ApiError carries a closed ``kind`` so view code can branch on it without
poking at response internals. The human-readable message is extracted once,
here, from whichever error body shape the backend produced.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

import httpx

# ── Default messages ────────────────────────────────────────────────────────

GENERIC_MESSAGE = "An unexpected error occurred. Please try again."
SERVER_ERROR_MESSAGE = "Server Error: An unexpected error occurred on the server."
CORS_MESSAGE = "CORS Error: Backend not configured. Please check backend CORS settings."
NETWORK_MESSAGE = "Network Error: Cannot reach backend server. Is it running?"
CONNECTION_MESSAGE = (
    "Connection Error: Cannot connect to backend. "
    "Check if backend is running and CORS is configured."
)

STATUS_MESSAGES: dict[int, str] = {
    401: "Unauthorized. Please log in again.",
    403: "Forbidden. You do not have permission.",
    404: "Resource not found.",
}

# Substrings that identify an unreachable backend in transport error text
_UNREACHABLE_MARKERS = (
    "failed to fetch",
    "connection refused",
    "name or service not known",
    "nodename nor servname",
    "no route to host",
)


class ErrorKind(str, Enum):
    """Closed set of error categories surfaced to callers."""

    VALIDATION = "validation_error"
    AUTH = "auth_error"
    NOT_FOUND = "not_found"
    SERVER = "server_error"
    TRANSPORT = "transport_error"


class DealDeskError(Exception):
    """Base class for all client errors."""


class StorageError(DealDeskError):
    """Durable client storage could not be read or written."""


class ApiError(DealDeskError):
    """A backend call failed.

    Args:
        kind: Error category.
        message: User-presentable message.
        raw_status: HTTP status, 0 for transport failures, None when the
            request was never attempted.
        body: Decoded error body, if any.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        raw_status: int | None = None,
        body: Any = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.raw_status = raw_status
        self.body = body

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, raw_status={self.raw_status!r}, message={self.message!r})"

    @classmethod
    def from_response(cls, response: httpx.Response) -> ApiError:
        """Build an ApiError from a completed response with an error status.

        The response body must already be read.
        """
        body = _decode_body(response)
        status_code = response.status_code
        return cls(
            kind=kind_for_status(status_code),
            message=extract_error_message(body, status_code, response.reason_phrase),
            raw_status=status_code,
            body=body,
        )

    @classmethod
    def from_transport_error(cls, exc: httpx.TransportError) -> ApiError:
        """Build an ApiError for a request that never got a response."""
        return cls(
            kind=ErrorKind.TRANSPORT,
            message=transport_error_message(exc),
            raw_status=0,
        )


class ClientValidationError(ApiError):
    """A write payload failed client-side validation; nothing was sent."""

    def __init__(self, message: str) -> None:
        super().__init__(kind=ErrorKind.VALIDATION, message=message, raw_status=None)


# ── Classification ──────────────────────────────────────────────────────────


def kind_for_status(status_code: int) -> ErrorKind:
    """Map an HTTP status code onto an ErrorKind."""
    if status_code == 0:
        return ErrorKind.TRANSPORT
    if status_code in (401, 403):
        return ErrorKind.AUTH
    if status_code == 404:
        return ErrorKind.NOT_FOUND
    if status_code >= 500:
        return ErrorKind.SERVER
    return ErrorKind.VALIDATION


def transport_error_message(exc: BaseException) -> str:
    """Tell a CORS rejection from an unreachable backend by the error text."""
    text = str(exc)
    lowered = text.lower()
    if "cors" in lowered:
        return CORS_MESSAGE
    if isinstance(exc, httpx.ConnectError) or any(m in lowered for m in _UNREACHABLE_MARKERS):
        return NETWORK_MESSAGE
    return CONNECTION_MESSAGE


# ── Message extraction ──────────────────────────────────────────────────────


def extract_error_message(body: Any, status_code: int | None = None, reason: str = "") -> str:
    """Pick the most specific message out of a backend error body.

    Priority: plain string body, Spring-style ``errors`` list, direct
    ``message``/``error``/``details``/``msg`` fields, nested ``data``, and
    finally a default message for the status code.
    """
    message = _message_from_body(body)
    if message:
        return message

    if status_code in STATUS_MESSAGES:
        return STATUS_MESSAGES[status_code]
    if status_code is not None and status_code >= 500:
        return SERVER_ERROR_MESSAGE
    if status_code:
        return f"Error {status_code}: {reason or 'Request failed'}"
    return GENERIC_MESSAGE


def _message_from_body(body: Any) -> str | None:
    if isinstance(body, str):
        return body.strip() or None
    if not isinstance(body, dict):
        return None

    errors = body.get("errors")
    if isinstance(errors, list) and errors:
        joined = ", ".join(_describe_field_error(e) for e in errors)
        if joined:
            return joined

    for key in ("message", "error", "details", "msg"):
        value = body.get(key)
        if isinstance(value, str) and value:
            return value

    data = body.get("data")
    if isinstance(data, dict):
        for key in ("message", "error"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
    elif isinstance(data, list) and data:
        parts = [
            str(item.get("message", item)) if isinstance(item, dict) else str(item)
            for item in data
        ]
        return ", ".join(parts)

    return None


def _describe_field_error(error: Any) -> str:
    if not isinstance(error, dict):
        return str(error)
    message = error.get("defaultMessage") or error.get("message")
    if message:
        return str(message)
    return f"{error.get('field')}: {error.get('rejectedValue') or 'invalid'}"


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text
