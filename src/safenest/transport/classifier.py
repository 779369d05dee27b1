from __future__ import annotations

import asyncio
import json
from typing import Any, Mapping, Optional

import httpx

from ..constants import Header
from ..errors import ErrorInfo, ErrorKind
from .metadata import parse_header_int

DEFAULT_ERROR_MESSAGE = "Request failed"

_STATUS_KINDS = {
    400: ErrorKind.VALIDATION,
    401: ErrorKind.AUTHENTICATION,
    403: ErrorKind.TIER_ACCESS,
    404: ErrorKind.NOT_FOUND,
    429: ErrorKind.RATE_LIMIT,
}


def kind_for_status(status_code: int) -> ErrorKind:
    """Fixed HTTP status to error kind mapping (part of the public contract)."""
    if status_code in _STATUS_KINDS:
        return _STATUS_KINDS[status_code]
    if status_code >= 500:
        return ErrorKind.SERVER
    return ErrorKind.GENERIC


def classify_response(
    status_code: int,
    body: Any,
    headers: Optional[Mapping[str, str]] = None,
) -> ErrorInfo:
    """
    Classify a non-2xx response.

    The kind depends on the status code only. Message, code, suggestion and
    details come from an ``{"error": {...}}`` body when one can be read;
    anything else falls back to a generic message.
    """
    kind = kind_for_status(status_code)
    error_obj = _extract_error_object(body)

    message = _as_text(error_obj.get("message")) or DEFAULT_ERROR_MESSAGE
    code = _as_text(error_obj.get("code"))
    suggestion = _as_text(error_obj.get("suggestion"))
    details = error_obj.get("details")

    retry_after: Optional[int] = None
    if kind is ErrorKind.RATE_LIMIT:
        retry_after = _retry_after_from_body(error_obj)
        if retry_after is None and headers is not None:
            retry_after = _parse_seconds(headers.get(Header.RETRY_AFTER))

    return ErrorInfo(
        kind=kind,
        message=message,
        status_code=status_code,
        code=code,
        details=details,
        suggestion=suggestion,
        retry_after_seconds=retry_after,
    )


def classify_transport_error(exc: BaseException, path: str, timeout_ms: int) -> ErrorInfo:
    """Classify a fault raised before any response arrived."""
    if isinstance(exc, (asyncio.TimeoutError, httpx.TimeoutException)):
        return ErrorInfo(
            kind=ErrorKind.TIMEOUT,
            message=f"Request to {path} timed out after {timeout_ms}ms",
        )
    detail = str(exc) or type(exc).__name__
    return ErrorInfo(kind=ErrorKind.NETWORK, message=f"Network error: {detail}")


def _extract_error_object(body: Any) -> dict:
    if isinstance(body, (bytes, bytearray)):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            return {}
    if isinstance(body, str):
        if not body.strip():
            return {}
        try:
            body = json.loads(body)
        except ValueError:
            return {}
    if not isinstance(body, dict):
        return {}
    error_obj = body.get("error")
    return error_obj if isinstance(error_obj, dict) else {}


def _retry_after_from_body(error_obj: dict) -> Optional[int]:
    value = _parse_seconds(error_obj.get("retry_after"))
    if value is not None:
        return value
    details = error_obj.get("details")
    if isinstance(details, dict):
        return _parse_seconds(details.get("retry_after"))
    return None


def _parse_seconds(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    seconds = parse_header_int(str(value))
    return seconds if seconds is not None and seconds >= 0 else None


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
