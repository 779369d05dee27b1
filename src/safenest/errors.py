from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Failure taxonomy shared by every layer of the request pipeline."""

    AUTHENTICATION = "authentication"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    TIER_ACCESS = "tier_access"
    RATE_LIMIT = "rate_limit"
    SERVER = "server"
    TIMEOUT = "timeout"
    NETWORK = "network"
    CANCELLED = "cancelled"
    GENERIC = "generic"


RETRYABLE_KINDS = frozenset(
    {ErrorKind.SERVER, ErrorKind.NETWORK, ErrorKind.TIMEOUT, ErrorKind.RATE_LIMIT}
)


def is_retryable(kind: ErrorKind) -> bool:
    return kind in RETRYABLE_KINDS


@dataclass(frozen=True)
class ErrorInfo:
    """A classified failure of one exchange."""

    kind: ErrorKind
    message: str
    status_code: Optional[int] = None
    code: Optional[str] = None
    details: Optional[Any] = None
    suggestion: Optional[str] = None
    retry_after_seconds: Optional[int] = None

    @property
    def retryable(self) -> bool:
        return is_retryable(self.kind)


class SafeNestError(Exception):
    """Base exception for all SafeNest SDK errors."""

    kind: ErrorKind = ErrorKind.GENERIC

    def __init__(self, message: str = "Request failed", info: Optional[ErrorInfo] = None) -> None:
        if info is None:
            info = ErrorInfo(kind=self.kind, message=message)
        super().__init__(info.message)
        self.info = info

    @property
    def status_code(self) -> Optional[int]:
        return self.info.status_code

    @property
    def code(self) -> Optional[str]:
        return self.info.code

    @property
    def details(self) -> Optional[Any]:
        return self.info.details

    @property
    def suggestion(self) -> Optional[str]:
        return self.info.suggestion


class AuthenticationError(SafeNestError):
    """API key rejected (HTTP 401)."""

    kind = ErrorKind.AUTHENTICATION


class ValidationError(SafeNestError):
    """Request rejected as invalid (HTTP 400 or local pre-condition)."""

    kind = ErrorKind.VALIDATION


class NotFoundError(SafeNestError):
    """Resource not found (HTTP 404)."""

    kind = ErrorKind.NOT_FOUND


class TierAccessError(SafeNestError):
    """Plan tier does not include this endpoint (HTTP 403)."""

    kind = ErrorKind.TIER_ACCESS


class RateLimitError(SafeNestError):
    """Rate limit exceeded (HTTP 429)."""

    kind = ErrorKind.RATE_LIMIT

    @property
    def retry_after_seconds(self) -> Optional[int]:
        return self.info.retry_after_seconds


class ServerError(SafeNestError):
    """Server returned a 5xx status."""

    kind = ErrorKind.SERVER


class TimeoutError(SafeNestError):  # noqa: A001
    """Request deadline exceeded."""

    kind = ErrorKind.TIMEOUT


class NetworkError(SafeNestError):
    """Connection-level failure before a response was received."""

    kind = ErrorKind.NETWORK


_ERROR_TYPES: dict[ErrorKind, type[SafeNestError]] = {
    ErrorKind.AUTHENTICATION: AuthenticationError,
    ErrorKind.VALIDATION: ValidationError,
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.TIER_ACCESS: TierAccessError,
    ErrorKind.RATE_LIMIT: RateLimitError,
    ErrorKind.SERVER: ServerError,
    ErrorKind.TIMEOUT: TimeoutError,
    ErrorKind.NETWORK: NetworkError,
}


def error_for(info: ErrorInfo) -> SafeNestError:
    """Build the exception matching a classified failure."""
    if info.kind is ErrorKind.CANCELLED:
        raise ValueError("cancellation is signalled by asyncio.CancelledError, not an ErrorInfo")
    error_type = _ERROR_TYPES.get(info.kind, SafeNestError)
    return error_type(info.message, info=info)
