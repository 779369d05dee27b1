from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

import httpx

from ..errors import ErrorInfo, ErrorKind
from ..logging import SafeNestLogger
from .classifier import classify_response, classify_transport_error
from .metadata import ResponseMetadata, parse_response_metadata


@dataclass(frozen=True)
class RequestDescriptor:
    method: str
    path: str
    body: Optional[Mapping[str, Any]] = None


@dataclass(frozen=True)
class Outcome:
    """Result of one exchange (or one retried call): a payload or an ErrorInfo."""

    payload: Any = None
    error: Optional[ErrorInfo] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, payload: Any) -> "Outcome":
        return cls(payload=payload)

    @classmethod
    def failure(cls, error: ErrorInfo) -> "Outcome":
        return cls(error=error)


class RequestExecutor:
    """Runs a single HTTP exchange under a deadline."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str,
        timeout_ms: int,
        on_metadata: Optional[Callable[[ResponseMetadata], None]] = None,
        logger: Optional[SafeNestLogger] = None,
    ) -> None:
        self.http = http
        self.base_url = base_url.rstrip("/")
        self.timeout_ms = timeout_ms
        self._on_metadata = on_metadata
        self.logger = logger

    async def execute(self, descriptor: RequestDescriptor) -> Outcome:
        """
        Perform one exchange.

        The deadline is ``timeout_ms``; hitting it yields a ``timeout`` failure.
        Cancellation of the calling task is not converted: ``CancelledError``
        propagates to the caller unchanged.
        """
        url = f"{self.base_url}{descriptor.path}"
        start = time.perf_counter()
        try:
            response = await asyncio.wait_for(
                self.http.request(descriptor.method, url, json=descriptor.body),
                timeout=self.timeout_ms / 1000,
            )
        except (asyncio.TimeoutError, httpx.RequestError, OSError) as exc:
            return self._transport_failure(descriptor, exc)

        latency_ms = int((time.perf_counter() - start) * 1000)
        metadata = parse_response_metadata(response.headers, latency_ms)
        if self._on_metadata is not None:
            self._on_metadata(metadata)

        if not response.is_success:
            info = classify_response(response.status_code, response.text, response.headers)
            if self.logger:
                self.logger.warning(
                    "request_failed",
                    method=descriptor.method,
                    path=descriptor.path,
                    status=response.status_code,
                    kind=info.kind.value,
                    request_id=metadata.request_id,
                )
            return Outcome.failure(info)

        try:
            payload = response.json()
        except ValueError:
            return Outcome.failure(
                ErrorInfo(
                    kind=ErrorKind.GENERIC,
                    message="Failed to parse API response",
                    status_code=response.status_code,
                )
            )

        if self.logger:
            self.logger.debug(
                "request_succeeded",
                method=descriptor.method,
                path=descriptor.path,
                status=response.status_code,
                latency_ms=latency_ms,
                request_id=metadata.request_id,
            )
        return Outcome.success(payload)

    def _transport_failure(self, descriptor: RequestDescriptor, exc: BaseException) -> Outcome:
        info = classify_transport_error(exc, descriptor.path, self.timeout_ms)
        if self.logger:
            self.logger.warning(
                "request_failed",
                method=descriptor.method,
                path=descriptor.path,
                kind=info.kind.value,
                error=info.message,
            )
        return Outcome.failure(info)
