from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from ..errors import ErrorInfo, ErrorKind
from ..logging import SafeNestLogger
from .backoff import compute_backoff
from .executor import Outcome, RequestDescriptor, RequestExecutor


@dataclass
class RetryState:
    """Progress of one ``RetryOrchestrator.run`` call. Never shared."""

    timeout_ms: int
    attempt: int = 0
    last_error: Optional[ErrorInfo] = None


class RetryOrchestrator:
    """Bounded retry loop around ``RequestExecutor``."""

    def __init__(
        self,
        executor: RequestExecutor,
        max_retries: int,
        base_delay_ms: int,
        logger: Optional[SafeNestLogger] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        rng: Callable[[], float] = random.random,
    ) -> None:
        if max_retries < 0:
            raise ValueError(f"max_retries must be non-negative, got {max_retries}")
        self.executor = executor
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.logger = logger
        self._sleep = sleep or asyncio.sleep
        self._rng = rng

    async def run(self, descriptor: RequestDescriptor) -> Outcome:
        """
        Execute ``descriptor`` with retries.

        Makes at most ``max_retries + 1`` attempts. Terminal kinds (auth,
        validation, not found, tier access, generic) return after the first
        failure. The backoff sleep is awaited, so cancelling the caller while
        it waits raises ``CancelledError`` rather than returning the error
        that triggered the retry.
        """
        state = RetryState(timeout_ms=self.executor.timeout_ms)
        while True:
            outcome = await self.executor.execute(descriptor)
            if outcome.ok:
                return outcome

            error = outcome.error
            state.last_error = error
            if not error.retryable or state.attempt >= self.max_retries:
                self._log_terminal(descriptor, state)
                return outcome

            delay_ms = self.delay_for(error, state.attempt)
            if self.logger:
                self.logger.info(
                    "retry_scheduled",
                    path=descriptor.path,
                    kind=error.kind.value,
                    attempt=state.attempt + 1,
                    max_attempts=self.max_retries + 1,
                    delay_ms=delay_ms,
                )
            await self._sleep(delay_ms / 1000)
            state.attempt += 1

    def delay_for(self, error: ErrorInfo, attempt: int) -> int:
        """Server-provided retry-after wins for rate limits; otherwise backoff."""
        if error.kind is ErrorKind.RATE_LIMIT and error.retry_after_seconds is not None:
            return error.retry_after_seconds * 1000
        return compute_backoff(attempt, self.base_delay_ms, self._rng)

    def _log_terminal(self, descriptor: RequestDescriptor, state: RetryState) -> None:
        if not self.logger or state.last_error is None:
            return
        self.logger.error(
            "request_gave_up" if state.last_error.retryable else "request_rejected",
            path=descriptor.path,
            kind=state.last_error.kind.value,
            status=state.last_error.status_code,
            attempts=state.attempt + 1,
            timeout_ms=state.timeout_ms,
            error=state.last_error.message,
        )
