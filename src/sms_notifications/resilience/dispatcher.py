"""Resilient dispatch — retry with exponential backoff around a circuit breaker.

Retry is the outer layer: every attempt goes through the breaker, so an open
breaker fails that attempt with ``CircuitOpenError`` without touching the
gateway, and the backoff wait still applies before the next attempt. Each
attempt is bounded by ``attempt_timeout``; a timeout counts as a failure for
both the breaker and the retry loop.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass
from enum import Enum
from typing import TypeVar

import structlog

from sms_notifications.resilience.breaker import CircuitBreaker, CircuitOpenError, CircuitState
from sms_notifications.resilience.retry import RetryPolicy

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class DispatchErrorKind(Enum):
    FAILED = "failed"
    CANCELLED = "cancelled"


class AttemptTimeoutError(Exception):
    def __init__(self, timeout: float):
        super().__init__(f"Attempt timed out after {timeout}s")
        self.timeout = timeout


class DispatchError(Exception):
    """A dispatch cycle ended without a successful attempt."""

    def __init__(self, attempts: int, last_error: BaseException | None, kind: DispatchErrorKind):
        if kind is DispatchErrorKind.CANCELLED:
            message = f"Dispatch cancelled after {attempts} attempt(s)"
        else:
            message = f"Dispatch failed after {attempts} attempt(s): {last_error}"
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error
        self.kind = kind


@dataclass
class DispatchStats:
    attempts: int = 0
    successes: int = 0
    failures: int = 0
    breaker_open_events: int = 0
    rejected_calls: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


Wait = Callable[[float, asyncio.Event | None], Awaitable[bool]]


async def wait_or_cancel(delay: float, cancel_event: asyncio.Event | None) -> bool:
    """Sleep for ``delay`` seconds; return True if ``cancel_event`` fired first."""
    if cancel_event is None:
        await asyncio.sleep(delay)
        return False
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=delay)
    except TimeoutError:
        return False
    return True


class ResilientDispatcher:
    def __init__(
        self,
        breaker: CircuitBreaker,
        policy: RetryPolicy,
        *,
        attempt_timeout: float | None = 5.0,
        wait: Wait = wait_or_cancel,
    ):
        if attempt_timeout is not None and attempt_timeout <= 0:
            raise ValueError(f"attempt_timeout must be positive, got {attempt_timeout}")
        self.breaker = breaker
        self.policy = policy
        self.attempt_timeout = attempt_timeout
        self._wait = wait
        self.stats = DispatchStats()
        breaker.add_listener(self._on_breaker_transition)

    def _on_breaker_transition(self, old_state: CircuitState, new_state: CircuitState) -> None:
        if new_state is CircuitState.OPEN:
            self.stats.breaker_open_events += 1

    @property
    def worst_case_latency(self) -> float | None:
        """Upper bound on one dispatch cycle, or None without an attempt timeout."""
        if self.attempt_timeout is None:
            return None
        return self.policy.max_attempts * self.attempt_timeout + sum(self.policy.delays())

    async def _run_attempt(self, operation: Callable[[], Awaitable[T]]) -> T:
        if self.attempt_timeout is None:
            return await operation()
        try:
            return await asyncio.wait_for(operation(), timeout=self.attempt_timeout)
        except TimeoutError as exc:
            raise AttemptTimeoutError(self.attempt_timeout) from exc

    async def dispatch(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> T:
        """Run ``operation`` until it succeeds or the retry policy is exhausted.

        Raises ``DispatchError`` carrying the attempt count and the last error.
        """
        result, _ = await self.dispatch_counted(operation, cancel_event=cancel_event)
        return result

    async def dispatch_counted(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> tuple[T, int]:
        """Like ``dispatch``, also returning the number of attempts used."""
        last_error: BaseException | None = None

        for attempt in range(1, self.policy.max_attempts + 1):
            if cancel_event is not None and cancel_event.is_set():
                raise DispatchError(attempt - 1, last_error, DispatchErrorKind.CANCELLED)

            self.stats.attempts += 1
            try:
                result = await self.breaker.call(lambda: self._run_attempt(operation))
            except CircuitOpenError as exc:
                self.stats.rejected_calls += 1
                self.stats.failures += 1
                last_error = exc
            except Exception as exc:
                self.stats.failures += 1
                last_error = exc
                logger.warning(
                    "Dispatch attempt failed",
                    attempt=attempt,
                    max_attempts=self.policy.max_attempts,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
            else:
                self.stats.successes += 1
                if attempt > 1:
                    logger.info("Dispatch succeeded after retry", attempt=attempt)
                return result, attempt

            if attempt < self.policy.max_attempts:
                delay = self.policy.delay_for(attempt)
                if await self._wait(delay, cancel_event):
                    logger.info("Dispatch cancelled during backoff", attempt=attempt, delay=delay)
                    raise DispatchError(attempt, last_error, DispatchErrorKind.CANCELLED)

        logger.error(
            "Dispatch failed",
            attempts=self.policy.max_attempts,
            breaker_state=self.breaker.state.value,
            error=str(last_error),
        )
        raise DispatchError(self.policy.max_attempts, last_error, DispatchErrorKind.FAILED)
