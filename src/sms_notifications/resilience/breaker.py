"""Async circuit breaker guarding calls to the SMS gateway.

States:
    CLOSED: calls pass through and their outcomes are recorded in a rolling
        window. Once the window holds at least ``volume_threshold`` outcomes
        and the failure percentage reaches ``error_threshold_percentage``
        the breaker opens.
    OPEN: calls are rejected with ``CircuitOpenError`` until
        ``reset_timeout`` seconds have passed, then the breaker half-opens.
    HALF_OPEN: a single trial call is admitted. Success closes the breaker
        and clears the window, failure opens it again. Calls arriving while
        the trial is in flight are rejected.

Every trip starts a new generation. An outcome is only counted against the
generation it was admitted in, so a slow call let through while CLOSED does
not settle a later HALF_OPEN trial.

All state changes happen while holding the breaker's ``asyncio.Lock``; the
lock is never held while the guarded operation runs.
"""

import asyncio
import time
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitOpenError(Exception):
    """The breaker rejected a call without running it."""

    def __init__(self, name: str, state: CircuitState, retry_after: float):
        super().__init__(f"Circuit {name!r} is {state.value}; retry after {retry_after:.2f}s")
        self.name = name
        self.state = state
        self.retry_after = retry_after


@dataclass(frozen=True)
class _Admission:
    generation: int
    trial: bool = False


TransitionListener = Callable[[CircuitState, CircuitState], None]


class CircuitBreaker:
    def __init__(
        self,
        name: str,
        *,
        volume_threshold: int = 3,
        error_threshold_percentage: float = 50.0,
        reset_timeout: float = 30.0,
        window_size: int = 10,
        clock: Callable[[], float] = time.monotonic,
    ):
        if volume_threshold < 1:
            raise ValueError(f"volume_threshold must be >= 1, got {volume_threshold}")
        if not 0 < error_threshold_percentage <= 100:
            raise ValueError(f"error_threshold_percentage must be in (0, 100], got {error_threshold_percentage}")
        if reset_timeout < 0:
            raise ValueError(f"reset_timeout must be >= 0, got {reset_timeout}")
        if window_size < volume_threshold:
            raise ValueError("window_size must be at least volume_threshold")

        self.name = name
        self.volume_threshold = volume_threshold
        self.error_threshold_percentage = error_threshold_percentage
        self.reset_timeout = reset_timeout
        self._clock = clock

        self._state = CircuitState.CLOSED
        self._window: deque[bool] = deque(maxlen=window_size)
        self._open_until = 0.0
        self._trial_in_flight = False
        self._generation = 0
        self._lock = asyncio.Lock()
        self._listeners: list[TransitionListener] = []

        self.open_events = 0
        self.rejected_calls = 0

    @property
    def state(self) -> CircuitState:
        return self._state

    def add_listener(self, listener: TransitionListener) -> None:
        """Register ``listener(old_state, new_state)`` for every transition."""
        self._listeners.append(listener)

    def snapshot(self) -> dict:
        failures = sum(self._window)
        return {
            "name": self.name,
            "state": self._state.value,
            "window_calls": len(self._window),
            "window_failures": failures,
            "open_events": self.open_events,
            "rejected_calls": self.rejected_calls,
        }

    # -----------------------------------------------------------------------
    # Guarded call
    # -----------------------------------------------------------------------
    async def call(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run ``operation`` through the breaker.

        Raises ``CircuitOpenError`` without invoking ``operation`` when the
        breaker is open, or half-open with a trial already running.
        """
        async with self._lock:
            admission = self._admit()

        try:
            result = await operation()
        except asyncio.CancelledError:
            async with self._lock:
                if self._is_current_trial(admission):
                    self._trial_in_flight = False
            raise
        except Exception:
            async with self._lock:
                self._on_failure(admission)
            raise

        async with self._lock:
            self._on_success(admission)
        return result

    # Everything below requires ``self._lock`` to be held.
    def _admit(self) -> _Admission:
        if self._state is CircuitState.OPEN:
            now = self._clock()
            if now < self._open_until:
                self.rejected_calls += 1
                raise CircuitOpenError(self.name, self._state, self._open_until - now)
            self._transition(CircuitState.HALF_OPEN)

        if self._state is CircuitState.HALF_OPEN:
            if self._trial_in_flight:
                self.rejected_calls += 1
                raise CircuitOpenError(self.name, self._state, 0.0)
            self._trial_in_flight = True
            return _Admission(self._generation, trial=True)

        return _Admission(self._generation)

    def _is_current_trial(self, admission: _Admission) -> bool:
        return admission.trial and admission.generation == self._generation

    def _on_failure(self, admission: _Admission) -> None:
        if admission.generation != self._generation:
            return
        if self._is_current_trial(admission):
            self._trial_in_flight = False
            self._trip()
        elif self._state is CircuitState.CLOSED:
            self._window.append(True)
            if self._should_trip():
                self._trip()

    def _on_success(self, admission: _Admission) -> None:
        if admission.generation != self._generation:
            return
        if self._is_current_trial(admission):
            self._trial_in_flight = False
            self._window.clear()
            self._transition(CircuitState.CLOSED)
        elif self._state is CircuitState.CLOSED:
            self._window.append(False)

    def _should_trip(self) -> bool:
        calls = len(self._window)
        if calls < self.volume_threshold:
            return False
        failure_percentage = 100.0 * sum(self._window) / calls
        return failure_percentage >= self.error_threshold_percentage

    def _trip(self) -> None:
        self._open_until = self._clock() + self.reset_timeout
        self._generation += 1
        self.open_events += 1
        self._transition(CircuitState.OPEN)

    def _transition(self, new_state: CircuitState) -> None:
        old_state = self._state
        if old_state is new_state:
            return
        self._state = new_state

        if new_state is CircuitState.OPEN:
            logger.warning(
                "Circuit breaker opened",
                breaker=self.name,
                previous_state=old_state.value,
                window_failures=sum(self._window),
                window_calls=len(self._window),
                reset_timeout=self.reset_timeout,
            )
        elif new_state is CircuitState.HALF_OPEN:
            logger.info("Circuit breaker half-open, admitting trial call", breaker=self.name)
        else:
            logger.info("Circuit breaker closed", breaker=self.name)

        for listener in self._listeners:
            listener(old_state, new_state)
