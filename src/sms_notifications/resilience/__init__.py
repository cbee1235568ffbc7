from sms_notifications.resilience.breaker import CircuitBreaker, CircuitOpenError, CircuitState
from sms_notifications.resilience.dispatcher import (
    AttemptTimeoutError,
    DispatchError,
    DispatchErrorKind,
    DispatchStats,
    ResilientDispatcher,
)
from sms_notifications.resilience.retry import RetryPolicy

__all__ = [
    "AttemptTimeoutError",
    "CircuitBreaker",
    "CircuitOpenError",
    "CircuitState",
    "DispatchError",
    "DispatchErrorKind",
    "DispatchStats",
    "ResilientDispatcher",
    "RetryPolicy",
]
