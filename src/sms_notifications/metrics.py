"""Prometheus metrics for SMS processing.

Each ``SmsMetrics`` owns its own ``CollectorRegistry`` so independent
orchestrators (and tests) never collide on metric names.
"""

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, generate_latest

from sms_notifications.resilience.breaker import CircuitState

__all__ = ["CONTENT_TYPE_LATEST", "SmsMetrics"]


class SmsMetrics:
    def __init__(self, registry: CollectorRegistry | None = None):
        self.registry = registry or CollectorRegistry()
        self.sms_sent = Counter(
            "sms_sent_total",
            "SMS processing results by status and brand",
            ["status", "brand"],
            registry=self.registry,
        )
        self.processing_failures = Counter(
            "sms_processing_failures_total",
            "Documents that did not result in an SMS, by failure kind",
            ["kind"],
            registry=self.registry,
        )
        self.dispatch_attempts = Counter(
            "sms_dispatch_attempts_total",
            "Gateway send attempts, including retries and breaker rejections",
            registry=self.registry,
        )
        self.breaker_open = Counter(
            "sms_breaker_open_total",
            "Times the SMS gateway circuit breaker opened",
            registry=self.registry,
        )

    def record_success(self, brand: str, attempts: int) -> None:
        self.sms_sent.labels(status="success", brand=brand).inc()
        self.dispatch_attempts.inc(attempts)

    def record_failure(self, kind: str, brand: str | None = None, attempts: int = 0) -> None:
        self.processing_failures.labels(kind=kind).inc()
        if brand is not None:
            self.sms_sent.labels(status="failure", brand=brand).inc()
        if attempts:
            self.dispatch_attempts.inc(attempts)

    def on_breaker_transition(self, old_state: CircuitState, new_state: CircuitState) -> None:
        if new_state is CircuitState.OPEN:
            self.breaker_open.inc()

    def render(self) -> bytes:
        return generate_latest(self.registry)
