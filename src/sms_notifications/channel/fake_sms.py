"""Fake SMS adapter — records sent messages for testing."""

from uuid import uuid4

from sms_notifications.channel.sms_port import GatewayError, SendResult, SMSPort


class FakeSMSAdapter(SMSPort):
    """SMS adapter that records messages in memory for test assertions."""

    def __init__(self):
        self.sent_messages: list[dict] = []
        self.calls = 0
        self.should_succeed = True
        self.failure_reason = "SMS delivery failed"
        self.fail_times: int | None = None

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "SMS delivery failed",
        fail_times: int | None = None,
    ):
        """Configure the fake adapter behavior for testing.

        With ``fail_times`` set, only the first ``fail_times`` calls fail and
        later calls succeed regardless of ``should_succeed``.
        """
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.fail_times = fail_times

    def _should_fail(self) -> bool:
        if self.fail_times is not None:
            return self.calls <= self.fail_times
        return not self.should_succeed

    async def send(self, to: str, body: str, sender_id: str | None = None) -> SendResult:
        self.calls += 1
        if self._should_fail():
            raise GatewayError(self.failure_reason)

        message_id = f"sms-{uuid4().hex[:12]}"
        self.sent_messages.append(
            {
                "message_id": message_id,
                "to": to,
                "body": body,
                "sender_id": sender_id,
            }
        )
        return SendResult(message_id=message_id, status="sent")

    def reset(self):
        """Clear sent messages (useful between tests)."""
        self.sent_messages.clear()
        self.calls = 0
        self.should_succeed = True
        self.failure_reason = "SMS delivery failed"
        self.fail_times = None
