"""SMS channel port — abstract interface for SMS dispatch."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


class GatewayError(Exception):
    """The gateway refused or failed to accept a message."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class SendResult:
    message_id: str
    status: str


class SMSPort(ABC):
    """Abstract interface for SMS dispatch adapters."""

    @abstractmethod
    async def send(self, to: str, body: str, sender_id: str | None = None) -> SendResult:
        """Send an SMS message.

        Raises:
            GatewayError: the gateway did not accept the message
        """
        ...

    async def aclose(self) -> None:
        """Release any transport resources held by the adapter."""
