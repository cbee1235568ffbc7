"""Infobip SMS adapter — sends messages over the Infobip HTTP API."""

import httpx
import structlog

from sms_notifications.channel.phone import format_phone_number, is_valid_phone_number
from sms_notifications.channel.sms_port import GatewayError, SendResult, SMSPort

logger = structlog.get_logger(__name__)

SEND_PATH = "/sms/3/messages"


class InfobipSMSAdapter(SMSPort):
    def __init__(
        self,
        base_url: str,
        api_key: str,
        default_sender: str = "KingFisher",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        if not base_url or not api_key:
            raise ValueError("Infobip base URL and API key are required")
        if not base_url.startswith(("http://", "https://")):
            base_url = f"https://{base_url}"

        self.default_sender = default_sender
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={
                "Authorization": f"App {api_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )

    @staticmethod
    def build_payload(to: str, body: str, sender_id: str) -> dict:
        return {
            "messages": [
                {
                    "sender": sender_id,
                    "destinations": [{"to": to}],
                    "content": {"text": body},
                }
            ]
        }

    async def send(self, to: str, body: str, sender_id: str | None = None) -> SendResult:
        formatted = format_phone_number(to)
        if not is_valid_phone_number(to):
            logger.warning("Potentially invalid phone number", phone_number=to, formatted=formatted)

        payload = self.build_payload(formatted, body, sender_id or self.default_sender)

        try:
            response = await self._client.post(SEND_PATH, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Infobip rejected SMS",
                status_code=exc.response.status_code,
                response=exc.response.text[:500],
            )
            raise GatewayError(
                f"Infobip returned HTTP {exc.response.status_code}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.RequestError as exc:
            logger.error("Infobip request failed", error=str(exc), error_type=type(exc).__name__)
            raise GatewayError(f"Infobip request failed: {exc}") from exc

        return self._parse_response(response)

    @staticmethod
    def _parse_response(response: httpx.Response) -> SendResult:
        try:
            message = response.json()["messages"][0]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise GatewayError("Unexpected Infobip response body", status_code=response.status_code) from exc

        status = message.get("status") or {}
        if status.get("groupName") == "REJECTED":
            raise GatewayError(
                f"Infobip rejected message: {status.get('description') or status.get('name')}",
                status_code=response.status_code,
            )

        result = SendResult(message_id=str(message.get("messageId", "")), status=status.get("name", "UNKNOWN"))
        logger.info("SMS accepted by Infobip", message_id=result.message_id, status=result.status)
        return result

    async def aclose(self) -> None:
        await self._client.aclose()
