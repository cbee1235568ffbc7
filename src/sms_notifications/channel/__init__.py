"""SMS channel adapters.

The Infobip adapter is used when Infobip credentials are configured; the
in-memory fake is used otherwise (local development and tests).
"""

import structlog

from sms_notifications.channel.sms_port import GatewayError, SendResult, SMSPort
from sms_notifications.config import Settings

logger = structlog.get_logger(__name__)


def build_gateway(settings: Settings) -> SMSPort:
    """Return the SMS adapter selected by ``settings``."""
    if settings.infobip_configured:
        from sms_notifications.channel.infobip import InfobipSMSAdapter

        return InfobipSMSAdapter(
            base_url=settings.infobip_base_url,
            api_key=settings.infobip_api_key,
            default_sender=settings.infobip_default_sender,
            timeout=settings.infobip_timeout,
        )

    from sms_notifications.channel.fake_sms import FakeSMSAdapter

    logger.warning("Infobip is not configured; using the in-memory SMS adapter")
    return FakeSMSAdapter()


__all__ = ["GatewayError", "SMSPort", "SendResult", "build_gateway"]
