"""SMS notifications API package."""

from sms_notifications.api.routes import router

__all__ = ["router"]
