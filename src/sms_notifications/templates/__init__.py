"""Template registry — maps (message type, order status) to SMS templates.

Each template module defines one ``Template``; ``build_registry`` collects
the stock set into a fresh, read-only ``TemplateRegistry``.
"""

from sms_notifications.templates.collection_confirmation import COLLECTION_CONFIRMATION
from sms_notifications.templates.collection_reminder import COLLECTION_REMINDER
from sms_notifications.templates.engine import (
    ParameterError,
    Template,
    TemplateNotFound,
    TemplateRegistry,
    TemplateValidationError,
    render,
)
from sms_notifications.templates.expiry_alert import EXPIRY_ALERT
from sms_notifications.templates.final_reminder import FINAL_REMINDER
from sms_notifications.templates.full_allocation import FULL_ALLOCATION
from sms_notifications.templates.new_order import NEW_ORDER
from sms_notifications.templates.order_cancelled import ORDER_CANCELLED
from sms_notifications.templates.order_confirmation import ORDER_CONFIRMATION
from sms_notifications.templates.order_submitted import ORDER_SUBMITTED
from sms_notifications.templates.partial_allocation import PARTIAL_ALLOCATION

STOCK_TEMPLATES: tuple[Template, ...] = (
    ORDER_SUBMITTED,
    NEW_ORDER,
    ORDER_CONFIRMATION,
    FULL_ALLOCATION,
    PARTIAL_ALLOCATION,
    ORDER_CANCELLED,
    COLLECTION_CONFIRMATION,
    COLLECTION_REMINDER,
    FINAL_REMINDER,
    EXPIRY_ALERT,
)


def build_registry(*extra: Template) -> TemplateRegistry:
    """Return a registry of the stock templates plus any ``extra`` ones."""
    return TemplateRegistry((*STOCK_TEMPLATES, *extra))


__all__ = [
    "ParameterError",
    "STOCK_TEMPLATES",
    "Template",
    "TemplateNotFound",
    "TemplateRegistry",
    "TemplateValidationError",
    "build_registry",
    "render",
]
