"""Collection reminder — the order is still waiting in store."""

from sms_notifications.notification.classification import MessageType, OrderStatus
from sms_notifications.templates.engine import Template

COLLECTION_REMINDER = Template(
    message_type=MessageType.ORDER,
    order_status=OrderStatus.REMINDER,
    body=(
        "Just a gentle reminder that your {brandName} order {orderId} is still waiting to be "
        "collected. It will be held until {expiryDate}. We've emailed you further details."
    ),
    required_params=frozenset({"orderId", "brandName", "expiryDate"}),
)
