"""Final reminder — last notice before the order expires."""

from sms_notifications.notification.classification import MessageType, OrderStatus
from sms_notifications.templates.engine import Template

FINAL_REMINDER = Template(
    message_type=MessageType.ORDER,
    order_status=OrderStatus.FINAL_REMINDER,
    body=(
        "FINAL REMINDER: Your {brandName} order {orderId} is still waiting for collection and "
        "will expire on {expiryDate}. After this date, items will be returned to stock and a "
        "refund processed. We've emailed you further details."
    ),
    required_params=frozenset({"orderId", "brandName", "expiryDate"}),
)
