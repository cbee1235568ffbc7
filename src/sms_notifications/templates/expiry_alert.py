"""Expiry alert — the collection window has passed."""

from sms_notifications.notification.classification import MessageType, OrderStatus
from sms_notifications.templates.engine import Template

EXPIRY_ALERT = Template(
    message_type=MessageType.ORDER,
    order_status=OrderStatus.EXPIRY_ALERT,
    body=(
        "Just to let you know your {brandName} order {orderId} which was due for collection by "
        "{expiryDate} has now expired. Your order will be refunded. We've emailed you further details."
    ),
    required_params=frozenset({"orderId", "brandName", "expiryDate"}),
)
