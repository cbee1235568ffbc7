"""Order confirmation — the catch-all order update."""

from sms_notifications.notification.classification import MessageType, OrderStatus
from sms_notifications.templates.engine import Template

ORDER_CONFIRMATION = Template(
    message_type=MessageType.ORDER,
    order_status=OrderStatus.CONFIRMATION,
    body="Your {brandName} order {orderId} has been updated. We've emailed you further details.",
    required_params=frozenset({"orderId", "brandName"}),
)
