"""New order — the order has reached fulfilment."""

from sms_notifications.notification.classification import MessageType, OrderStatus
from sms_notifications.templates.engine import Template

NEW_ORDER = Template(
    message_type=MessageType.ORDER,
    order_status=OrderStatus.NEW_ORDER,
    body=(
        "Your {brandName} order {orderId} is being processed. Further details have been "
        "emailed to you. Thank you for shopping with {brandName}."
    ),
    required_params=frozenset({"orderId", "brandName"}),
)
