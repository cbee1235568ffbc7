"""Order cancelled — all or part of the order could not be fulfilled."""

from sms_notifications.notification.classification import MessageType, OrderStatus
from sms_notifications.templates.engine import Template

ORDER_CANCELLED = Template(
    message_type=MessageType.CANCELLATION,
    order_status=OrderStatus.CANCELLED,
    body=(
        "We're very sorry we've had to cancel all or part of your {brandName} order {orderId} "
        "as some items were out of stock. We've emailed you further details."
    ),
    required_params=frozenset({"orderId", "brandName"}),
)
