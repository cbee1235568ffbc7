"""Full allocation — every item is ready to collect."""

from sms_notifications.notification.classification import MessageType, OrderStatus
from sms_notifications.templates.engine import Template

FULL_ALLOCATION = Template(
    message_type=MessageType.ORDER,
    order_status=OrderStatus.ALLOCATED,
    body=(
        "All or part of your order {orderId} is now ready for collection, we've emailed you "
        "further details. See what ID is required at http://www.{brand}/collect"
    ),
    required_params=frozenset({"orderId", "brand"}),
)
