"""Collection confirmation — items were picked up in store."""

from sms_notifications.notification.classification import MessageType, OrderStatus
from sms_notifications.templates.engine import Template

COLLECTION_CONFIRMATION = Template(
    message_type=MessageType.ORDER,
    order_status=OrderStatus.COLLECTED,
    body=(
        "This is to confirm that item(s) from order {orderId} were collected today. "
        "Further details have been emailed to you. Thank you."
    ),
    required_params=frozenset({"orderId"}),
)
