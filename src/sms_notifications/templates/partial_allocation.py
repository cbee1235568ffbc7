"""Partial allocation — ready to collect with some items out of stock."""

from sms_notifications.notification.classification import MessageType, OrderStatus
from sms_notifications.templates.engine import Template

PARTIAL_ALLOCATION = Template(
    message_type=MessageType.ORDER,
    order_status=OrderStatus.PARTIAL,
    body=(
        "Your {brandName} order {orderId} is ready to collect, however we're very sorry some "
        "item(s) were out of stock. For quicker collection, have your QR code ready from your "
        "email confirmation or your order number. Please bring photo ID for any age restricted products."
    ),
    required_params=frozenset({"orderId", "brandName"}),
)
