"""Order submitted — first acknowledgement of a web order."""

from sms_notifications.notification.classification import MessageType, OrderStatus
from sms_notifications.templates.engine import Template

ORDER_SUBMITTED = Template(
    message_type=MessageType.ORDER,
    order_status=OrderStatus.ORDER_SUBMITTED,
    body=(
        "Thanks for your {brandName} order {orderId}. If you have a {brand} account, "
        "you can see your order online at https://www.{brand}/customer/signin - "
        "we've emailed you further details."
    ),
    required_params=frozenset({"orderId", "brand", "brandName"}),
)
