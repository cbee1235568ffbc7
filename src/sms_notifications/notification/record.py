"""NotificationRecord value object — the canonical, validated notification."""

import re

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import String, Text

from sms_notifications.domain import sms_notifications


@sms_notifications.value_object
class NotificationRecord:
    """Everything needed to render and send one SMS.

    Optional fields are ``None`` when the source document did not carry them.
    """

    phone_number: String(required=True, max_length=30)
    message: Text(required=True)
    brand_code: String(required=True, max_length=50)
    brand_name: Text()
    channel_code: Text()
    channel_name: Text()
    order_id: Text()
    created_at: Text()
    action_expression: Text()

    @invariant.post
    def validate_phone_format(self):
        """Only digits, spaces, hyphens, parentheses and a leading + are allowed."""
        number = self.phone_number
        if number is None:
            return

        if not re.search(r"\d", number):
            raise ValidationError({"phone_number": [f"Invalid phone number: {number!r}"]})

        if not re.match(r"^\+?[\d\s\-()]+$", number):
            raise ValidationError({"phone_number": [f"Invalid phone number: {number!r}"]})
