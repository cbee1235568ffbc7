"""SMS notifications bounded context — order events in, SMS out.

Consumes order-event documents (ATG SOAP XML or flat JSON), extracts the
notification fields, renders a brand/status specific SMS and delivers it
through the SMS gateway behind a circuit breaker and retry policy.
"""

import structlog
from protean.domain import Domain

sms_notifications = Domain(name="sms_notifications")

logger = structlog.get_logger(__name__)
