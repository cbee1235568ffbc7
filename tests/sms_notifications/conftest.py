from xml.sax.saxutils import escape, quoteattr

import pytest
from protean.integrations.pytest import DomainFixture

from sms_notifications.channel.fake_sms import FakeSMSAdapter
from sms_notifications.config import Settings
from sms_notifications.metrics import SmsMetrics
from sms_notifications.notification.orchestrator import build_orchestrator


@pytest.fixture(scope="session")
def sms_notifications_bed():
    from sms_notifications.domain import sms_notifications

    bed = DomainFixture(sms_notifications)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(sms_notifications_bed):
    with sms_notifications_bed.domain_context():
        yield


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------
_SOAP_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<SOAP-ENV:Envelope xmlns:SOAP-ENV="http://schemas.xmlsoap.org/soap/envelope/" xmlns:SOAP-ENC="http://schemas.xmlsoap.org/soap/encoding/">
<SOAP-ENV:Body>
<ProcessCommunication releaseID="1.0" languageCode="en" versionID="0.3" xmlns="http://www.kingfisher.com/oagis/9" xmlns:oa="http://www.openapplications.org/oagis/9" xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" xsi:schemaLocation="http://www.kingfisher.com/oagis/9 ProcessCommunication.xsd">
<oa:ApplicationArea>
<oa:CreationDateTime>2023-06-15T14:30:00Z</oa:CreationDateTime>
{bodid}
</oa:ApplicationArea>
<DataArea>
<oa:Process>
<oa:ActionCriteria>
<oa:ActionExpression expressionLanguage="text" actionCode="Add ">
{action_expression}
</oa:ActionExpression>
</oa:ActionCriteria>
</oa:Process>
<Communication>
<CommunicationHeader>
<CustomerParty>
<Contact>
<SMSTelephoneCommunication>
{phone}
</SMSTelephoneCommunication>
</Contact>
</CustomerParty>
<BrandChannel>
<Brand>
<oa:Code{brand_name_attr}>
{brand_code}
</oa:Code>
</Brand>
<Channel>
<oa:Code name="Online">ONLINE</oa:Code>
</Channel>
</BrandChannel>
</CommunicationHeader>
<CommunicationItem>
<oa:Message>
<oa:Note>{message}</oa:Note>
</oa:Message>
</CommunicationItem>
</Communication>
</DataArea>
</ProcessCommunication>
</SOAP-ENV:Body>
</SOAP-ENV:Envelope>"""


def build_soap(
    phone: str | None = "447123456789",
    brand_code: str = "BQ",
    brand_name: str | None = "B&Q",
    message: str = "Your B&Q order BQ12345 has been confirmed. Track your order at diy.com/orders",
    order_id: str | None = "BQ12345-789",
    action_expression: str = "ORDER_SMS",
) -> str:
    return _SOAP_TEMPLATE.format(
        bodid=f"<oa:BODID>{escape(order_id)}</oa:BODID>" if order_id is not None else "",
        action_expression=escape(action_expression),
        phone=f"<oa:FormattedNumber>{escape(phone)}</oa:FormattedNumber>" if phone is not None else "",
        brand_name_attr=f" name={quoteattr(brand_name)}" if brand_name is not None else "",
        brand_code=escape(brand_code),
        message=escape(message),
    )


@pytest.fixture()
def soap_document():
    """Factory for ATG ProcessCommunication SOAP documents."""
    return build_soap


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------
@pytest.fixture()
def fake_gateway():
    return FakeSMSAdapter()


@pytest.fixture()
def settings():
    return Settings(
        environment="test",
        retry_initial_delay=0.0,
        attempt_timeout=1.0,
    )


@pytest.fixture()
def metrics():
    return SmsMetrics()


@pytest.fixture()
def orchestrator(settings, fake_gateway, metrics):
    return build_orchestrator(settings, gateway=fake_gateway, metrics=metrics)
