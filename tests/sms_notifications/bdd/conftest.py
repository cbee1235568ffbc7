"""Shared BDD fixtures and step definitions for SMS delivery."""

import asyncio

import pytest
from pytest_bdd import given, parsers, then, when

from sms_notifications.resilience import CircuitState


@pytest.fixture()
def order_event():
    """Keyword arguments for the SOAP document under test."""
    return {"order_id": "BQ12345-789"}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('an order event for phone "{phone}" and brand "{brand_code}" named "{brand_name}"'))
def order_event_for(order_event, phone, brand_code, brand_name):
    order_event.update(phone=phone, brand_code=brand_code, brand_name=brand_name)


@given(parsers.cfparse('the order event message is "{message}"'))
def order_event_message(order_event, message):
    order_event["message"] = message


@given("an order event without a phone number")
def order_event_without_phone(order_event):
    order_event["phone"] = None


@given("the SMS gateway is failing")
def gateway_failing(fake_gateway):
    fake_gateway.configure(should_succeed=False, failure_reason="Gateway unavailable")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when("the document is processed", target_fixture="outcome")
def process_document(orchestrator, soap_document, order_event):
    return asyncio.run(orchestrator.process(soap_document(**order_event)))


@when("the SMS gateway recovers")
def gateway_recovers(fake_gateway):
    fake_gateway.reset()


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then("the outcome is successful")
def outcome_successful(outcome):
    assert outcome.ok, outcome.error


@then(parsers.cfparse('the outcome fails with "{kind}"'))
def outcome_fails(outcome, kind):
    assert not outcome.ok
    assert outcome.error.kind.value == kind


@then(parsers.cfparse('exactly one SMS is sent to "{phone}"'))
def one_sms_sent(fake_gateway, phone):
    assert len(fake_gateway.sent_messages) == 1
    assert fake_gateway.sent_messages[0]["to"] == phone


@then("no SMS is sent")
def no_sms_sent(fake_gateway):
    assert fake_gateway.sent_messages == []


@then("the SMS mentions the order id")
def sms_mentions_order_id(fake_gateway, order_event):
    assert order_event["order_id"] in fake_gateway.sent_messages[0]["body"]


@then(parsers.cfparse('the SMS mentions "{text}"'))
def sms_mentions(fake_gateway, text):
    assert text in fake_gateway.sent_messages[-1]["body"]


@then("the circuit breaker is open")
def breaker_open(orchestrator):
    assert orchestrator.dispatcher.breaker.state is CircuitState.OPEN
