import pytest

from sms_notifications.notification.classification import (
    DEFAULT_CLASSIFICATION,
    STOCK_BRANDS,
    Brand,
    BrandCatalogue,
    MessageType,
    OrderStatus,
    UnknownBrandError,
    classify,
)
from sms_notifications.notification.record import NotificationRecord


def _record(message="Hello", action_expression=None):
    return NotificationRecord(
        phone_number="+447123456789",
        message=message,
        brand_code="BQ",
        action_expression=action_expression,
    )


class TestClassify:
    @pytest.mark.parametrize(
        "action, expected",
        [
            ("shipped", (MessageType.SHIPPING, OrderStatus.SHIPPED)),
            ("DELIVERED", (MessageType.DELIVERY, OrderStatus.DELIVERED)),
            ("cancelled", (MessageType.CANCELLATION, OrderStatus.CANCELLED)),
            ("refunded", (MessageType.REFUND, OrderStatus.REFUNDED)),
            ("Final Reminder", (MessageType.ORDER, OrderStatus.FINAL_REMINDER)),
            ("expiry-alert", (MessageType.ORDER, OrderStatus.EXPIRY_ALERT)),
            ("allocated", (MessageType.ORDER, OrderStatus.ALLOCATED)),
        ],
    )
    def test_action_expression_names_status(self, action, expected):
        assert classify(_record(action_expression=action)) == expected

    def test_action_expression_wins_over_message_text(self):
        record = _record(message="Your order has been cancelled", action_expression="shipped")
        assert classify(record) == (MessageType.SHIPPING, OrderStatus.SHIPPED)

    @pytest.mark.parametrize(
        "message, status",
        [
            ("We've had to cancel your order", OrderStatus.CANCELLED),
            ("FINAL REMINDER: your order is waiting", OrderStatus.FINAL_REMINDER),
            ("Your order has expired", OrderStatus.EXPIRY_ALERT),
            ("Just a gentle reminder about your order", OrderStatus.REMINDER),
            ("Item(s) from order 1 were collected today", OrderStatus.COLLECTED),
            ("Your order is ready to collect, however some items were out of stock", OrderStatus.PARTIAL),
            ("Your order is now ready for collection", OrderStatus.ALLOCATED),
            ("Your order is being processed", OrderStatus.NEW_ORDER),
            ("Thanks for your B&Q order 123", OrderStatus.ORDER_SUBMITTED),
        ],
    )
    def test_keyword_rules(self, message, status):
        assert classify(_record(message=message))[1] == status

    def test_cancellation_keyword_maps_to_cancellation_type(self):
        assert classify(_record(message="Order cancelled")) == (
            MessageType.CANCELLATION,
            OrderStatus.CANCELLED,
        )

    def test_first_matching_rule_wins(self):
        record = _record(message="Reminder: your cancelled order")
        assert classify(record) == (MessageType.CANCELLATION, OrderStatus.CANCELLED)

    def test_unrecognised_action_falls_through_to_keywords(self):
        record = _record(message="Your order is being processed", action_expression="ORDER_SMS")
        assert classify(record) == (MessageType.ORDER, OrderStatus.NEW_ORDER)

    def test_unrecognised_record_uses_default(self):
        assert classify(_record(message="Hello there")) == DEFAULT_CLASSIFICATION
        assert DEFAULT_CLASSIFICATION == (MessageType.ORDER, OrderStatus.CONFIRMATION)


class TestBrandCatalogue:
    def test_lookup_by_code_and_alias(self):
        catalogue = BrandCatalogue()
        assert catalogue.lookup("BQUK").display_name == "B&Q"
        assert catalogue.lookup("bq").code == "BQUK"
        assert catalogue.lookup(" tp ").web_domain == "trade-point.co.uk"
        assert catalogue.lookup("SF").code == "Screwfix"

    def test_lookup_unknown_returns_none(self):
        catalogue = BrandCatalogue()
        assert catalogue.lookup("XYZ") is None
        assert catalogue.lookup(None) is None
        assert catalogue.lookup("") is None

    def test_resolve_falls_back_to_default(self):
        catalogue = BrandCatalogue(default_code="BQUK")
        assert catalogue.resolve("XYZ").code == "BQUK"

    def test_resolve_without_default_raises(self):
        catalogue = BrandCatalogue()
        with pytest.raises(UnknownBrandError) as exc:
            catalogue.resolve("XYZ")
        assert exc.value.brand_code == "XYZ"

    def test_unknown_default_is_rejected(self):
        with pytest.raises(ValueError):
            BrandCatalogue(default_code="NOPE")

    def test_custom_brands(self):
        brand = Brand(code="WK", display_name="Wickes", web_domain="wickes.co.uk")
        catalogue = BrandCatalogue(brands=(*STOCK_BRANDS, brand))
        assert catalogue.resolve("wk") is brand
