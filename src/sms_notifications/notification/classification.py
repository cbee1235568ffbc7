"""Message classification and the brand catalogue.

Classification is a fixed, ordered rule list over the record's action
expression and message text. The first matching rule wins; a record no rule
recognises is treated as an order confirmation.
"""

import re
from dataclasses import dataclass
from enum import Enum

from sms_notifications.notification.record import NotificationRecord


class MessageType(Enum):
    ORDER = "order"
    SHIPPING = "shipping"
    DELIVERY = "delivery"
    CANCELLATION = "cancellation"
    REFUND = "refund"
    CUSTOMER_SERVICE = "customer_service"


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMATION = "confirmation"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    ALLOCATED = "allocated"
    PARTIAL = "partial"
    COLLECTED = "collected"
    REMINDER = "reminder"
    FINAL_REMINDER = "final_reminder"
    EXPIRY_ALERT = "expiry_alert"
    ORDER_SUBMITTED = "order_submitted"
    NEW_ORDER = "new_order"


DEFAULT_CLASSIFICATION = (MessageType.ORDER, OrderStatus.CONFIRMATION)


# ---------------------------------------------------------------------------
# Brands
# ---------------------------------------------------------------------------
class UnknownBrandError(Exception):
    """The record's brand code is not in the catalogue and no default is set."""

    def __init__(self, brand_code: str):
        super().__init__(f"Unknown brand: {brand_code!r}")
        self.brand_code = brand_code


@dataclass(frozen=True)
class Brand:
    code: str
    display_name: str
    web_domain: str
    aliases: frozenset[str] = frozenset()


STOCK_BRANDS: tuple[Brand, ...] = (
    Brand(code="BQUK", display_name="B&Q", web_domain="diy.com", aliases=frozenset({"BQ"})),
    Brand(
        code="TradePoint",
        display_name="TradePoint",
        web_domain="trade-point.co.uk",
        aliases=frozenset({"TP"}),
    ),
    Brand(
        code="Screwfix",
        display_name="Screwfix",
        web_domain="screwfix.com",
        aliases=frozenset({"SF"}),
    ),
)


class BrandCatalogue:
    """Case-insensitive lookup of brands by code or alias."""

    def __init__(self, brands: tuple[Brand, ...] = STOCK_BRANDS, default_code: str | None = None):
        self._by_key: dict[str, Brand] = {}
        for brand in brands:
            for key in (brand.code, *brand.aliases):
                self._by_key[key.upper()] = brand

        self.default: Brand | None = None
        if default_code:
            self.default = self.lookup(default_code)
            if self.default is None:
                raise ValueError(f"Default brand {default_code!r} is not in the catalogue")

    def lookup(self, code: str | None) -> Brand | None:
        if not code:
            return None
        return self._by_key.get(code.strip().upper())

    def resolve(self, code: str | None) -> Brand:
        """Return the brand for ``code``, the default brand, or raise ``UnknownBrandError``."""
        brand = self.lookup(code)
        if brand is not None:
            return brand
        if self.default is not None:
            return self.default
        raise UnknownBrandError(code or "")


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------
_STATUS_TYPES = {
    OrderStatus.CANCELLED: MessageType.CANCELLATION,
    OrderStatus.REFUNDED: MessageType.REFUND,
    OrderStatus.SHIPPED: MessageType.SHIPPING,
    OrderStatus.DELIVERED: MessageType.DELIVERY,
}

_KEYWORD_RULES: tuple[tuple[re.Pattern, OrderStatus], ...] = (
    (re.compile(r"\bcancel"), OrderStatus.CANCELLED),
    (re.compile(r"\bfinal reminder\b"), OrderStatus.FINAL_REMINDER),
    (re.compile(r"\bexpired\b"), OrderStatus.EXPIRY_ALERT),
    (re.compile(r"\breminder\b"), OrderStatus.REMINDER),
    (re.compile(r"\bwere collected\b|\bhas been collected\b"), OrderStatus.COLLECTED),
    (re.compile(r"\bout of stock\b.*\bready\b|\bready\b.*\bout of stock\b"), OrderStatus.PARTIAL),
    (re.compile(r"\bready (?:for|to) collect"), OrderStatus.ALLOCATED),
    (re.compile(r"\bbeing processed\b"), OrderStatus.NEW_ORDER),
    (re.compile(r"\bthanks for your\b.*\border\b"), OrderStatus.ORDER_SUBMITTED),
)


def _status_pair(status: OrderStatus) -> tuple[MessageType, OrderStatus]:
    return _STATUS_TYPES.get(status, MessageType.ORDER), status


def _status_from_action(action_expression: str | None) -> OrderStatus | None:
    if not action_expression:
        return None
    normalized = re.sub(r"[\s\-]+", "_", action_expression.strip().lower())
    try:
        return OrderStatus(normalized)
    except ValueError:
        return None


def classify(record: NotificationRecord) -> tuple[MessageType, OrderStatus]:
    """Derive ``(MessageType, OrderStatus)`` for a record.

    An action expression naming an order status wins; otherwise the message
    text is matched against the keyword rules in order.
    """
    status = _status_from_action(record.action_expression)
    if status is not None:
        return _status_pair(status)

    text = (record.message or "").lower()
    for pattern, status in _KEYWORD_RULES:
        if pattern.search(text):
            return _status_pair(status)

    return DEFAULT_CLASSIFICATION
