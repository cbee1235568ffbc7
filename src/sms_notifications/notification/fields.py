"""Field extraction sets — declarative maps from document paths to record fields.

Two stock sets are provided:

- ``SOAP_FIELDS`` for the ATG ``ProcessCommunication`` business object
  document wrapped in a SOAP envelope
- ``JSON_FIELDS`` for the flat JSON messages published on the order topic
"""

from dataclasses import dataclass, field

import structlog
from protean.exceptions import ValidationError

from sms_notifications.document.extractor import (
    Disambiguation,
    PathExtractor,
    PreferAttribute,
    TextContent,
)
from sms_notifications.document.tree import ABSENT, ExtractionPath, ParsedDocument
from sms_notifications.notification.record import NotificationRecord

logger = structlog.get_logger(__name__)


class ExtractionFailure(Exception):
    """One or more required fields are missing or invalid."""

    def __init__(self, missing_fields: list[str], detail: str | None = None):
        self.missing_fields = sorted(missing_fields)
        self.detail = detail or f"Missing or invalid fields: {', '.join(self.missing_fields)}"
        super().__init__(self.detail)


@dataclass(frozen=True)
class FieldSpec:
    name: str
    path: ExtractionPath
    disambiguation: Disambiguation = TextContent()
    required: bool = False
    fallback_paths: tuple[ExtractionPath, ...] = field(default_factory=tuple)

    @property
    def paths(self) -> tuple[ExtractionPath, ...]:
        return (self.path, *self.fallback_paths)


# Display names default to their codes when the document carries no name.
_DISPLAY_NAME_DEFAULTS = {
    "brand_name": "brand_code",
    "channel_name": "channel_code",
}


class FieldExtractionSet:
    """Resolves a group of field specs against a document into a record."""

    def __init__(self, specs: tuple[FieldSpec, ...], extractor: PathExtractor):
        names = [spec.name for spec in specs]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate field names in extraction set: {names}")
        self.specs = specs
        self.extractor = extractor

    def resolve_fields(self, doc: ParsedDocument) -> dict[str, object]:
        """Resolve every spec, returning a name to value-or-``ABSENT`` map."""
        values: dict[str, object] = {}
        for spec in self.specs:
            value = ABSENT
            for path in spec.paths:
                value = self.extractor.extract_text(doc, path, spec.disambiguation)
                if value is not ABSENT:
                    break
            values[spec.name] = value

        for name, source in _DISPLAY_NAME_DEFAULTS.items():
            if name in values and values[name] is ABSENT:
                values[name] = values.get(source, ABSENT)
        return values

    def extract(self, doc: ParsedDocument) -> NotificationRecord:
        """Build a ``NotificationRecord`` or raise ``ExtractionFailure``.

        Every missing required field is reported, not just the first one.
        """
        values = self.resolve_fields(doc)

        missing = [spec.name for spec in self.specs if spec.required and values[spec.name] is ABSENT]
        if missing:
            logger.warning("Required fields missing", doc_id=doc.doc_id, missing_fields=missing)
            raise ExtractionFailure(missing)

        kwargs = {name: (None if value is ABSENT else value) for name, value in values.items()}
        try:
            return NotificationRecord(**kwargs)
        except ValidationError as exc:
            invalid = list(exc.messages.keys())
            logger.warning("Extracted fields failed validation", doc_id=doc.doc_id, errors=exc.messages)
            raise ExtractionFailure(invalid, detail=f"Invalid fields: {exc.messages}") from exc


# ---------------------------------------------------------------------------
# SOAP / ATG ProcessCommunication
# ---------------------------------------------------------------------------
_PROCESS_COMMUNICATION = ExtractionPath.of("SOAP-ENV:Envelope", "SOAP-ENV:Body", 0, "ProcessCommunication", 0)
_APPLICATION_AREA = _PROCESS_COMMUNICATION + ExtractionPath.of("oa:ApplicationArea", 0)
_COMMUNICATION = _PROCESS_COMMUNICATION + ExtractionPath.of("DataArea", 0, "Communication", 0)
_BRAND_CHANNEL = _COMMUNICATION + ExtractionPath.of("CommunicationHeader", 0, "BrandChannel", 0)
_BRAND_CODE = _BRAND_CHANNEL + ExtractionPath.of("Brand", 0, "oa:Code", 0)
_CHANNEL_CODE = _BRAND_CHANNEL + ExtractionPath.of("Channel", 0, "oa:Code", 0)
_ACTION_EXPRESSION = _PROCESS_COMMUNICATION + ExtractionPath.of(
    "DataArea", 0, "oa:Process", 0, "oa:ActionCriteria", 0, "oa:ActionExpression", 0
)

SOAP_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec(
        name="phone_number",
        path=_COMMUNICATION
        + ExtractionPath.of(
            "CommunicationHeader",
            0,
            "CustomerParty",
            0,
            "Contact",
            0,
            "SMSTelephoneCommunication",
            0,
            "oa:FormattedNumber",
            0,
        ),
        required=True,
    ),
    FieldSpec(
        name="message",
        path=_COMMUNICATION + ExtractionPath.of("CommunicationItem", 0, "oa:Message", 0, "oa:Note", 0),
        required=True,
    ),
    FieldSpec(name="brand_code", path=_BRAND_CODE, required=True),
    FieldSpec(name="brand_name", path=_BRAND_CODE, disambiguation=PreferAttribute("name")),
    FieldSpec(name="channel_code", path=_CHANNEL_CODE),
    FieldSpec(name="channel_name", path=_CHANNEL_CODE, disambiguation=PreferAttribute("name")),
    FieldSpec(name="order_id", path=_APPLICATION_AREA + ExtractionPath.of("oa:BODID", 0)),
    FieldSpec(name="created_at", path=_APPLICATION_AREA + ExtractionPath.of("oa:CreationDateTime", 0)),
    FieldSpec(name="action_expression", path=_ACTION_EXPRESSION),
)


# ---------------------------------------------------------------------------
# Flat JSON
# ---------------------------------------------------------------------------
def _keys(*names: str) -> tuple[ExtractionPath, ...]:
    return tuple(ExtractionPath.of(name) for name in names)


def _json_field(name: str, *keys: str, required: bool = False) -> FieldSpec:
    primary, *fallbacks = _keys(*keys)
    return FieldSpec(name=name, path=primary, required=required, fallback_paths=tuple(fallbacks))


JSON_FIELDS: tuple[FieldSpec, ...] = (
    _json_field("phone_number", "to", "phoneNumber", required=True),
    _json_field("message", "message", "text", required=True),
    _json_field("brand_code", "banner", "brand", "brandCode", required=True),
    _json_field("brand_name", "brandName"),
    _json_field("channel_code", "channel", "channelCode"),
    _json_field("channel_name", "channelName"),
    _json_field("order_id", "orderNumber", "orderId"),
    _json_field("created_at", "createdAt", "timestamp"),
    _json_field("action_expression", "actionExpression", "status"),
)
