"""Orchestrator — one inbound document in, one typed outcome out.

Pipeline: parse -> extract -> resolve brand -> classify -> render -> dispatch.
Every document-level failure is reported as a ``ProcessingError`` on the
returned outcome; ``process`` itself only raises for programming errors.

Unknown brands resolve to the catalogue's default brand when one is
configured (``SMS_DEFAULT_BRAND``) and fail with ``UNKNOWN_BRAND`` otherwise.
"""

import asyncio
import re
from dataclasses import dataclass
from enum import Enum

import structlog

from sms_notifications.channel import build_gateway
from sms_notifications.channel.sms_port import SendResult, SMSPort
from sms_notifications.config import Settings
from sms_notifications.document.extractor import PathExtractor, ResolutionCache
from sms_notifications.document.parser import ParseError, parse_document
from sms_notifications.document.tree import DocumentFormat
from sms_notifications.metrics import SmsMetrics
from sms_notifications.notification.classification import (
    Brand,
    BrandCatalogue,
    UnknownBrandError,
    classify,
)
from sms_notifications.notification.fields import (
    JSON_FIELDS,
    SOAP_FIELDS,
    ExtractionFailure,
    FieldExtractionSet,
)
from sms_notifications.notification.record import NotificationRecord
from sms_notifications.resilience.breaker import CircuitBreaker
from sms_notifications.resilience.dispatcher import DispatchError, DispatchErrorKind, ResilientDispatcher
from sms_notifications.resilience.retry import RetryPolicy
from sms_notifications.templates import build_registry
from sms_notifications.templates.engine import ParameterError, TemplateNotFound, TemplateRegistry, render

logger = structlog.get_logger(__name__)


class ProcessingErrorKind(Enum):
    INVALID_DOCUMENT = "invalid_document"
    MISSING_FIELDS = "missing_fields"
    UNKNOWN_BRAND = "unknown_brand"
    TEMPLATE_UNAVAILABLE = "template_unavailable"
    DISPATCH_FAILED = "dispatch_failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ProcessingError:
    kind: ProcessingErrorKind
    detail: str
    missing_fields: tuple[str, ...] = ()
    attempts: int = 0


@dataclass(frozen=True)
class ProcessingOutcome:
    ok: bool
    record: NotificationRecord | None = None
    rendered_text: str | None = None
    dispatch_result: SendResult | None = None
    error: ProcessingError | None = None
    attempts: int = 0
    doc_id: int | None = None
    classification: tuple[str, str] | None = None


# ---------------------------------------------------------------------------
# Template parameters
# ---------------------------------------------------------------------------
_MONTHS = "January|February|March|April|May|June|July|August|September|October|November|December"
_DATE_PATTERN = re.compile(
    rf"\b(\d{{4}}-\d{{2}}-\d{{2}}|\d{{1,2}}/\d{{1,2}}/\d{{2,4}}|\d{{1,2}}(?:st|nd|rd|th)? (?:{_MONTHS})(?: \d{{4}})?)\b",
    re.IGNORECASE,
)


def find_date(text: str) -> str | None:
    match = _DATE_PATTERN.search(text)
    return match.group(1) if match else None


def template_params(record: NotificationRecord, brand: Brand) -> dict[str, str]:
    """Values available to templates; keys with no value are left out."""
    candidates = {
        "orderId": record.order_id,
        "brand": brand.web_domain,
        "brandName": brand.display_name,
        "brandCode": record.brand_code,
        "channel": record.channel_name,
        "message": record.message,
        "expiryDate": find_date(record.message),
    }
    return {name: value for name, value in candidates.items() if value}


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------
class Orchestrator:
    def __init__(
        self,
        *,
        extractor: PathExtractor,
        registry: TemplateRegistry,
        dispatcher: ResilientDispatcher,
        gateway: SMSPort,
        brands: BrandCatalogue,
        metrics: SmsMetrics | None = None,
    ):
        self.extractor = extractor
        self.registry = registry
        self.dispatcher = dispatcher
        self.gateway = gateway
        self.brands = brands
        self.metrics = metrics
        self.field_sets = {
            DocumentFormat.SOAP_XML: FieldExtractionSet(SOAP_FIELDS, extractor),
            DocumentFormat.JSON: FieldExtractionSet(JSON_FIELDS, extractor),
        }

    def _fail(
        self,
        kind: ProcessingErrorKind,
        detail: str,
        *,
        doc_id: int | None = None,
        record: NotificationRecord | None = None,
        rendered_text: str | None = None,
        missing_fields=(),
        attempts: int = 0,
        brand: str | None = None,
    ) -> ProcessingOutcome:
        logger.warning(
            "Notification processing failed",
            kind=kind.value,
            detail=detail,
            doc_id=doc_id,
            missing_fields=list(missing_fields),
            attempts=attempts,
        )
        if self.metrics is not None:
            self.metrics.record_failure(kind.value, brand=brand, attempts=attempts)
        return ProcessingOutcome(
            ok=False,
            record=record,
            rendered_text=rendered_text,
            error=ProcessingError(kind=kind, detail=detail, missing_fields=tuple(missing_fields), attempts=attempts),
            attempts=attempts,
            doc_id=doc_id,
        )

    async def process(
        self,
        raw_document: str,
        is_structured_soap: bool | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> ProcessingOutcome:
        """Run one raw document through the pipeline.

        ``is_structured_soap`` selects the SOAP/XML or flat JSON field set;
        ``None`` detects the format from the document itself.
        """
        if is_structured_soap is None:
            fmt = None
        else:
            fmt = DocumentFormat.SOAP_XML if is_structured_soap else DocumentFormat.JSON

        try:
            doc = parse_document(raw_document, fmt)
        except ParseError as exc:
            return self._fail(ProcessingErrorKind.INVALID_DOCUMENT, str(exc))

        try:
            record = self.field_sets[doc.fmt].extract(doc)
        except ExtractionFailure as exc:
            return self._fail(
                ProcessingErrorKind.MISSING_FIELDS,
                exc.detail,
                doc_id=doc.doc_id,
                missing_fields=exc.missing_fields,
            )

        try:
            brand = self.brands.resolve(record.brand_code)
        except UnknownBrandError as exc:
            return self._fail(ProcessingErrorKind.UNKNOWN_BRAND, str(exc), doc_id=doc.doc_id, record=record)

        if self.brands.lookup(record.brand_code) is None:
            logger.info("Unknown brand, using default", brand_code=record.brand_code, default_brand=brand.code)

        message_type, order_status = classify(record)
        try:
            template = self.registry.select(message_type, order_status)
            text = render(template, template_params(record, brand))
        except TemplateNotFound as exc:
            return self._fail(
                ProcessingErrorKind.TEMPLATE_UNAVAILABLE, str(exc), doc_id=doc.doc_id, record=record, brand=brand.code
            )
        except ParameterError as exc:
            return self._fail(
                ProcessingErrorKind.TEMPLATE_UNAVAILABLE,
                str(exc),
                doc_id=doc.doc_id,
                record=record,
                missing_fields=exc.missing,
                brand=brand.code,
            )

        try:
            result, attempts = await self.dispatcher.dispatch_counted(
                lambda: self.gateway.send(record.phone_number, text, sender_id=record.brand_code),
                cancel_event=cancel_event,
            )
        except DispatchError as exc:
            kind = (
                ProcessingErrorKind.CANCELLED
                if exc.kind is DispatchErrorKind.CANCELLED
                else ProcessingErrorKind.DISPATCH_FAILED
            )
            return self._fail(
                kind,
                str(exc),
                doc_id=doc.doc_id,
                record=record,
                rendered_text=text,
                attempts=exc.attempts,
                brand=brand.code,
            )

        logger.info(
            "SMS sent",
            doc_id=doc.doc_id,
            brand=brand.code,
            order_id=record.order_id,
            message_type=message_type.value,
            order_status=order_status.value,
            message_id=result.message_id,
        )
        if self.metrics is not None:
            self.metrics.record_success(brand.code, attempts)
        return ProcessingOutcome(
            ok=True,
            record=record,
            rendered_text=text,
            dispatch_result=result,
            attempts=attempts,
            doc_id=doc.doc_id,
            classification=(message_type.value, order_status.value),
        )


def build_orchestrator(
    settings: Settings,
    *,
    gateway: SMSPort | None = None,
    metrics: SmsMetrics | None = None,
) -> Orchestrator:
    """Wire an orchestrator and its collaborators from ``settings``."""
    breaker = CircuitBreaker(
        "sms-send",
        volume_threshold=settings.breaker_volume_threshold,
        error_threshold_percentage=settings.breaker_error_threshold_percentage,
        reset_timeout=settings.breaker_reset_timeout,
        window_size=max(settings.breaker_window_size, settings.breaker_volume_threshold),
    )
    if metrics is not None:
        breaker.add_listener(metrics.on_breaker_transition)

    dispatcher = ResilientDispatcher(
        breaker,
        RetryPolicy(
            max_attempts=settings.retry_max_attempts,
            initial_delay=settings.retry_initial_delay,
            backoff_factor=settings.retry_backoff_factor,
        ),
        attempt_timeout=settings.attempt_timeout,
    )
    return Orchestrator(
        extractor=PathExtractor(ResolutionCache(settings.resolution_cache_size)),
        registry=build_registry(),
        dispatcher=dispatcher,
        gateway=gateway if gateway is not None else build_gateway(settings),
        brands=BrandCatalogue(default_code=settings.default_brand),
        metrics=metrics,
    )
