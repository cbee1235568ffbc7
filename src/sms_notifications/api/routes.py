"""FastAPI routes for the SMS notifications service.

Thin adapters over the orchestrator: request schema in, outcome schema out.
"""

from fastapi import APIRouter, HTTPException, Request

from sms_notifications.api.schemas import (
    NotificationRecordResponse,
    ProcessingErrorResponse,
    ProcessingOutcomeResponse,
    ProcessNotificationRequest,
)
from sms_notifications.notification.orchestrator import (
    Orchestrator,
    ProcessingErrorKind,
    ProcessingOutcome,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])

# Failures caused by the gateway rather than the document.
_UPSTREAM_FAILURES = {ProcessingErrorKind.DISPATCH_FAILED, ProcessingErrorKind.CANCELLED}


def _to_response(outcome: ProcessingOutcome) -> ProcessingOutcomeResponse:
    record = None
    if outcome.record is not None:
        record = NotificationRecordResponse(**outcome.record.to_dict())

    error = None
    if outcome.error is not None:
        error = ProcessingErrorResponse(
            kind=outcome.error.kind.value,
            detail=outcome.error.detail,
            missing_fields=list(outcome.error.missing_fields),
            attempts=outcome.error.attempts,
        )

    message_type, order_status = outcome.classification or (None, None)
    return ProcessingOutcomeResponse(
        ok=outcome.ok,
        rendered_text=outcome.rendered_text,
        message_id=outcome.dispatch_result.message_id if outcome.dispatch_result else None,
        delivery_status=outcome.dispatch_result.status if outcome.dispatch_result else None,
        attempts=outcome.attempts,
        message_type=message_type,
        order_status=order_status,
        record=record,
        error=error,
    )


# ---------------------------------------------------------------------------
# Processing
# ---------------------------------------------------------------------------
@router.post("/process", response_model=ProcessingOutcomeResponse)
async def process_notification(body: ProcessNotificationRequest, request: Request) -> ProcessingOutcomeResponse:
    """Run one order event document through the pipeline and send the SMS."""
    orchestrator: Orchestrator = request.app.state.orchestrator
    outcome = await orchestrator.process(body.document, body.is_structured_soap)
    response = _to_response(outcome)

    if outcome.ok:
        return response
    status_code = 502 if outcome.error.kind in _UPSTREAM_FAILURES else 422
    raise HTTPException(status_code=status_code, detail=response.model_dump(mode="json"))
