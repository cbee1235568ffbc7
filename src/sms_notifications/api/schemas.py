"""Pydantic request/response models for the SMS notifications API."""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request Models
# ---------------------------------------------------------------------------
class ProcessNotificationRequest(BaseModel):
    document: str = Field(..., min_length=1, description="Raw SOAP/XML or JSON order event")
    is_structured_soap: bool | None = Field(
        default=None,
        description="True for SOAP/XML, False for flat JSON, omitted to detect",
    )


# ---------------------------------------------------------------------------
# Response Models
# ---------------------------------------------------------------------------
class ProcessingErrorResponse(BaseModel):
    kind: str
    detail: str
    missing_fields: list[str] = []
    attempts: int = 0


class NotificationRecordResponse(BaseModel):
    phone_number: str
    message: str
    brand_code: str
    brand_name: str | None = None
    channel_code: str | None = None
    channel_name: str | None = None
    order_id: str | None = None
    created_at: str | None = None
    action_expression: str | None = None


class ProcessingOutcomeResponse(BaseModel):
    ok: bool
    rendered_text: str | None = None
    message_id: str | None = None
    delivery_status: str | None = None
    attempts: int = 0
    message_type: str | None = None
    order_status: str | None = None
    record: NotificationRecordResponse | None = None
    error: ProcessingErrorResponse | None = None


class HealthResponse(BaseModel):
    status: str = "UP"
    service: str
    environment: str
    gateway: str
    breaker: dict
    dispatch: dict
