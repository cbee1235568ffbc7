"""SMS notifications FastAPI application.

Exposes health and Prometheus metrics endpoints and a synchronous
"process this document" endpoint backed by the same orchestrator the Kafka
consumer uses.

Usage:
    uvicorn sms_notifications.app:create_app --factory --host 0.0.0.0 --port 8000
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from sms_notifications.api import router as notifications_router
from sms_notifications.api.schemas import HealthResponse
from sms_notifications.channel.sms_port import SMSPort
from sms_notifications.config import Settings
from sms_notifications.domain import logger, sms_notifications
from sms_notifications.metrics import CONTENT_TYPE_LATEST, SmsMetrics
from sms_notifications.notification.orchestrator import build_orchestrator


def create_app(settings: Settings | None = None, gateway: SMSPort | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    sms_notifications.init(traverse=False)

    metrics = SmsMetrics()
    orchestrator = build_orchestrator(settings, gateway=gateway, metrics=metrics)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "SMS notifications API starting",
            environment=settings.environment,
            gateway=type(orchestrator.gateway).__name__,
            default_brand=settings.default_brand,
        )
        yield
        await orchestrator.gateway.aclose()

    app = FastAPI(
        title="SMS Notifications API",
        description="Order event documents in, SMS messages out",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.metrics = metrics
    app.state.orchestrator = orchestrator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the Protean domain context for each request."""
        with sms_notifications.domain_context():
            return await call_next(request)

    # -----------------------------------------------------------------------
    # Routers
    # -----------------------------------------------------------------------
    app.include_router(notifications_router)

    # -----------------------------------------------------------------------
    # Health / metrics
    # -----------------------------------------------------------------------
    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        dispatcher = orchestrator.dispatcher
        return HealthResponse(
            service=sms_notifications.name,
            environment=settings.environment,
            gateway=type(orchestrator.gateway).__name__,
            breaker=dispatcher.breaker.snapshot(),
            dispatch=dispatcher.stats.as_dict(),
        )

    @app.get("/metrics")
    async def metrics_endpoint():
        return Response(content=metrics.render(), media_type=CONTENT_TYPE_LATEST)

    return app
