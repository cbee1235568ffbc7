"""Kafka consumer — feeds order event messages to the orchestrator.

Usage:
    python -m sms_notifications.consumer
    python -m sms_notifications.consumer --topic sms-requests --group sms-notifications
"""

import argparse
import asyncio
import signal

import structlog
from aiokafka import AIOKafkaConsumer
from aiokafka.helpers import create_ssl_context

from sms_notifications.config import Settings
from sms_notifications.domain import sms_notifications
from sms_notifications.metrics import SmsMetrics
from sms_notifications.notification.orchestrator import (
    Orchestrator,
    ProcessingOutcome,
    build_orchestrator,
)
from sms_notifications.utils.logging import configure_logging, log_context

logger = structlog.get_logger(__name__)


def build_consumer(settings: Settings) -> AIOKafkaConsumer:
    options = {
        "bootstrap_servers": ",".join(settings.kafka_brokers),
        "group_id": settings.kafka_consumer_group,
        "auto_offset_reset": "earliest",
        "enable_auto_commit": True,
        "security_protocol": settings.kafka_security_protocol,
    }
    if settings.kafka_security_protocol.upper().endswith("SSL"):
        options["ssl_context"] = create_ssl_context()
    if settings.kafka_sasl_mechanism:
        options.update(
            sasl_mechanism=settings.kafka_sasl_mechanism.upper(),
            sasl_plain_username=settings.kafka_sasl_username,
            sasl_plain_password=settings.kafka_sasl_password,
        )
    return AIOKafkaConsumer(settings.kafka_topic, **options)


async def handle_message(
    orchestrator: Orchestrator,
    value: bytes | None,
    *,
    topic: str,
    partition: int,
    offset: int,
) -> ProcessingOutcome | None:
    """Process one Kafka record. Outcomes are logged, never raised."""
    with log_context(topic=topic, partition=partition, offset=offset):
        if not value:
            logger.warning("Received empty message, skipping")
            return None

        raw = value.decode("utf-8", errors="replace")
        logger.info("Received message", preview=raw[:100])

        with sms_notifications.domain_context():
            outcome = await orchestrator.process(raw)

        if outcome.ok:
            logger.info(
                "Message processed",
                order_id=outcome.record.order_id,
                message_id=outcome.dispatch_result.message_id,
                attempts=outcome.attempts,
            )
        else:
            logger.warning(
                "Message not delivered",
                kind=outcome.error.kind.value,
                detail=outcome.error.detail,
            )
        return outcome


async def consume(settings: Settings, orchestrator: Orchestrator, stop_event: asyncio.Event) -> None:
    consumer = build_consumer(settings)
    await consumer.start()
    logger.info(
        "Kafka consumer started",
        topic=settings.kafka_topic,
        group=settings.kafka_consumer_group,
        brokers=settings.kafka_brokers,
    )
    try:
        while not stop_event.is_set():
            batches = await consumer.getmany(timeout_ms=1000)
            for records in batches.values():
                for record in records:
                    await handle_message(
                        orchestrator,
                        record.value,
                        topic=record.topic,
                        partition=record.partition,
                        offset=record.offset,
                    )
    finally:
        await consumer.stop()
        await orchestrator.gateway.aclose()
        logger.info("Kafka consumer stopped")


async def run(settings: Settings) -> None:
    sms_notifications.init(traverse=False)
    orchestrator = build_orchestrator(settings, metrics=SmsMetrics())

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    await consume(settings, orchestrator, stop_event)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="SMS notifications Kafka consumer")
    parser.add_argument("--topic", help="Topic to subscribe to (default: KAFKA_TOPIC)")
    parser.add_argument("--group", help="Consumer group id (default: KAFKA_CONSUMER_GROUP)")
    args = parser.parse_args(argv)

    settings = Settings.from_env()
    configure_logging(settings.environment)
    overrides = {}
    if args.topic:
        overrides["kafka_topic"] = args.topic
    if args.group:
        overrides["kafka_consumer_group"] = args.group
    if overrides:
        settings = settings.model_copy(update=overrides)

    asyncio.run(run(settings))


if __name__ == "__main__":
    main()
