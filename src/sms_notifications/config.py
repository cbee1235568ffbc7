"""Service configuration, read from environment variables.

| Variable | Default |
|----------|---------|
| ``ENVIRONMENT`` | ``development`` |
| ``INFOBIP_BASE_URL`` / ``INFOBIP_API_KEY`` | unset (fake gateway) |
| ``INFOBIP_DEFAULT_SENDER`` | ``KingFisher`` |
| ``KAFKA_BROKERS`` | ``localhost:9092`` (comma separated) |
| ``KAFKA_TOPIC`` / ``KAFKA_CONSUMER_GROUP`` | ``sms-requests`` / ``sms-notifications`` |
| ``KAFKA_SECURITY_PROTOCOL`` / ``KAFKA_SASL_MECHANISM`` | ``PLAINTEXT`` / unset |
| ``KAFKA_SASL_USERNAME`` / ``KAFKA_SASL_PASSWORD`` | unset |
| ``SMS_DEFAULT_BRAND`` | ``BQUK``; empty rejects unknown brands |
| ``SMS_BREAKER_*`` / ``SMS_RETRY_*`` / ``SMS_ATTEMPT_TIMEOUT`` | see ``Settings`` |
"""

import os

from pydantic import BaseModel, Field, field_validator


class Settings(BaseModel):
    environment: str = "development"

    # Infobip
    infobip_base_url: str | None = None
    infobip_api_key: str | None = None
    infobip_default_sender: str = "KingFisher"
    infobip_timeout: float = Field(default=10.0, gt=0)

    # Kafka
    kafka_brokers: list[str] = Field(default_factory=lambda: ["localhost:9092"])
    kafka_topic: str = "sms-requests"
    kafka_consumer_group: str = "sms-notifications"
    kafka_security_protocol: str = "PLAINTEXT"
    kafka_sasl_mechanism: str | None = None
    kafka_sasl_username: str | None = None
    kafka_sasl_password: str | None = None

    # Brands
    default_brand: str | None = "BQUK"

    # Resilience
    breaker_volume_threshold: int = Field(default=3, ge=1)
    breaker_error_threshold_percentage: float = Field(default=50.0, gt=0, le=100)
    breaker_reset_timeout: float = Field(default=30.0, ge=0)
    breaker_window_size: int = Field(default=10, ge=1)
    retry_max_attempts: int = Field(default=3, ge=1)
    retry_initial_delay: float = Field(default=1.0, ge=0)
    retry_backoff_factor: float = Field(default=2.0, ge=1)
    attempt_timeout: float = Field(default=5.0, gt=0)

    # Extraction
    resolution_cache_size: int = Field(default=4096, ge=1)

    @field_validator("default_brand")
    @classmethod
    def _blank_brand_means_none(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value

    @property
    def infobip_configured(self) -> bool:
        return bool(self.infobip_base_url and self.infobip_api_key)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ

        values: dict = {}
        for field_name, variable in _ENV_VARIABLES.items():
            if variable in env:
                values[field_name] = env[variable]

        if "ENVIRONMENT" not in env and "PROTEAN_ENV" in env:
            values["environment"] = env["PROTEAN_ENV"]
        if "kafka_brokers" in values:
            values["kafka_brokers"] = [b.strip() for b in values["kafka_brokers"].split(",") if b.strip()]

        return cls(**values)


_ENV_VARIABLES = {
    "environment": "ENVIRONMENT",
    "infobip_base_url": "INFOBIP_BASE_URL",
    "infobip_api_key": "INFOBIP_API_KEY",
    "infobip_default_sender": "INFOBIP_DEFAULT_SENDER",
    "infobip_timeout": "INFOBIP_TIMEOUT",
    "kafka_brokers": "KAFKA_BROKERS",
    "kafka_topic": "KAFKA_TOPIC",
    "kafka_consumer_group": "KAFKA_CONSUMER_GROUP",
    "kafka_security_protocol": "KAFKA_SECURITY_PROTOCOL",
    "kafka_sasl_mechanism": "KAFKA_SASL_MECHANISM",
    "kafka_sasl_username": "KAFKA_SASL_USERNAME",
    "kafka_sasl_password": "KAFKA_SASL_PASSWORD",
    "default_brand": "SMS_DEFAULT_BRAND",
    "breaker_volume_threshold": "SMS_BREAKER_VOLUME_THRESHOLD",
    "breaker_error_threshold_percentage": "SMS_BREAKER_ERROR_THRESHOLD_PERCENTAGE",
    "breaker_reset_timeout": "SMS_BREAKER_RESET_TIMEOUT",
    "breaker_window_size": "SMS_BREAKER_WINDOW_SIZE",
    "retry_max_attempts": "SMS_RETRY_MAX_ATTEMPTS",
    "retry_initial_delay": "SMS_RETRY_INITIAL_DELAY",
    "retry_backoff_factor": "SMS_RETRY_BACKOFF_FACTOR",
    "attempt_timeout": "SMS_ATTEMPT_TIMEOUT",
    "resolution_cache_size": "SMS_RESOLUTION_CACHE_SIZE",
}
