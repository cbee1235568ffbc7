"""Logging configuration for the SMS notification service.

stdlib logging owns the handlers: stdout plus two rotating files under the
log directory, one for everything and one for errors only. structlog sits in
front of it and renders JSON in production and staging, and a coloured
console format everywhere else.

Per-message context (Kafka topic, partition and offset) is bound with
``log_context`` and appears on every line logged while processing it.
"""

import logging
import logging.handlers
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import structlog

_LEVELS = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

# Third-party loggers that are too chatty below WARNING.
NOISY_LOGGERS = ("asyncio", "protean", "aiokafka", "httpx", "httpcore")

_MAX_LOG_BYTES = 10 * 1024 * 1024
_LOG_BACKUPS = 5


def _environment(environment: str | None = None) -> str:
    return (
        environment or os.getenv("ENVIRONMENT") or os.getenv("PROTEAN_ENV") or "development"
    ).lower()


def get_log_level(environment: str | None = None) -> str:
    """``LOG_LEVEL`` when set, else the level for the environment."""
    return os.getenv("LOG_LEVEL", _LEVELS.get(_environment(environment), "INFO")).upper()


def _rotating_handler(path: Path, level: str | int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=_MAX_LOG_BYTES,
        backupCount=_LOG_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def setup_stdlib_logging(level: str, log_dir: Path | str = "logs") -> None:
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [
        console,
        _rotating_handler(log_dir / "sms_notifications.log", level),
        _rotating_handler(log_dir / "sms_notifications_error.log", logging.ERROR),
    ]

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _renderer(environment: str):
    if environment in ("production", "staging"):
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=True,
        exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=True, max_frames=2),
    )


def setup_structlog(environment: str) -> None:
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.contextvars.merge_contextvars,
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.FILENAME,
                    structlog.processors.CallsiteParameter.LINENO,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                ]
            ),
            _renderer(environment),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(environment: str | None = None, log_dir: Path | str = "logs") -> None:
    """Configure stdlib handlers and structlog for ``environment``.

    Falls back to ``ENVIRONMENT`` / ``PROTEAN_ENV`` when no environment is given.
    """
    environment = _environment(environment)
    setup_stdlib_logging(get_log_level(environment), log_dir)
    setup_structlog(environment)


@contextmanager
def log_context(**values) -> Iterator[None]:
    """Bind ``values`` to every log line emitted inside the block."""
    with structlog.contextvars.bound_contextvars(**values):
        yield
