import logging

import pytest
import structlog

from sms_notifications.utils.logging import configure_logging, get_log_level, log_context


@pytest.fixture()
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


@pytest.mark.parametrize(
    "environment, level",
    [("production", "INFO"), ("development", "DEBUG"), ("test", "WARNING"), ("unknown", "INFO")],
)
def test_log_level_follows_environment(monkeypatch, environment, level):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    assert get_log_level(environment) == level


def test_log_level_override(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "error")
    assert get_log_level("development") == "ERROR"


def test_configure_logging_writes_to_log_dir(monkeypatch, tmp_path, restore_logging):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    log_dir = tmp_path / "logs"

    configure_logging("production", log_dir=log_dir)

    assert (log_dir / "sms_notifications.log").exists()
    assert (log_dir / "sms_notifications_error.log").exists()
    assert logging.getLogger().level == logging.INFO
    assert logging.getLogger("aiokafka").level == logging.WARNING


def test_log_context_is_scoped():
    with log_context(topic="sms-requests", offset=7):
        bound = structlog.contextvars.get_contextvars()
        assert bound["topic"] == "sms-requests"
        assert bound["offset"] == 7
    assert "topic" not in structlog.contextvars.get_contextvars()
