"""Tests for logging configuration."""

import json
import logging
import logging.handlers
from unittest.mock import patch

import pytest
import structlog
from picks_core.config import LoggingConfig, Settings
from picks_core.logging_setup import configure_logging


@pytest.fixture
def temp_log_file(tmp_path):
    """Create a temporary log file path."""
    return tmp_path / "test_logs" / "picks.log"


@pytest.fixture
def test_settings(temp_log_file):
    """Create test settings with temporary log file."""
    with patch.object(Settings, "model_config", {"env_file": None, "extra": "ignore"}):
        return Settings(
            api={"key": "test_key"},
            database={"url": "sqlite+aiosqlite://"},
            logging=LoggingConfig(level="INFO", file=str(temp_log_file)),
        )


def _flush():
    for handler in logging.root.handlers:
        handler.flush()


def test_creates_log_directory(test_settings, temp_log_file):
    assert not temp_log_file.parent.exists()

    configure_logging(test_settings)

    assert temp_log_file.parent.is_dir()


def test_level_filters_debug(test_settings, temp_log_file):
    configure_logging(test_settings)
    logger = structlog.get_logger("picks_test")

    logger.debug("cache_debug_event")
    logger.info("cache_info_event", key="odds:game:1")
    _flush()

    content = temp_log_file.read_text()
    assert "cache_debug_event" not in content
    assert "cache_info_event" in content
    assert "odds:game:1" in content


def test_json_output_mode(test_settings, temp_log_file):
    configure_logging(test_settings, json_output=True)

    structlog.get_logger("picks_test").info("refresh_odds_job_completed", updated=3)
    _flush()

    line = temp_log_file.read_text().strip().splitlines()[-1]
    record = json.loads(line)
    assert record["event"] == "refresh_odds_job_completed"
    assert record["updated"] == 3
    assert record["level"] == "info"


def test_rotating_file_handler(test_settings):
    configure_logging(test_settings)

    handlers = [
        h for h in logging.root.handlers if isinstance(h, logging.handlers.RotatingFileHandler)
    ]
    assert len(handlers) == 1
    assert handlers[0].maxBytes == 10_485_760
    assert handlers[0].backupCount == 5


def test_repeated_configuration_replaces_handlers(test_settings):
    configure_logging(test_settings)
    configure_logging(test_settings)

    assert len(logging.root.handlers) == 2


def test_invalid_level_defaults_to_info(test_settings, capsys):
    test_settings.logging.level = "LOUD"

    configure_logging(test_settings)

    assert "Invalid log level" in capsys.readouterr().out
    assert logging.root.level == logging.INFO


def test_unwritable_log_file_falls_back_to_console(test_settings, capsys):
    with patch(
        "picks_core.logging_setup.logging.handlers.RotatingFileHandler",
        side_effect=PermissionError("denied"),
    ):
        configure_logging(test_settings)

    assert "Falling back to console-only logging" in capsys.readouterr().out
    assert not any(
        isinstance(h, logging.handlers.RotatingFileHandler) for h in logging.root.handlers
    )
