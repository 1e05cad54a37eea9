"""Centralized logging configuration for the CLI and scheduled jobs."""

import logging
import logging.handlers
from pathlib import Path

import structlog

from picks_core.config import Settings

_SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.processors.StackInfoRenderer(),
    structlog.dev.set_exc_info,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
]


def configure_logging(settings: Settings, json_output: bool = False) -> None:
    """
    Configure structlog and stdlib logging based on settings.

    Args:
        settings: Application settings containing logging configuration
        json_output: If True, use JSON rendering (for jobs). If False, use
                    human-readable console output (for the CLI)

    Note:
        Idempotent; safe to call more than once. Creates the log directory
        if it doesn't exist and falls back to console-only logging when the
        file cannot be opened.
    """
    log_level = _resolve_level(settings.logging.level)
    log_path = Path(settings.logging.file)

    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=10_485_760,  # 10MB
            backupCount=5,
            encoding="utf-8",
        )
    except (OSError, PermissionError) as e:
        print(f"Warning: Could not create log file {log_path}: {e}")
        print("Falling back to console-only logging")
        _configure_console_only(settings, json_output)
        return

    file_handler.setLevel(log_level)
    file_handler.setFormatter(_build_formatter(json_output, colors=False))

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(_build_formatter(json_output, colors=True))

    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[file_handler, console_handler],
        force=True,
    )
    _configure_structlog()


def _configure_console_only(settings: Settings, json_output: bool) -> None:
    """Fallback configuration when file logging is unavailable."""
    log_level = _resolve_level(settings.logging.level)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(_build_formatter(json_output, colors=True))

    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[console_handler],
        force=True,
    )
    _configure_structlog()


def _resolve_level(level_name: str) -> int:
    level = getattr(logging, level_name.upper(), None)
    if not isinstance(level, int):
        print(f"Warning: Invalid log level '{level_name}', defaulting to INFO")
        return logging.INFO
    return level


def _build_formatter(json_output: bool, colors: bool) -> structlog.stdlib.ProcessorFormatter:
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=colors)
    )
    return structlog.stdlib.ProcessorFormatter(
        processors=_SHARED_PROCESSORS
        + [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=_SHARED_PROCESSORS,
    )


def _configure_structlog() -> None:
    structlog.configure(
        processors=_SHARED_PROCESSORS
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
