"""
Structured logging for stream runs.

Every record carries a wall-clock ``timestamp`` (ISO 8601, UTC), ``level``,
``logger`` and a snake_case ``event_type``. Stream times travel as
``event_timestamp`` (epoch milliseconds) so ``timestamp`` keeps one type
across all records. Output goes to stderr; stdout belongs to the CLI.

Uses only Python stdlib logging and structlog; no purchase_anomaly imports to avoid circular imports.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL_VALUE = getattr(logging, LOG_LEVEL, logging.INFO)

# json (default) or console
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()

EVENT_TIME_KEY = "event_timestamp"


def _stamp_log_time(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Set the wall-clock timestamp; a caller's ``timestamp`` moves to event_timestamp."""
    if "timestamp" in event_dict:
        event_dict.setdefault(EVENT_TIME_KEY, event_dict.pop("timestamp"))
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def _event_type(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """structlog's positional 'event' becomes event_type; message defaults to it."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    event_dict.setdefault("message", str(event_dict.get("event_type", "")))
    return event_dict


def build_processors(log_format: str = LOG_FORMAT) -> list[Any]:
    """Processor chain shared by every logger; the renderer is picked by log_format."""
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.format_exc_info,
        _stamp_log_time,
        _event_type,
    ]
    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer(sort_keys=False))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    return processors


def configure_structlog(
    level: int = LOG_LEVEL_VALUE,
    log_format: str = LOG_FORMAT,
    stream: TextIO | None = None,
) -> None:
    """(Re)configure structlog for the process."""
    structlog.configure(
        processors=build_processors(log_format),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Return a structured logger for the given module name.

        logger = get_logger(__name__)
        logger.info("stream_configured", depth=2, tracked=50)

    Output (JSON): {"logger": "module.name", "depth": 2, "tracked": 50,
    "level": "info", "timestamp": "...", "event_type": "stream_configured", ...}
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_user(logger: Any, user_id: int, **context: Any) -> Any:
    """Child of logger with user_id (and any extra context) on every record."""
    return logger.bind(user_id=user_id, **context)
