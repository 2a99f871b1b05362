"""
Structured logging for the purchase anomaly detector.

JSON logs with timestamp, event_type and per-event context (user_id, counts).
Use get_logger() in every module.
"""

from purchase_anomaly.anomaly_logging.logger import (
    EVENT_TIME_KEY,
    bind_user,
    configure_structlog,
    get_logger,
)

__all__ = ["EVENT_TIME_KEY", "bind_user", "configure_structlog", "get_logger"]
