"""
Event log I/O: JSON-lines decoding of input events and encoding of
flagged purchases. The only place that touches raw text and timestamps.
"""

from purchase_anomaly.event_log.models import (
    BefriendEvent,
    ConfigureEvent,
    Event,
    PurchaseEvent,
    UnfriendEvent,
)
from purchase_anomaly.event_log.parser import (
    format_timestamp,
    iter_events,
    parse_event,
    parse_timestamp,
    read_events,
)
from purchase_anomaly.event_log.writer import encode_anomaly, format_anomaly, write_anomalies

__all__ = [
    "BefriendEvent",
    "ConfigureEvent",
    "Event",
    "PurchaseEvent",
    "UnfriendEvent",
    "format_timestamp",
    "iter_events",
    "parse_event",
    "parse_timestamp",
    "read_events",
    "encode_anomaly",
    "format_anomaly",
    "write_anomalies",
]
