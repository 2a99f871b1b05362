"""
Event log parser: JSON lines to typed events.

One JSON object per line. A line carrying "D" and "T" (and no event_type)
configures the stream; otherwise event_type selects purchase, befriend or
unfriend. Ids, amounts and D/T may be JSON numbers or numeric strings, as
produced by the upstream log writers. Timestamps are "YYYY-MM-DD HH:MM:SS"
strings, read as UTC and converted to epoch milliseconds.

Purely structural; no graph or scoring logic.
"""

from __future__ import annotations

import calendar
import json
import math
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Iterator

from purchase_anomaly.anomaly_logging import get_logger
from purchase_anomaly.core.exceptions import MalformedEventError
from purchase_anomaly.event_log.models import (
    BefriendEvent,
    ConfigureEvent,
    Event,
    PurchaseEvent,
    UnfriendEvent,
)

logger = get_logger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

EVENT_PURCHASE = "purchase"
EVENT_BEFRIEND = "befriend"
EVENT_UNFRIEND = "unfriend"


def parse_timestamp(value: str) -> int:
    """Parse a log timestamp (UTC) into epoch milliseconds."""
    parsed = datetime.strptime(value.strip(), TIMESTAMP_FORMAT)
    return calendar.timegm(parsed.timetuple()) * 1000


def format_timestamp(epoch_ms: int) -> str:
    """Format epoch milliseconds as a log timestamp (UTC, second precision)."""
    return datetime.fromtimestamp(epoch_ms // 1000, tz=timezone.utc).strftime(TIMESTAMP_FORMAT)


def _require(obj: dict[str, Any], key: str) -> Any:
    if key not in obj or obj[key] is None:
        raise MalformedEventError(f"missing field {key!r}")
    return obj[key]


def _int_field(obj: dict[str, Any], key: str) -> int:
    raw = _require(obj, key)
    if isinstance(raw, bool):
        raise MalformedEventError(f"field {key!r} must be an integer, got {raw!r}")
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw).strip())
    except ValueError:
        raise MalformedEventError(f"field {key!r} must be an integer, got {raw!r}") from None


def _amount_field(obj: dict[str, Any], key: str) -> float:
    raw = _require(obj, key)
    if isinstance(raw, bool):
        raise MalformedEventError(f"field {key!r} must be a number, got {raw!r}")
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise MalformedEventError(f"field {key!r} must be a number, got {raw!r}") from None
    if not math.isfinite(value):
        raise MalformedEventError(f"field {key!r} must be finite, got {raw!r}")
    return value


def _timestamp_field(obj: dict[str, Any], key: str = "timestamp") -> int:
    raw = _require(obj, key)
    if not isinstance(raw, str):
        raise MalformedEventError(f"field {key!r} must be a string, got {raw!r}")
    try:
        return parse_timestamp(raw)
    except ValueError:
        raise MalformedEventError(f"bad timestamp {raw!r}; expected {TIMESTAMP_FORMAT}") from None


def _parse_configure(obj: dict[str, Any]) -> ConfigureEvent:
    depth = _int_field(obj, "D")
    tracked = _int_field(obj, "T")
    if depth < 1 or tracked < 1:
        raise MalformedEventError(f"D and T must be >= 1, got D={depth} T={tracked}")
    return ConfigureEvent(depth=depth, tracked=tracked)


def parse_event(line: str, line_number: int | None = None) -> Event | None:
    """
    Decode one log line.

    Args:
        line: Raw line (trailing newline allowed).
        line_number: For error messages only.

    Returns:
        The typed event, or None for blank lines and unknown event types.

    Raises:
        MalformedEventError: If the line is not a valid event.
    """
    text = line.strip()
    if not text:
        return None
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedEventError(f"invalid JSON: {e.msg}", line_number) from None
    if not isinstance(obj, dict):
        raise MalformedEventError("expected a JSON object", line_number)
    try:
        event_type = obj.get("event_type")
        if event_type is None:
            if "D" in obj and "T" in obj:
                return _parse_configure(obj)
            raise MalformedEventError("missing event_type")
        if event_type == EVENT_PURCHASE:
            return PurchaseEvent(
                user_id=_int_field(obj, "id"),
                amount=_amount_field(obj, "amount"),
                timestamp=_timestamp_field(obj),
            )
        if event_type in (EVENT_BEFRIEND, EVENT_UNFRIEND):
            cls = BefriendEvent if event_type == EVENT_BEFRIEND else UnfriendEvent
            return cls(
                id1=_int_field(obj, "id1"),
                id2=_int_field(obj, "id2"),
                timestamp=_timestamp_field(obj),
            )
    except MalformedEventError as e:
        if e.line_number is None and line_number is not None:
            raise MalformedEventError(e.reason, line_number) from None
        raise
    logger.debug("event_type_ignored", event_type=str(event_type), line=line_number)
    return None


def iter_events(lines: Iterable[str], *, source: str = "<lines>", strict: bool = False) -> Iterator[Event]:
    """
    Decode lines into events, skipping blanks and unknown types.

    Malformed lines are logged and skipped unless strict is True, in which
    case the MalformedEventError propagates.
    """
    for line_number, line in enumerate(lines, start=1):
        try:
            event = parse_event(line, line_number)
        except MalformedEventError as e:
            if strict:
                raise
            logger.warning(
                "event_line_rejected",
                source=source,
                line=line_number,
                reason=e.reason,
            )
            continue
        if event is not None:
            yield event


def read_events(path: str | Path, *, strict: bool = False) -> Iterator[Event]:
    """Stream events from a JSON-lines log file (see iter_events)."""
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        yield from iter_events(f, source=str(path), strict=strict)
