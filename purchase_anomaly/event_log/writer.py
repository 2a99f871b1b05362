"""
Flagged purchase output: anomaly records to JSON lines.

Each line mirrors the input purchase event with the network mean and
standard deviation added; amount, mean and sd are two-decimal strings.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

from purchase_anomaly.analysis_engine.anomaly import AnomalyRecord
from purchase_anomaly.event_log.parser import EVENT_PURCHASE, format_timestamp


def format_anomaly(record: AnomalyRecord) -> dict[str, Any]:
    """Output fields in log order: event_type, timestamp, id, amount, mean, sd."""
    return {
        "event_type": EVENT_PURCHASE,
        "timestamp": format_timestamp(record.timestamp),
        "id": str(record.user_id),
        "amount": f"{record.amount:.2f}",
        "mean": f"{record.mean:.2f}",
        "sd": f"{record.std:.2f}",
    }


def encode_anomaly(record: AnomalyRecord) -> str:
    """One JSON line, without the trailing newline."""
    return json.dumps(format_anomaly(record))


def write_anomalies(records: Iterable[AnomalyRecord], path: str | Path) -> int:
    """
    Write records to path as JSON lines, creating parent dirs as needed.

    Records are written as they are produced, so a lazy iterator streams
    straight to disk. Returns the number of records written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    written = 0
    with open(path, "w", encoding="utf-8") as f:
        for record in records:
            f.write(encode_anomaly(record))
            f.write("\n")
            written += 1
    return written
