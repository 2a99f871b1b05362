"""
Data models shared by the analysis engine.

Purchase is the unit stored in histories and ranked by the selector; its
recency key orders purchases by timestamp, then by global arrival order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Purchase:
    """
    One recorded purchase.

    Immutable once created. sequence_number comes from the orchestrator's
    global counter and is unique per stream, so recency keys never tie.
    """

    user_id: int
    amount: float
    timestamp: int
    """Epoch milliseconds."""
    sequence_number: int
    """Global ingestion order; strictly increasing."""

    @property
    def recency_key(self) -> tuple[int, int]:
        """(timestamp, sequence_number); larger is more recent."""
        return (self.timestamp, self.sequence_number)

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "amount": self.amount,
            "timestamp": self.timestamp,
            "sequence_number": self.sequence_number,
        }
