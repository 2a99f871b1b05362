"""
Typed events consumed by the stream orchestrator.

Produced by the event log parser from JSON lines; timestamps are epoch
milliseconds. These are plain values with no I/O attached.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class ConfigureEvent:
    """Sets D (network depth) and T (tracked purchases) for subsequent events."""

    depth: int
    tracked: int


@dataclass(frozen=True)
class BefriendEvent:
    id1: int
    id2: int
    timestamp: int


@dataclass(frozen=True)
class UnfriendEvent:
    id1: int
    id2: int
    timestamp: int


@dataclass(frozen=True)
class PurchaseEvent:
    user_id: int
    amount: float
    timestamp: int


Event = Union[ConfigureEvent, BefriendEvent, UnfriendEvent, PurchaseEvent]
