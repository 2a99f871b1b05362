"""
Pytest fixtures for purchase anomaly tests: graphs, purchase factory, log files.
"""

from __future__ import annotations

import itertools
import json
from pathlib import Path

import pytest

from purchase_anomaly.analysis_engine.graph import FriendGraph
from purchase_anomaly.analysis_engine.models import Purchase
from purchase_anomaly.stream.orchestrator import StreamOrchestrator

_ENV_VARS = (
    "PURCHASE_NETWORK_DEPTH",
    "PURCHASE_TRACKED_COUNT",
    "PURCHASE_NETWORK_MODEL",
    "PURCHASE_ALLOW_PARALLEL_EDGES",
)


@pytest.fixture(autouse=True)
def clean_purchase_env(monkeypatch):
    """Unset PURCHASE_* so settings fall back to defaults unless a test sets them."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def graph() -> FriendGraph:
    return FriendGraph()


@pytest.fixture
def make_purchase():
    """Factory for purchases with a fresh, increasing sequence number per call."""
    counter = itertools.count(1)

    def _make(user_id: int, amount: float, timestamp: int) -> Purchase:
        return Purchase(
            user_id=user_id,
            amount=amount,
            timestamp=timestamp,
            sequence_number=next(counter),
        )

    return _make


@pytest.fixture
def orchestrator() -> StreamOrchestrator:
    return StreamOrchestrator(network_depth=1, tracked_purchases=10)


@pytest.fixture
def write_log(tmp_path):
    """Write a list of dicts (or raw strings) as a JSON-lines file under tmp_path."""

    def _write(name: str, rows: list) -> Path:
        path = tmp_path / name
        lines = [row if isinstance(row, str) else json.dumps(row) for row in rows]
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write
