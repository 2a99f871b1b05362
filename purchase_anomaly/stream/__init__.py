"""
Stream package: per-event orchestration of the analysis engine.
"""

from purchase_anomaly.stream.orchestrator import (
    StreamOrchestrator,
    StreamStats,
    StreamWarning,
)

__all__ = ["StreamOrchestrator", "StreamStats", "StreamWarning"]
