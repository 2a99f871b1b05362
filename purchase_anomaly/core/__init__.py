"""
Core utilities: shared exceptions used across event log, config and CLI.
"""

from purchase_anomaly.core.exceptions import (
    ConfigurationError,
    MalformedEventError,
    PurchaseAnomalyError,
)

__all__ = ["ConfigurationError", "MalformedEventError", "PurchaseAnomalyError"]
