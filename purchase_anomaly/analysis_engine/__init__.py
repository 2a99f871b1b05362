"""
Analysis engine package: friend graph, network building and anomaly test.

Consumes typed events through the stream orchestrator; holds the graph and
purchase histories, builds D-hop networks, selects the T most recent
network purchases and flags purchases above mean + 3 std.
"""

from purchase_anomaly.analysis_engine.models import Purchase
from purchase_anomaly.analysis_engine.history import PurchaseHistory
from purchase_anomaly.analysis_engine.graph import FriendGraph, User
from purchase_anomaly.analysis_engine.network import (
    NETWORK_MODELS,
    TIMING_AWARE,
    TIMING_IGNORED,
    NetworkView,
    TimingAwareNetwork,
    TimingIgnoredNetwork,
    build_network,
    get_network_model,
)
from purchase_anomaly.analysis_engine.selector import (
    PurchaseSelection,
    select_recent_purchases,
)
from purchase_anomaly.analysis_engine.anomaly import (
    MINIMUM_NUMBER_OF_PURCHASES,
    NUMBER_OF_STANDARD_DEVIATIONS_FOR_CUTOFF,
    AnomalyConfig,
    AnomalyRecord,
    NetworkStatistics,
    compute_statistics,
    score_purchase,
)

__all__ = [
    "Purchase",
    "PurchaseHistory",
    "FriendGraph",
    "User",
    "NETWORK_MODELS",
    "TIMING_AWARE",
    "TIMING_IGNORED",
    "NetworkView",
    "TimingAwareNetwork",
    "TimingIgnoredNetwork",
    "build_network",
    "get_network_model",
    "PurchaseSelection",
    "select_recent_purchases",
    "MINIMUM_NUMBER_OF_PURCHASES",
    "NUMBER_OF_STANDARD_DEVIATIONS_FOR_CUTOFF",
    "AnomalyConfig",
    "AnomalyRecord",
    "NetworkStatistics",
    "compute_statistics",
    "score_purchase",
]
