"""
Statistical anomaly test for one purchase against its network.

Mean and population standard deviation (divisor n) of the selected recent
purchases give cutoff = mean + k * std. The incoming amount is anomalous
only if strictly above the cutoff. Networks with fewer than the minimum
number of valid purchases are not classified at all.
"""

from __future__ import annotations

import statistics
from dataclasses import dataclass
from typing import Any, Sequence

from purchase_anomaly.analysis_engine.selector import PurchaseSelection

MINIMUM_NUMBER_OF_PURCHASES = 2
NUMBER_OF_STANDARD_DEVIATIONS_FOR_CUTOFF = 3


@dataclass
class AnomalyConfig:
    """Thresholds for the network purchase test."""

    # Valid candidates required in the network before classifying.
    min_purchases: int = MINIMUM_NUMBER_OF_PURCHASES
    # k in cutoff = mean + k * std.
    std_multiplier: float = NUMBER_OF_STANDARD_DEVIATIONS_FOR_CUTOFF


@dataclass(frozen=True)
class NetworkStatistics:
    """Mean, population std and cutoff over a set of purchase amounts."""

    mean: float
    std: float
    cutoff: float
    sample_size: int

    def is_anomalous(self, amount: float) -> bool:
        """Strict: an amount equal to the cutoff is not anomalous."""
        return amount > self.cutoff


@dataclass(frozen=True)
class AnomalyRecord:
    """
    A flagged purchase.

    Values are kept at full precision; rounding to two decimals happens when
    the record is written out.
    """

    timestamp: int
    user_id: int
    amount: float
    mean: float
    std: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "user_id": self.user_id,
            "amount": self.amount,
            "mean": self.mean,
            "std": self.std,
        }


def compute_statistics(
    amounts: Sequence[float],
    config: AnomalyConfig | None = None,
) -> NetworkStatistics:
    """
    Compute mean, population standard deviation and cutoff.

    Raises:
        ValueError: If amounts is empty.
    """
    if not amounts:
        raise ValueError("cannot compute statistics of an empty purchase set")
    cfg = config or AnomalyConfig()
    mean = statistics.fmean(amounts)
    std = statistics.pstdev(amounts, mu=mean)
    return NetworkStatistics(
        mean=mean,
        std=std,
        cutoff=mean + cfg.std_multiplier * std,
        sample_size=len(amounts),
    )


def score_purchase(
    user_id: int,
    amount: float,
    timestamp: int,
    selection: PurchaseSelection,
    config: AnomalyConfig | None = None,
) -> AnomalyRecord | None:
    """
    Classify a purchase against the network's recent purchases.

    Args:
        user_id: Purchaser.
        amount: Incoming purchase amount.
        timestamp: Incoming purchase time (epoch ms).
        selection: Most recent purchases of the purchaser's network.
        config: Thresholds; defaults if None.

    Returns:
        AnomalyRecord if flagged; None if not anomalous or not enough data.
    """
    cfg = config or AnomalyConfig()
    if selection.candidate_count < cfg.min_purchases or not selection.purchases:
        return None
    stats = compute_statistics(selection.amounts, cfg)
    if not stats.is_anomalous(amount):
        return None
    return AnomalyRecord(
        timestamp=timestamp,
        user_id=user_id,
        amount=amount,
        mean=stats.mean,
        std=stats.std,
    )
