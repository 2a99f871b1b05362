"""
Top-T purchase selection across a network.

Scans every neighbor's history once and keeps the T most recent valid
purchases in a bounded min-heap keyed by (timestamp, sequence_number), so
the full candidate union is never materialized: O(n log T).
"""

from __future__ import annotations

import heapq
from dataclasses import dataclass

from purchase_anomaly.analysis_engine.graph import FriendGraph
from purchase_anomaly.analysis_engine.models import Purchase
from purchase_anomaly.analysis_engine.network import NetworkView


@dataclass(frozen=True)
class PurchaseSelection:
    """
    The T most recent purchases of a network, most recent first.

    candidate_count is the number of valid purchases seen while scanning and
    may exceed len(purchases).
    """

    purchases: tuple[Purchase, ...]
    candidate_count: int

    @property
    def amounts(self) -> list[float]:
        return [p.amount for p in self.purchases]


def select_recent_purchases(
    graph: FriendGraph,
    network: NetworkView,
    limit: int,
) -> PurchaseSelection:
    """
    Select up to limit purchases with the largest recency key in the network.

    Args:
        graph: Graph owning the neighbors' purchase histories.
        network: Neighbors to scan; its admits() filters by timing model.
        limit: T, at least 1.

    Returns:
        PurchaseSelection with at most limit purchases and the valid candidate count.
    """
    if limit < 1:
        raise ValueError(f"limit must be >= 1, got {limit}")
    # (recency_key, scan order, purchase); Purchase itself is never compared
    heap: list[tuple[tuple[int, int], int, Purchase]] = []
    candidates = 0
    for neighbor_id in network.neighbors:
        user = graph.get_user(neighbor_id)
        if user is None:
            continue
        for purchase in user.purchases:
            if not network.admits(neighbor_id, purchase):
                continue
            candidates += 1
            entry = (purchase.recency_key, candidates, purchase)
            if len(heap) < limit:
                heapq.heappush(heap, entry)
            elif entry[0] > heap[0][0]:
                heapq.heapreplace(heap, entry)
    heap.sort(key=lambda entry: entry[0], reverse=True)
    return PurchaseSelection(
        purchases=tuple(p for _, _, p in heap),
        candidate_count=candidates,
    )
