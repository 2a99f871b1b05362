"""
Per-user bounded purchase history.

Holds at most T purchases, where T is passed in on every insertion so a
runtime change of T applies immediately: raising it lets the history grow,
lowering it never truncates what is already stored. When full, the entry
with the smallest recency key is evicted and the new purchase takes its
place without being compared to anything.
"""

from __future__ import annotations

import heapq
import itertools
from typing import Iterator, Sequence

from purchase_anomaly.analysis_engine.models import Purchase


class PurchaseHistory:
    """Capacity-bounded store of a user's most recent purchases (min-heap by recency key)."""

    __slots__ = ("_heap", "_order")

    def __init__(self) -> None:
        # (recency_key, insertion order, purchase); equal keys fall back to insertion order
        self._heap: list[tuple[tuple[int, int], int, Purchase]] = []
        self._order = itertools.count()

    def record(self, purchase: Purchase, capacity: int) -> Purchase | None:
        """
        Store a purchase under the given capacity.

        Args:
            purchase: Purchase to store.
            capacity: Current T; must be >= 1.

        Returns:
            The evicted purchase, or None if the history had room.
        """
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        entry = (purchase.recency_key, next(self._order), purchase)
        if len(self._heap) < capacity:
            heapq.heappush(self._heap, entry)
            return None
        # heapreplace pops the oldest before pushing, so the new entry always lands
        _, _, evicted = heapq.heapreplace(self._heap, entry)
        return evicted

    def snapshot(self) -> Sequence[Purchase]:
        """Current entries as a tuple (no particular order)."""
        return tuple(entry[-1] for entry in self._heap)

    def oldest(self) -> Purchase | None:
        """Entry that the next eviction would remove; None if empty."""
        return self._heap[0][-1] if self._heap else None

    def __iter__(self) -> Iterator[Purchase]:
        return (entry[-1] for entry in self._heap)

    def __len__(self) -> int:
        return len(self._heap)

    def __repr__(self) -> str:
        return f"PurchaseHistory(size={len(self._heap)})"
