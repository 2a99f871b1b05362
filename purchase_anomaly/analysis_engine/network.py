"""
D-hop social network around a purchaser.

Expands the root's friend set outward breadth-first and returns the
deduplicated set of users within max_depth hops, root excluded even when a
cycle leads back to it. Two models share one interface:

- timing_ignored: every purchase of every neighbor counts.
- timing_aware: each neighbor also carries the earliest befriend timestamp
  of any edge through which the expansion reached it; only purchases made
  strictly after that date count. The date is the minimum over all
  discovered edges and only ever goes down as more edges are found.

Nothing is retained between builds, so the depth may change between calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from purchase_anomaly.analysis_engine.graph import FriendGraph
from purchase_anomaly.analysis_engine.models import Purchase
from purchase_anomaly.anomaly_logging import get_logger

logger = get_logger(__name__)

TIMING_IGNORED = "timing_ignored"
TIMING_AWARE = "timing_aware"


@dataclass(frozen=True)
class NetworkView:
    """
    Ephemeral result of one network build.

    reachable_since is None under the timing-ignored model; otherwise it maps
    every neighbor to its earliest reachable date.
    """

    root: int
    neighbors: frozenset[int]
    reachable_since: Mapping[int, int] | None = None

    def admits(self, neighbor_id: int, purchase: Purchase) -> bool:
        """True if this neighbor's purchase counts toward the network statistics."""
        if self.reachable_since is None:
            return True
        return purchase.timestamp > self.reachable_since[neighbor_id]

    def __len__(self) -> int:
        return len(self.neighbors)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self.neighbors


class TimingIgnoredNetwork:
    """Plain BFS union of friend sets up to max_depth hops."""

    name = TIMING_IGNORED

    def build(self, graph: FriendGraph, root: int, max_depth: int) -> NetworkView:
        if max_depth < 1:
            raise ValueError(f"max_depth must be >= 1, got {max_depth}")
        seen = {root}
        frontier = [root]
        for _ in range(max_depth):
            next_frontier: list[int] = []
            for user_id in frontier:
                for friend_id, _ts in graph.friends_of(user_id):
                    if friend_id in seen:
                        continue
                    seen.add(friend_id)
                    next_frontier.append(friend_id)
            if not next_frontier:
                break
            frontier = next_frontier
        seen.discard(root)
        return NetworkView(root=root, neighbors=frozenset(seen))


class TimingAwareNetwork:
    """BFS that also tracks the earliest befriend date reaching each neighbor."""

    name = TIMING_AWARE

    def build(self, graph: FriendGraph, root: int, max_depth: int) -> NetworkView:
        if max_depth < 1:
            raise ValueError(f"max_depth must be >= 1, got {max_depth}")
        since: dict[int, int] = {}
        frontier = [root]
        expanded = {root}
        for _ in range(max_depth):
            next_frontier: list[int] = []
            for user_id in frontier:
                # Already-known neighbors are revisited so an earlier edge can lower their date
                for friend_id, befriended in graph.friends_of(user_id):
                    if friend_id == root:
                        continue
                    recorded = since.get(friend_id)
                    if recorded is None:
                        since[friend_id] = befriended
                    elif befriended < recorded:
                        since[friend_id] = befriended
                    if friend_id not in expanded:
                        expanded.add(friend_id)
                        next_frontier.append(friend_id)
            if not next_frontier:
                break
            frontier = next_frontier
        return NetworkView(root=root, neighbors=frozenset(since), reachable_since=since)


NetworkModel = TimingIgnoredNetwork | TimingAwareNetwork

NETWORK_MODELS: dict[str, type[TimingIgnoredNetwork] | type[TimingAwareNetwork]] = {
    TIMING_IGNORED: TimingIgnoredNetwork,
    TIMING_AWARE: TimingAwareNetwork,
}


def get_network_model(name: str) -> NetworkModel:
    """
    Return the network strategy registered under name.

    Raises:
        ValueError: If name is not one of NETWORK_MODELS.
    """
    try:
        return NETWORK_MODELS[name]()
    except KeyError:
        raise ValueError(f"unknown network model {name!r}; expected one of {sorted(NETWORK_MODELS)}") from None


def build_network(
    graph: FriendGraph,
    root: int,
    max_depth: int,
    model: NetworkModel | None = None,
) -> NetworkView:
    """
    Build the max_depth-hop network of root under the given model.

    Args:
        graph: Friend graph to expand.
        root: Purchaser; never part of the result.
        max_depth: D, at least 1. D=1 yields exactly the root's friends.
        model: Strategy; timing-ignored if None.

    Returns:
        NetworkView with the deduplicated neighbor set.
    """
    strategy = model or TimingIgnoredNetwork()
    view = strategy.build(graph, root, max_depth)
    logger.debug(
        "network_built",
        user_id=root,
        model=strategy.name,
        depth=max_depth,
        network_size=len(view),
    )
    return view
