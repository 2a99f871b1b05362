"""
Friend graph: users, symmetric friendships and per-user purchase history.

Each user keeps an ordered friend list with an index-aligned list of
befriend timestamps. Users are created on first reference and never
deleted; unfriending removes an edge, not a node. Used by the network
builder for neighbor lookup.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from purchase_anomaly.analysis_engine.history import PurchaseHistory
from purchase_anomaly.anomaly_logging import get_logger

logger = get_logger(__name__)


@dataclass
class User:
    """
    One user record owned by the graph.

    friends and befriended_at are parallel lists; use the graph methods to
    change them so the two stay aligned.
    """

    id: int
    friends: list[int] = field(default_factory=list)
    befriended_at: list[int] = field(default_factory=list)
    purchases: PurchaseHistory = field(default_factory=PurchaseHistory)

    def friendships(self) -> Iterator[tuple[int, int]]:
        """Yield (friend_id, befriend_timestamp) pairs in insertion order."""
        return zip(self.friends, self.befriended_at)

    def _add_friend(self, friend_id: int, timestamp: int) -> None:
        self.friends.append(friend_id)
        self.befriended_at.append(timestamp)

    def _remove_friend(self, friend_id: int) -> None:
        index = self.friends.index(friend_id)
        del self.friends[index]
        del self.befriended_at[index]


class FriendGraph:
    """
    Mapping of user id to User.

    add_friendship is idempotent unless the graph was built with
    allow_parallel_edges=True, in which case every befriend call appends
    another edge (and every unfriend removes one).
    """

    def __init__(self, *, allow_parallel_edges: bool = False) -> None:
        self.allow_parallel_edges = allow_parallel_edges
        self._users: dict[int, User] = {}

    def ensure_user(self, user_id: int) -> User:
        """Return the user, creating an empty record if absent."""
        user = self._users.get(user_id)
        if user is None:
            user = User(id=user_id)
            self._users[user_id] = user
        return user

    def get_user(self, user_id: int) -> User | None:
        return self._users.get(user_id)

    def friends_of(self, user_id: int) -> Iterator[tuple[int, int]]:
        """(friend_id, befriend_timestamp) pairs; empty for unknown users."""
        user = self._users.get(user_id)
        if user is None:
            return iter(())
        return user.friendships()

    def are_friends(self, id1: int, id2: int) -> bool:
        user = self._users.get(id1)
        return user is not None and id2 in user.friends

    def add_friendship(self, id1: int, id2: int, timestamp: int) -> bool:
        """
        Add the edge id1 <-> id2 with the given befriend timestamp.

        Returns:
            True if an edge was added; False if the pair was already friends
            and parallel edges are not allowed (the original timestamp is kept).
        """
        user1 = self.ensure_user(id1)
        user2 = self.ensure_user(id2)
        if not self.allow_parallel_edges and id2 in user1.friends:
            logger.debug("befriend_existing_edge", id1=id1, id2=id2)
            return False
        user1._add_friend(id2, timestamp)
        user2._add_friend(id1, timestamp)
        return True

    def remove_friendship(self, id1: int, id2: int) -> bool:
        """
        Remove one occurrence of the edge id1 <-> id2.

        Returns:
            True if removed; False if no such edge exists (state unchanged).
            The caller decides how to report the absent edge.
        """
        user1 = self.ensure_user(id1)
        user2 = self.ensure_user(id2)
        if id2 not in user1.friends or id1 not in user2.friends:
            return False
        user1._remove_friend(id2)
        user2._remove_friend(id1)
        return True

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._users

    def __len__(self) -> int:
        return len(self._users)

    def user_ids(self) -> Iterator[int]:
        return iter(self._users)
