"""
Event loop: configure / befriend / unfriend / purchase → anomaly records.

One orchestrator owns one stream's state: the friend graph with purchase
histories, D and T, the network model and the global purchase sequence
counter. Purchases are scored against the network *before* being recorded,
so a purchase never counts toward its own statistics. Events are handled
strictly in arrival order; a per-instance lock serializes callers that
share an instance across threads.
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, Iterator

from purchase_anomaly.analysis_engine.anomaly import AnomalyConfig, AnomalyRecord, score_purchase
from purchase_anomaly.analysis_engine.graph import FriendGraph
from purchase_anomaly.analysis_engine.models import Purchase
from purchase_anomaly.analysis_engine.network import (
    TIMING_IGNORED,
    NetworkModel,
    build_network,
    get_network_model,
)
from purchase_anomaly.analysis_engine.selector import select_recent_purchases
from purchase_anomaly.anomaly_logging import EVENT_TIME_KEY, bind_user, get_logger
from purchase_anomaly.config.env import DEFAULT_NETWORK_DEPTH, DEFAULT_TRACKED_PURCHASES
from purchase_anomaly.event_log.models import (
    BefriendEvent,
    ConfigureEvent,
    Event,
    PurchaseEvent,
    UnfriendEvent,
)

if TYPE_CHECKING:
    from purchase_anomaly.config.settings import Settings

logger = get_logger(__name__)

# Most recent warnings kept on the instance; StreamStats counts all of them
MAX_RETAINED_WARNINGS = 1000

WARNING_ABSENT_EDGE = "unfriend_absent_edge"


@dataclass
class StreamStats:
    """Counters for the run summary."""

    events_processed: int = 0
    purchases: int = 0
    anomalies: int = 0
    warnings: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "events_processed": self.events_processed,
            "purchases": self.purchases,
            "anomalies": self.anomalies,
            "warnings": self.warnings,
        }


@dataclass(frozen=True)
class StreamWarning:
    """Non-fatal condition met while processing; the event was applied as a no-op."""

    kind: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)


class StreamOrchestrator:
    """
    Stateful decision engine for one event stream.

    Independent instances share nothing, so several streams can run side by side.
    """

    def __init__(
        self,
        *,
        network_depth: int = DEFAULT_NETWORK_DEPTH,
        tracked_purchases: int = DEFAULT_TRACKED_PURCHASES,
        network_model: str | NetworkModel = TIMING_IGNORED,
        allow_parallel_edges: bool = False,
        anomaly_config: AnomalyConfig | None = None,
    ) -> None:
        _check_parameters(network_depth, tracked_purchases)
        self._depth = network_depth
        self._tracked = tracked_purchases
        self._model = get_network_model(network_model) if isinstance(network_model, str) else network_model
        self._anomaly_config = anomaly_config or AnomalyConfig()
        self._sequence = 0
        self._lock = threading.RLock()
        self.graph = FriendGraph(allow_parallel_edges=allow_parallel_edges)
        self.stats = StreamStats()
        self.warnings: deque[StreamWarning] = deque(maxlen=MAX_RETAINED_WARNINGS)

    @classmethod
    def from_settings(cls, settings: Settings, anomaly_config: AnomalyConfig | None = None) -> StreamOrchestrator:
        return cls(
            network_depth=settings.network_depth,
            tracked_purchases=settings.tracked_purchases,
            network_model=settings.network_model,
            allow_parallel_edges=settings.allow_parallel_edges,
            anomaly_config=anomaly_config,
        )

    @property
    def network_depth(self) -> int:
        return self._depth

    @property
    def tracked_purchases(self) -> int:
        return self._tracked

    @property
    def network_model(self) -> NetworkModel:
        return self._model

    @property
    def sequence_number(self) -> int:
        """Sequence number of the last ingested purchase; 0 before any."""
        return self._sequence

    def configure(self, network_depth: int, tracked_purchases: int) -> None:
        """Set D and T for all subsequent events. Stored histories are not truncated."""
        _check_parameters(network_depth, tracked_purchases)
        with self._lock:
            self._depth = network_depth
            self._tracked = tracked_purchases
        logger.info("stream_configured", depth=network_depth, tracked=tracked_purchases)

    def befriend(self, id1: int, id2: int, timestamp: int) -> None:
        with self._lock:
            self.graph.add_friendship(id1, id2, timestamp)

    def unfriend(self, id1: int, id2: int, timestamp: int) -> bool:
        """Remove the friendship; returns False and records a warning if there was none."""
        with self._lock:
            removed = self.graph.remove_friendship(id1, id2)
            if not removed:
                self._warn(
                    WARNING_ABSENT_EDGE,
                    f"users {id1} and {id2} are not friends",
                    id1=id1,
                    id2=id2,
                    timestamp=timestamp,
                )
            return removed

    def purchase(
        self,
        user_id: int,
        amount: float,
        timestamp: int,
        *,
        check_anomalies: bool = True,
    ) -> AnomalyRecord | None:
        """
        Ingest a purchase; optionally score it first.

        Args:
            user_id: Purchaser.
            amount: Purchase amount.
            timestamp: Epoch milliseconds.
            check_anomalies: Score against the network before recording.

        Returns:
            AnomalyRecord if the purchase was flagged, else None.
        """
        with self._lock:
            user = self.graph.ensure_user(user_id)
            self._sequence += 1
            self.stats.purchases += 1
            record = None
            if check_anomalies:
                record = self._check(user_id, amount, timestamp)
            user.purchases.record(
                Purchase(
                    user_id=user_id,
                    amount=amount,
                    timestamp=timestamp,
                    sequence_number=self._sequence,
                ),
                self._tracked,
            )
            return record

    def handle(self, event: Event, *, check_anomalies: bool = False) -> AnomalyRecord | None:
        """Apply one typed event. Returns the anomaly record for a flagged purchase."""
        with self._lock:
            self.stats.events_processed += 1
            if isinstance(event, PurchaseEvent):
                return self.purchase(
                    event.user_id,
                    event.amount,
                    event.timestamp,
                    check_anomalies=check_anomalies,
                )
            if isinstance(event, BefriendEvent):
                self.befriend(event.id1, event.id2, event.timestamp)
            elif isinstance(event, UnfriendEvent):
                self.unfriend(event.id1, event.id2, event.timestamp)
            elif isinstance(event, ConfigureEvent):
                self.configure(event.depth, event.tracked)
            else:
                raise TypeError(f"unsupported event type: {type(event).__name__}")
            return None

    def process(self, events: Iterable[Event], *, check_anomalies: bool = False) -> Iterator[AnomalyRecord]:
        """
        Apply events in order, yielding anomaly records as they are found.

        Lazy: events are consumed only as the result is iterated, so a base
        stream must be drained (e.g. with run()) before the live stream starts.
        """
        for event in events:
            record = self.handle(event, check_anomalies=check_anomalies)
            if record is not None:
                yield record

    def run(self, events: Iterable[Event], *, check_anomalies: bool = False) -> list[AnomalyRecord]:
        """Eagerly process all events; returns the anomaly records."""
        return list(self.process(events, check_anomalies=check_anomalies))

    def _check(self, user_id: int, amount: float, timestamp: int) -> AnomalyRecord | None:
        network = build_network(self.graph, user_id, self._depth, self._model)
        selection = select_recent_purchases(self.graph, network, self._tracked)
        record = score_purchase(user_id, amount, timestamp, selection, self._anomaly_config)
        if record is not None:
            self.stats.anomalies += 1
            bind_user(logger, user_id, event_timestamp=timestamp).info(
                "purchase_flagged",
                amount=record.amount,
                mean=round(record.mean, 2),
                std=round(record.std, 2),
                network_size=len(network),
                candidates=selection.candidate_count,
            )
        return record

    def _warn(self, kind: str, message: str, **details: Any) -> None:
        self.stats.warnings += 1
        self.warnings.append(StreamWarning(kind=kind, message=message, details=details))
        fields = dict(details)
        if "timestamp" in fields:
            fields[EVENT_TIME_KEY] = fields.pop("timestamp")
        logger.warning(kind, message=message, **fields)


def _check_parameters(network_depth: int, tracked_purchases: int) -> None:
    if network_depth < 1:
        raise ValueError(f"network_depth must be >= 1, got {network_depth}")
    if tracked_purchases < 1:
        raise ValueError(f"tracked_purchases must be >= 1, got {tracked_purchases}")
