"""
Tests for the stream orchestrator: event dispatch, score-before-record,
configure semantics, warnings and end-to-end anomaly detection.
"""

from __future__ import annotations

import threading

import pytest

from purchase_anomaly.config import env
from purchase_anomaly.config.settings import Settings
from purchase_anomaly.event_log.models import (
    BefriendEvent,
    ConfigureEvent,
    PurchaseEvent,
    UnfriendEvent,
)
from purchase_anomaly.stream import orchestrator as orchestrator_module
from purchase_anomaly.stream.orchestrator import (
    WARNING_ABSENT_EDGE,
    StreamOrchestrator,
)


class _RecordingLogger:
    """Stands in for the module logger; keeps (level, event, fields) per call."""

    def __init__(self, calls=None, context=None):
        self.calls = [] if calls is None else calls
        self.context = context or {}

    def bind(self, **kw):
        return _RecordingLogger(self.calls, {**self.context, **kw})

    def _log(self, level, event, **kw):
        self.calls.append((level, event, {**self.context, **kw}))

    def debug(self, event, **kw):
        self._log("debug", event, **kw)

    def info(self, event, **kw):
        self._log("info", event, **kw)

    def warning(self, event, **kw):
        self._log("warning", event, **kw)


def _example_network(orchestrator):
    """A friends B and C; B bought 100 at t=1; C bought 10, 12, 11 at t=2..4."""
    orchestrator.configure(network_depth=1, tracked_purchases=10)
    orchestrator.befriend(1, 2, 0)
    orchestrator.befriend(1, 3, 0)
    orchestrator.purchase(2, 100.0, 1, check_anomalies=False)
    for ts, amount in ((2, 10.0), (3, 12.0), (4, 11.0)):
        orchestrator.purchase(3, amount, ts, check_anomalies=False)


def test_end_to_end_example(orchestrator):
    _example_network(orchestrator)
    assert orchestrator.purchase(1, 50.0, 5) is None

    record = orchestrator.purchase(1, 200.0, 6)
    assert record is not None
    assert record.user_id == 1
    assert record.amount == 200.0
    assert record.timestamp == 6
    assert round(record.mean, 2) == 33.25
    assert round(record.std, 2) == 38.54
    assert orchestrator.stats.anomalies == 1


def test_score_happens_before_record(orchestrator):
    """The purchase being checked is not part of its own statistics and is stored afterwards."""
    orchestrator.befriend(1, 2, 0)
    orchestrator.purchase(1, 10.0, 1, check_anomalies=False)
    orchestrator.purchase(1, 10.0, 2, check_anomalies=False)
    # 2's network is {1}: two purchases of 10, cutoff 10
    record = orchestrator.purchase(2, 10.5, 3)
    assert record is not None
    assert record.mean == 10.0
    assert len(orchestrator.graph.get_user(2).purchases) == 1


def test_checking_disabled_still_records(orchestrator):
    _example_network(orchestrator)
    assert orchestrator.purchase(1, 10_000.0, 5, check_anomalies=False) is None
    assert len(orchestrator.graph.get_user(1).purchases) == 1
    assert orchestrator.stats.anomalies == 0


def test_thin_network_is_not_classified(orchestrator):
    orchestrator.befriend(1, 2, 0)
    orchestrator.purchase(2, 1.0, 1, check_anomalies=False)
    assert orchestrator.purchase(1, 1e9, 2) is None


def test_purchase_by_unknown_user(orchestrator):
    assert orchestrator.purchase(77, 5.0, 1) is None
    assert 77 in orchestrator.graph


def test_sequence_counter_counts_every_purchase(orchestrator):
    orchestrator.purchase(1, 1.0, 5, check_anomalies=False)
    orchestrator.purchase(2, 1.0, 5)
    assert orchestrator.sequence_number == 2
    stored = orchestrator.graph.get_user(2).purchases.snapshot()
    assert stored[0].sequence_number == 2


def test_unfriend_absent_edge_warns(orchestrator):
    orchestrator.befriend(1, 2, 0)
    orchestrator.befriend(3, 4, 0)
    before = (list(orchestrator.graph.friends_of(1)), list(orchestrator.graph.friends_of(3)))

    assert orchestrator.unfriend(1, 3, 10) is False

    after = (list(orchestrator.graph.friends_of(1)), list(orchestrator.graph.friends_of(3)))
    assert before == after
    assert orchestrator.stats.warnings == 1
    warning = orchestrator.warnings[-1]
    assert warning.kind == WARNING_ABSENT_EDGE
    assert warning.details == {"id1": 1, "id2": 3, "timestamp": 10}


def test_absent_edge_log_keeps_stream_time_separate(orchestrator, monkeypatch):
    recorder = _RecordingLogger()
    monkeypatch.setattr(orchestrator_module, "logger", recorder)
    orchestrator.unfriend(1, 3, 10)
    level, event, fields = recorder.calls[-1]
    assert (level, event) == ("warning", WARNING_ABSENT_EDGE)
    assert fields["event_timestamp"] == 10
    assert "timestamp" not in fields
    assert orchestrator.warnings[-1].details["timestamp"] == 10


def test_flagged_purchase_logged_with_bound_user(orchestrator, monkeypatch):
    recorder = _RecordingLogger()
    monkeypatch.setattr(orchestrator_module, "logger", recorder)
    _example_network(orchestrator)
    orchestrator.purchase(1, 200.0, 6)
    flagged = [c for c in recorder.calls if c[1] == "purchase_flagged"]
    assert len(flagged) == 1
    _, _, fields = flagged[0]
    assert fields["user_id"] == 1
    assert fields["event_timestamp"] == 6
    assert "timestamp" not in fields


def test_unfriend_existing_edge(orchestrator):
    orchestrator.befriend(1, 2, 0)
    assert orchestrator.unfriend(2, 1, 5) is True
    assert list(orchestrator.graph.friends_of(1)) == []
    assert orchestrator.stats.warnings == 0


def test_configure_changes_depth(orchestrator):
    orchestrator.befriend(1, 2, 0)
    orchestrator.befriend(2, 3, 0)
    orchestrator.purchase(3, 10.0, 1, check_anomalies=False)
    orchestrator.purchase(3, 10.0, 2, check_anomalies=False)
    # D=1: network {2}, no purchases
    assert orchestrator.purchase(1, 50.0, 3) is None
    orchestrator.configure(network_depth=2, tracked_purchases=10)
    assert orchestrator.purchase(1, 50.0, 4) is not None


def test_lowering_t_keeps_existing_history(orchestrator):
    for ts in range(5):
        orchestrator.purchase(1, 1.0, ts, check_anomalies=False)
    orchestrator.configure(network_depth=1, tracked_purchases=2)
    orchestrator.purchase(1, 1.0, 10, check_anomalies=False)
    assert len(orchestrator.graph.get_user(1).purchases) == 5
    assert orchestrator.tracked_purchases == 2


def test_t_bounds_selection(orchestrator):
    """Only the T most recent network purchases enter the statistics."""
    orchestrator.configure(network_depth=1, tracked_purchases=2)
    orchestrator.befriend(1, 2, 0)
    orchestrator.befriend(1, 3, 0)
    orchestrator.purchase(2, 1000.0, 1, check_anomalies=False)
    orchestrator.purchase(3, 10.0, 2, check_anomalies=False)
    orchestrator.purchase(3, 10.0, 3, check_anomalies=False)
    record = orchestrator.purchase(1, 10.5, 4)
    assert record is not None
    assert record.mean == 10.0


def test_configure_rejects_non_positive(orchestrator):
    with pytest.raises(ValueError):
        orchestrator.configure(network_depth=0, tracked_purchases=5)
    with pytest.raises(ValueError):
        orchestrator.configure(network_depth=1, tracked_purchases=0)


def test_timing_aware_model_ignores_purchases_before_friendship():
    orch = StreamOrchestrator(network_depth=1, tracked_purchases=10, network_model="timing_aware")
    orch.purchase(2, 10.0, 1, check_anomalies=False)
    orch.purchase(2, 10.0, 2, check_anomalies=False)
    orch.befriend(1, 2, 3)
    assert orch.purchase(1, 1000.0, 4) is None
    orch.purchase(2, 10.0, 5, check_anomalies=False)
    orch.purchase(2, 10.0, 6, check_anomalies=False)
    assert orch.purchase(1, 1000.0, 7) is not None


def test_handle_dispatches_events():
    orch = StreamOrchestrator()
    events = [
        ConfigureEvent(depth=1, tracked=3),
        BefriendEvent(id1=1, id2=2, timestamp=0),
        PurchaseEvent(user_id=2, amount=4.0, timestamp=1),
        PurchaseEvent(user_id=2, amount=4.0, timestamp=2),
        UnfriendEvent(id1=5, id2=6, timestamp=3),
    ]
    assert orch.run(events) == []
    assert orch.network_depth == 1
    assert orch.tracked_purchases == 3
    assert orch.stats.to_dict() == {
        "events_processed": 5,
        "purchases": 2,
        "anomalies": 0,
        "warnings": 1,
    }
    record = orch.handle(PurchaseEvent(user_id=1, amount=9.0, timestamp=4), check_anomalies=True)
    assert record is not None


def test_handle_rejects_unknown_event():
    with pytest.raises(TypeError):
        StreamOrchestrator().handle("purchase")  # type: ignore[arg-type]


def test_process_is_lazy():
    orch = StreamOrchestrator()
    flagged = orch.process([BefriendEvent(id1=1, id2=2, timestamp=0)])
    assert len(orch.graph) == 0
    assert list(flagged) == []
    assert len(orch.graph) == 2


def test_base_then_live_stream():
    orch = StreamOrchestrator(network_depth=1, tracked_purchases=10)
    base = [
        BefriendEvent(id1=1, id2=2, timestamp=0),
        PurchaseEvent(user_id=2, amount=10.0, timestamp=1),
        PurchaseEvent(user_id=2, amount=10.0, timestamp=2),
        PurchaseEvent(user_id=1, amount=500.0, timestamp=3),
    ]
    live = [
        PurchaseEvent(user_id=1, amount=11.0, timestamp=4),
        PurchaseEvent(user_id=1, amount=9.0, timestamp=5),
    ]
    assert orch.run(base, check_anomalies=False) == []
    flagged = list(orch.process(live, check_anomalies=True))
    assert [r.amount for r in flagged] == [11.0]


def test_instances_are_isolated():
    a = StreamOrchestrator()
    b = StreamOrchestrator()
    a.configure(network_depth=3, tracked_purchases=7)
    a.befriend(1, 2, 0)
    assert b.network_depth == 2 and b.tracked_purchases == 50
    assert len(b.graph) == 0


def test_from_settings():
    settings = Settings(network_depth=3, tracked_purchases=9, network_model="timing_aware", allow_parallel_edges=True)
    orch = StreamOrchestrator.from_settings(settings)
    assert orch.network_depth == 3
    assert orch.tracked_purchases == 9
    assert orch.network_model.name == "timing_aware"
    assert orch.graph.allow_parallel_edges is True


def test_shared_instance_from_several_threads():
    orch = StreamOrchestrator()
    orch.configure(network_depth=1, tracked_purchases=1000)

    def feed(user_id):
        for ts in range(200):
            orch.purchase(user_id, 1.0, ts, check_anomalies=False)

    threads = [threading.Thread(target=feed, args=(uid,)) for uid in range(1, 5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert orch.sequence_number == 800
    assert orch.stats.purchases == 800
    sequences = sorted(
        p.sequence_number for uid in range(1, 5) for p in orch.graph.get_user(uid).purchases
    )
    assert sequences == list(range(1, 801))


def test_defaults_match_configuration_layer():
    orch = StreamOrchestrator()
    assert orch.network_depth == env.DEFAULT_NETWORK_DEPTH
    assert orch.tracked_purchases == env.DEFAULT_TRACKED_PURCHASES
    assert orch.network_depth == Settings().network_depth
    assert orch.tracked_purchases == Settings().tracked_purchases
