"""
End-to-end tests for signals/engine.py – ReconciliationEngine.run_cycle.

The engine never does I/O, so each "poll cycle" is just a dict of buy shares.
"""
from signals.classifier import CompositeSignal, Signal


class TestCycles:

    def test_priming_then_one_transition(self, engine):
        first = engine.run_cycle({"EURUSD": 60.0, "GBPUSD": 40.0})
        assert first.priming
        assert first.transitions == []
        assert {s: c.signal for s, c in engine.last_snapshot.items()} == {
            "EURUSD": Signal.SELL,
            "GBPUSD": Signal.BUY,
        }

        second = engine.run_cycle({"EURUSD": 40.0, "GBPUSD": 40.0})
        assert not second.priming
        assert len(second.transitions) == 1
        t = second.transitions[0]
        assert (t.symbol, t.from_signal, t.to_signal) == ("EURUSD", Signal.SELL, Signal.BUY)

    def test_priming_never_transitions_whatever_the_values(self, engine):
        report = engine.run_cycle({"A": 0.0, "B": 100.0, "C": 50.0})
        assert report.priming
        assert report.transitions == []

    def test_same_batch_twice(self, engine):
        engine.run_cycle({"EURUSD": 60.0})
        engine.run_cycle({"EURUSD": 40.0})
        assert engine.run_cycle({"EURUSD": 40.0}).transitions == []

    def test_server_time_passes_through(self, engine):
        assert engine.run_cycle({"EURUSD": 60.0}, server_time="10:15").server_time == "10:15"


class TestAlertCorrelation:

    def test_alert_matches_once(self, engine):
        engine.ingest_alert("EURUSD", Signal.BUY, {"symbol": "OANDA:EURUSD", "signal": "BUY_RETEST"})

        report = engine.run_cycle({"EURUSD": 40.0})
        assert len(report.matches) == 1
        match = report.matches[0]
        assert match.assertion.payload["signal"] == "BUY_RETEST"
        assert match.signal is Signal.BUY
        assert len(engine.pending) == 0

        assert engine.run_cycle({"EURUSD": 40.0}).matches == []

    def test_alert_matches_on_priming_cycle(self, engine):
        engine.ingest_alert("EURUSD", Signal.SELL)
        report = engine.run_cycle({"EURUSD": 70.0})
        assert report.priming
        assert len(report.matches) == 1

    def test_alert_waits_for_agreement(self, engine, clock):
        engine.ingest_alert("EURUSD", Signal.BUY)
        assert engine.run_cycle({"EURUSD": 50.0}).matches == []
        clock.advance(300)
        assert len(engine.run_cycle({"EURUSD": 44.0}).matches) == 1

    def test_stale_alert_expires_before_matching(self, engine, clock):
        engine.ingest_alert("EURUSD", Signal.BUY)
        clock.advance(engine.pending.timeout_seconds)
        report = engine.run_cycle({"EURUSD": 40.0})
        assert report.matches == []
        assert [a.symbol for a in report.expired] == ["EURUSD"]
        assert len(engine.pending) == 0

    def test_every_expiry_reported_once(self, engine, clock):
        timeout = engine.pending.timeout_seconds
        ids = []
        reported = []
        for _ in range(6):
            ids.append(engine.ingest_alert("EURUSD", Signal.BUY))
            clock.advance(timeout / 2)
            reported += [a.id for a in engine.run_cycle({"EURUSD": 60.0}).expired]
        clock.advance(timeout)
        reported += [a.id for a in engine.run_cycle({"EURUSD": 60.0}).expired]
        assert sorted(reported) == sorted(ids)
        assert len(engine.pending) == 0


class TestComposite:

    def test_initial_then_change(self, engine):
        first = engine.run_cycle({"XAUUSD": 60.0, "XAGUSD": 40.0})
        assert first.composite.initial
        assert engine.last_composite is CompositeSignal.SELL_COMPOSITE

        second = engine.run_cycle({"XAUUSD": 50.0, "XAGUSD": 50.0})
        assert second.composite.changed
        assert engine.last_composite is CompositeSignal.HOLD_COMPOSITE

    def test_missing_symbol_leaves_composite(self, engine):
        engine.run_cycle({"XAUUSD": 40.0, "XAGUSD": 60.0})
        report = engine.run_cycle({"XAUUSD": 60.0})
        assert report.composite is None
        assert engine.last_composite is CompositeSignal.BUY_COMPOSITE

    def test_no_designated_symbols_at_all(self, engine):
        report = engine.run_cycle({"EURUSD": 50.0})
        assert report.composite is None
        assert engine.last_composite is None


def test_fresh_engine_state(engine):
    assert not engine.primed
    assert engine.last_snapshot == {}
    assert engine.last_composite is None
    assert len(engine.pending) == 0
