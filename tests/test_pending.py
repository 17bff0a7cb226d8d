"""
Unit tests for signals/pending.py – PendingCorrelationSet.

Uses the FakeClock fixture from conftest.py so expiry is deterministic.
"""
import pytest

from signals.classifier import Signal, classify_batch
from signals.config import SignalConfig
from signals.pending import PendingCorrelationSet

_CFG = SignalConfig()
_TIMEOUT = 600.0


def _snap(**ratios):
    return classify_batch(ratios, _CFG)


@pytest.fixture
def pending(clock):
    return PendingCorrelationSet(_TIMEOUT, clock=clock)


class TestIngest:

    def test_returns_unique_ids(self, pending):
        a = pending.ingest("EURUSD", Signal.BUY)
        b = pending.ingest("EURUSD", Signal.BUY)
        assert a != b
        assert len(pending) == 2

    def test_normalises_symbol_and_stamps_time(self, pending, clock):
        pending.ingest("eurusd", Signal.SELL, {"signal": "SELL_X"})
        (item,) = list(pending)
        assert item.symbol == "EURUSD"
        assert item.received_at == clock.now
        assert item.payload == {"signal": "SELL_X"}

    def test_hold_is_not_a_direction(self, pending):
        with pytest.raises(ValueError):
            pending.ingest("EURUSD", Signal.HOLD)

    def test_rejects_non_positive_timeout(self, clock):
        with pytest.raises(ValueError):
            PendingCorrelationSet(0, clock=clock)


class TestReconcile:

    def test_match_removes_assertion(self, pending):
        pending.ingest("EURUSD", Signal.BUY, {"signal": "BUY_RETEST"})
        matches = pending.reconcile(_snap(EURUSD=40.0))
        assert len(matches) == 1
        m = matches[0]
        assert m.assertion.symbol == "EURUSD"
        assert m.signal is Signal.BUY
        assert m.ratio == 40.0
        assert len(pending) == 0

    def test_match_only_once(self, pending):
        pending.ingest("EURUSD", Signal.BUY)
        assert len(pending.reconcile(_snap(EURUSD=40.0))) == 1
        assert pending.reconcile(_snap(EURUSD=40.0)) == []

    def test_disagreeing_direction_stays(self, pending):
        pending.ingest("EURUSD", Signal.BUY)
        assert pending.reconcile(_snap(EURUSD=60.0)) == []
        assert pending.reconcile(_snap(EURUSD=50.0)) == []
        assert len(pending) == 1

    def test_absent_symbol_stays(self, pending):
        pending.ingest("NZDCAD", Signal.SELL)
        assert pending.reconcile(_snap(EURUSD=60.0)) == []
        assert len(pending) == 1

    def test_duplicates_all_match(self, pending):
        pending.ingest("EURUSD", Signal.SELL)
        pending.ingest("EURUSD", Signal.SELL)
        pending.ingest("EURUSD", Signal.BUY)
        matches = pending.reconcile(_snap(EURUSD=70.0))
        assert len(matches) == 2
        assert [a.direction for a in pending] == [Signal.BUY]

    def test_match_order_follows_ingestion(self, pending):
        first = pending.ingest("GBPUSD", Signal.BUY)
        second = pending.ingest("EURUSD", Signal.BUY)
        matches = pending.reconcile(_snap(EURUSD=40.0, GBPUSD=40.0))
        assert [m.assertion.id for m in matches] == [first, second]


class TestExpiry:

    def test_expires_at_timeout(self, pending, clock):
        pending.ingest("EURUSD", Signal.BUY)
        clock.advance(_TIMEOUT)
        # would match, but it is already too old
        assert pending.reconcile(_snap(EURUSD=40.0)) == []
        # left for expire() to report, not silently dropped
        assert [a.symbol for a in pending.expire()] == ["EURUSD"]
        assert len(pending) == 0

    def test_survives_just_before_timeout(self, pending, clock):
        pending.ingest("EURUSD", Signal.BUY)
        clock.advance(_TIMEOUT - 1)
        assert len(pending.reconcile(_snap(EURUSD=40.0))) == 1

    def test_expire_returns_only_stale(self, pending, clock):
        pending.ingest("EURUSD", Signal.BUY)
        clock.advance(400)
        pending.ingest("GBPUSD", Signal.SELL)
        clock.advance(250)
        expired = pending.expire()
        assert [a.symbol for a in expired] == ["EURUSD"]
        assert [a.symbol for a in pending] == ["GBPUSD"]

    def test_age(self, pending, clock):
        pending.ingest("EURUSD", Signal.BUY)
        clock.advance(42)
        (item,) = list(pending)
        assert item.age(clock()) == pytest.approx(42)
