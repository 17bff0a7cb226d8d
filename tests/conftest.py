"""
conftest.py – shared fixtures.

Every test gets fresh engine state and, where storage is involved, its own
sqlite file, so nothing leaks between tests or touches the real bot.db.
"""

import pytest

import storage
from signals.config import SignalConfig
from signals.engine import ReconciliationEngine


class FakeClock:
    """Manually advanced stand-in for time.time()."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeBot:
    """Records send_message calls; optionally raises a given exception."""

    def __init__(self, error=None):
        self.sent = []
        self.error = error

    async def send_message(self, chat_id, text):
        if self.error is not None:
            raise self.error
        self.sent.append((chat_id, text))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cfg():
    return SignalConfig(pending_timeout_seconds=600.0)


@pytest.fixture
def engine(cfg, clock):
    return ReconciliationEngine(cfg, clock=clock)


@pytest.fixture
def db(tmp_path, monkeypatch):
    monkeypatch.setattr(storage, "DB", tmp_path / "test.db")
    storage.init_db()
    return storage.DB
