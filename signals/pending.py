from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping

from signals.classifier import ClassifiedRatio, Signal


@dataclass(frozen=True)
class PendingAssertion:
    """
    An external claim that `symbol` should move in `direction` (BUY or SELL).

    payload is carried untouched into the confirmation message.
    """

    id: str
    symbol: str
    direction: Signal
    received_at: float
    payload: Dict[str, Any] = field(default_factory=dict)

    def age(self, now: float) -> float:
        return now - self.received_at


@dataclass(frozen=True)
class Match:
    assertion: PendingAssertion
    signal: Signal
    ratio: float


class PendingCorrelationSet:
    """
    Time-bounded set of external assertions waiting for sentiment confirmation.

    Alerts and polled sentiment arrive on independent schedules; an assertion
    waits here until the polled signal for its symbol agrees with it, or until
    it is timeout_seconds old. Duplicates are kept and evaluated independently.

    Every mutation is a single synchronous step, so ingestion from a request
    handler can interleave with a poll cycle on the same event loop.
    """

    def __init__(
        self,
        timeout_seconds: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {timeout_seconds}")
        self.timeout_seconds = float(timeout_seconds)
        self._clock = clock
        self._items: List[PendingAssertion] = []

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(list(self._items))

    def ingest(self, symbol: str, direction: Signal, payload: Mapping[str, Any] | None = None) -> str:
        if direction not in (Signal.BUY, Signal.SELL):
            raise ValueError(f"direction must be BUY or SELL, got {direction!r}")

        assertion = PendingAssertion(
            id=uuid.uuid4().hex,
            symbol=symbol.upper(),
            direction=direction,
            received_at=self._clock(),
            payload=dict(payload or {}),
        )
        self._items.append(assertion)
        return assertion.id

    def expire(self) -> List[PendingAssertion]:
        """Drop every assertion whose age has reached the timeout."""
        now = self._clock()
        kept, expired = [], []
        for item in self._items:
            (expired if item.age(now) >= self.timeout_seconds else kept).append(item)
        self._items = kept
        return expired

    def reconcile(self, snapshot: Mapping[str, ClassifiedRatio]) -> List[Match]:
        """
        Match pending assertions against the current snapshot.

        Call expire() first. reconcile never removes a stale assertion, it
        only refuses to match it, so every eviction is reported by expire().
        Matched assertions leave the set. Those whose symbol is absent from
        the snapshot, or whose direction disagrees, stay pending.
        """
        now = self._clock()
        matches: List[Match] = []
        kept: List[PendingAssertion] = []
        for item in self._items:
            current = snapshot.get(item.symbol)
            fresh = item.age(now) < self.timeout_seconds
            if fresh and current is not None and current.signal == item.direction:
                matches.append(Match(assertion=item, signal=current.signal, ratio=current.ratio))
            else:
                kept.append(item)
        self._items = kept

        return matches
