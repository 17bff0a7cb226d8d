from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from signals.classifier import ClassifiedRatio, CompositeSignal, Signal, classify_batch
from signals.composite import CompositeEvaluator, CompositeUpdate
from signals.config import SignalConfig
from signals.pending import Match, PendingAssertion, PendingCorrelationSet
from signals.snapshot import SnapshotStore, Transition

logger = logging.getLogger(__name__)


@dataclass
class CycleReport:
    """Everything one successful poll cycle produced, ready for formatting."""

    snapshot: Dict[str, ClassifiedRatio]
    priming: bool = False
    transitions: List[Transition] = field(default_factory=list)
    composite: Optional[CompositeUpdate] = None
    matches: List[Match] = field(default_factory=list)
    expired: List[PendingAssertion] = field(default_factory=list)
    server_time: Optional[str] = None


class ReconciliationEngine:
    """
    Owns all signal state for one process: the snapshot store, the composite
    memory and the pending correlation set.

    run_cycle() is only called with the ratios of a successful fetch. A failed
    fetch only calls expire_pending(): snapshots and composite memory are left
    as they were, and nothing is matched.
    """

    def __init__(
        self,
        cfg: Optional[SignalConfig] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.cfg = cfg or SignalConfig()
        self.clock = clock
        self.snapshots = SnapshotStore()
        self.composite = CompositeEvaluator(self.cfg)
        self.pending = PendingCorrelationSet(self.cfg.pending_timeout_seconds, clock=clock)

    # ------------------------------------------------------------------
    # Queries used by the registration flow and the HTTP surface
    # ------------------------------------------------------------------
    @property
    def primed(self) -> bool:
        return self.snapshots.primed

    @property
    def last_snapshot(self) -> Dict[str, ClassifiedRatio]:
        return self.snapshots.snapshot

    @property
    def last_composite(self) -> Optional[CompositeSignal]:
        return self.composite.last

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def ingest_alert(
        self,
        symbol: str,
        direction: Signal,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> str:
        assertion_id = self.pending.ingest(symbol, direction, payload)
        logger.info(
            "Pending %s %s (%s), %d waiting",
            direction.value, symbol.upper(), assertion_id, len(self.pending),
        )
        return assertion_id

    def expire_pending(self) -> List[PendingAssertion]:
        """Evict assertions that reached the timeout unconfirmed. Runs on failed cycles too."""
        expired = self.pending.expire()
        for item in expired:
            logger.info(
                "Alert %s %s (%s) expired unconfirmed after %.0fs",
                item.symbol, item.direction.value, item.id, self.pending.timeout_seconds,
            )
        return expired

    def run_cycle(
        self,
        ratios: Mapping[str, float],
        server_time: Optional[str] = None,
    ) -> CycleReport:
        """
        Classify one fetched batch and advance every piece of state:
          1) classify each symbol
          2) detect transitions (or prime on the first cycle)
          3) update the composite signal
          4) expire stale assertions, then match the rest
        """
        batch = classify_batch(ratios, self.cfg)
        priming = not self.snapshots.primed

        transitions = self.snapshots.record_cycle(batch)
        composite = self.composite.update(ratios)
        expired = self.expire_pending()
        matches = self.pending.reconcile(batch)

        report = CycleReport(
            snapshot=batch,
            priming=priming,
            transitions=transitions,
            composite=composite,
            matches=matches,
            expired=expired,
            server_time=server_time,
        )
        logger.info(
            "Cycle: %d symbols%s, %d transitions, composite=%s, %d matches, %d expired, %d pending",
            len(batch),
            " (priming)" if priming else "",
            len(transitions),
            composite.signal.value if composite else "n/a",
            len(matches),
            len(expired),
            len(self.pending),
        )
        return report
