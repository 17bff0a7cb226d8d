from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping

from signals.classifier import ClassifiedRatio, Signal


@dataclass(frozen=True)
class Transition:
    symbol: str
    from_signal: Signal
    to_signal: Signal
    ratio: float


class SnapshotStore:
    """
    Last classified signal per symbol, used to detect transitions.

    The first recorded batch only seeds the store (priming). Every later batch
    is compared symbol by symbol against the stored one and then replaces it
    wholesale, so symbols missing from a batch are forgotten.
    """

    def __init__(self) -> None:
        self._previous: Dict[str, ClassifiedRatio] = {}
        self._primed = False

    @property
    def primed(self) -> bool:
        return self._primed

    @property
    def snapshot(self) -> Dict[str, ClassifiedRatio]:
        return dict(self._previous)

    def record_cycle(self, batch: Mapping[str, ClassifiedRatio]) -> List[Transition]:
        transitions: List[Transition] = []

        if self._primed:
            for symbol, current in batch.items():
                before = self._previous.get(symbol)
                if before is None:
                    continue
                if before.signal != current.signal:
                    transitions.append(
                        Transition(
                            symbol=symbol,
                            from_signal=before.signal,
                            to_signal=current.signal,
                            ratio=current.ratio,
                        )
                    )

        self._previous = dict(batch)
        self._primed = True
        return transitions
