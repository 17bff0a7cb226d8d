from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from signals.classifier import CompositeSignal
from signals.config import SignalConfig


@dataclass(frozen=True)
class CompositeUpdate:
    """
    Result of one composite evaluation.

    previous is None on the first computed value (priming); changed tells
    whether a transition should be reported.
    """

    signal: CompositeSignal
    previous: Optional[CompositeSignal]
    primary_ratio: float
    secondary_ratio: float

    @property
    def initial(self) -> bool:
        return self.previous is None

    @property
    def changed(self) -> bool:
        return self.previous is not None and self.previous != self.signal


def evaluate_composite(a: float, b: float, cfg: SignalConfig) -> CompositeSignal:
    """
    Rule table, first match wins:
      1) primary overbought while secondary weak   -> SELL_COMPOSITE
      2) primary oversold while secondary strong   -> BUY_COMPOSITE
      3) otherwise                                 -> HOLD_COMPOSITE
    """
    if a > cfg.composite_sell_above and b < cfg.composite_pivot:
        return CompositeSignal.SELL_COMPOSITE
    if a < cfg.composite_buy_below and b > cfg.composite_pivot:
        return CompositeSignal.BUY_COMPOSITE
    return CompositeSignal.HOLD_COMPOSITE


class CompositeEvaluator:
    """Single-slot memory for the composite signal of the two designated symbols."""

    def __init__(self, cfg: SignalConfig) -> None:
        self._cfg = cfg
        self._primary = cfg.composite_primary.upper()
        self._secondary = cfg.composite_secondary.upper()
        self._last: Optional[CompositeSignal] = None

    @property
    def symbols(self) -> Tuple[str, str]:
        return self._primary, self._secondary

    @property
    def last(self) -> Optional[CompositeSignal]:
        return self._last

    def update(self, ratios: Mapping[str, float]) -> Optional[CompositeUpdate]:
        """
        Evaluate against this cycle's raw buy shares.

        Returns None (and keeps the stored value) when either designated
        symbol is absent from the cycle.
        """
        if self._primary not in ratios or self._secondary not in ratios:
            return None

        a = float(ratios[self._primary])
        b = float(ratios[self._secondary])
        signal = evaluate_composite(a, b, self._cfg)

        update = CompositeUpdate(
            signal=signal,
            previous=self._last,
            primary_ratio=a,
            secondary_ratio=b,
        )
        self._last = signal
        return update
