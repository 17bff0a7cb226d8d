from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Optional

from signals.config import SignalConfig


class Signal(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class CompositeSignal(str, Enum):
    BUY_COMPOSITE = "BUY_COMPOSITE"
    SELL_COMPOSITE = "SELL_COMPOSITE"
    HOLD_COMPOSITE = "HOLD_COMPOSITE"


@dataclass(frozen=True)
class ClassifiedRatio:
    """One symbol's buy share and the signal derived from it."""

    symbol: str
    ratio: float
    signal: Signal


def classify(p: float, cfg: SignalConfig) -> Signal:
    """
    Contrarian three-state classifier.

    Both band edges are HOLD: p == sell_above and p == buy_below never trade.
    """
    if p > cfg.sell_above:
        return Signal.SELL
    if p < cfg.buy_below:
        return Signal.BUY
    return Signal.HOLD


def direction_family(text: str) -> Optional[Signal]:
    """
    Map free-form alert text ("buy", "BUY_RETEST", "Sell stop") to BUY or SELL.

    Returns None when the text starts with neither.
    """
    head = (text or "").strip().upper()
    if head.startswith(Signal.BUY.value):
        return Signal.BUY
    if head.startswith(Signal.SELL.value):
        return Signal.SELL
    return None


def classify_batch(ratios: Mapping[str, float], cfg: SignalConfig) -> Dict[str, ClassifiedRatio]:
    """Classify every symbol, keeping the feed's iteration order."""
    return {
        symbol: ClassifiedRatio(symbol=symbol, ratio=float(p), signal=classify(p, cfg))
        for symbol, p in ratios.items()
    }
