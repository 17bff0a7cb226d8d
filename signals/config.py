from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SignalConfig:

    """
    Sentiment signal configuration.

    Key design:
      - The feed reports a "buy share" per symbol: the percentage of traders
        positioned long. Signals are contrarian:
          buy share > sell_above  -> SELL
          buy share < buy_below   -> BUY
          otherwise               -> HOLD
      - The composite signal reads two designated symbols and uses its own
        thresholds, evaluated independently of the per-symbol signals.

    IMPORTANT timeout note:
      - External alerts wait in the pending set for at most
        pending_timeout_seconds. Keep it above one poll interval (plus jitter)
        so an alert can survive one missed cycle.
    """

    # ------------------------------------------------------------------
    # Per-symbol classification bands (percent)
    # ------------------------------------------------------------------
    sell_above: float = 55.0
    buy_below: float = 45.0

    # ------------------------------------------------------------------
    # Composite signal
    # ------------------------------------------------------------------
    composite_primary: str = "XAUUSD"
    composite_secondary: str = "XAGUSD"

    # primary > composite_sell_above and secondary < composite_pivot -> SELL
    # primary < composite_buy_below  and secondary > composite_pivot -> BUY
    composite_sell_above: float = 55.0
    composite_buy_below: float = 45.0
    composite_pivot: float = 50.0

    # ------------------------------------------------------------------
    # Pending alert correlation
    # ------------------------------------------------------------------
    pending_timeout_seconds: float = 600.0

    def __post_init__(self) -> None:
        errors = []

        # --- Classification bands ---
        for name in ("sell_above", "buy_below"):
            value = getattr(self, name)
            if not (0.0 <= value <= 100.0):
                errors.append(f"{name} must be in [0, 100], got {value}")
        if self.buy_below > self.sell_above:
            errors.append(
                f"buy_below ({self.buy_below}) must be <= sell_above ({self.sell_above})"
            )

        # --- Composite ---
        if not self.composite_primary:
            errors.append("composite_primary must not be empty")
        if not self.composite_secondary:
            errors.append("composite_secondary must not be empty")
        if (
            self.composite_primary
            and self.composite_primary.upper() == self.composite_secondary.upper()
        ):
            errors.append(
                f"composite_primary and composite_secondary must differ, "
                f"got '{self.composite_primary}' twice"
            )
        for name in ("composite_sell_above", "composite_buy_below", "composite_pivot"):
            value = getattr(self, name)
            if not (0.0 <= value <= 100.0):
                errors.append(f"{name} must be in [0, 100], got {value}")
        if self.composite_buy_below > self.composite_sell_above:
            errors.append(
                f"composite_buy_below ({self.composite_buy_below}) must be <= "
                f"composite_sell_above ({self.composite_sell_above})"
            )

        # --- Pending set ---
        if self.pending_timeout_seconds <= 0:
            errors.append(
                f"pending_timeout_seconds must be > 0, got {self.pending_timeout_seconds}"
            )

        if errors:
            raise ValueError(
                "Invalid SignalConfig:\n" + "\n".join(f"  • {e}" for e in errors)
            )
