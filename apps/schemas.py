"""
Pydantic schemas for the alert webhook.
Incoming alerts are validated here, so nothing malformed reaches the engine.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator

from signals.classifier import direction_family


class AlertIn(BaseModel):
    """
    Body of an external trade alert, e.g. from a charting platform:
      {"symbol": "OANDA:EURUSD", "signal": "BUY_RETEST", ...}

    Unknown keys are kept and travel with the alert as its payload.
    """
    model_config = ConfigDict(extra="allow")

    symbol: str
    signal: str

    @field_validator("symbol")
    @classmethod
    def base_symbol(cls, v: str) -> str:
        # "OANDA:EURUSD" -> "EURUSD"
        base = v.strip().rsplit(":", 1)[-1].strip().upper()
        if not base:
            raise ValueError("symbol is empty")
        return base

    @field_validator("signal")
    @classmethod
    def buy_or_sell(cls, v: str) -> str:
        if direction_family(v) is None:
            raise ValueError(f"signal must start with BUY or SELL, got '{v}'")
        return v.strip()


class AlertAccepted(BaseModel):
    id: str
    symbol: str
    direction: str


class HealthOut(BaseModel):
    status: str
    primed: bool
    pending: int
    recipient: bool
