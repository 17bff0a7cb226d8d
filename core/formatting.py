"""Human-readable Telegram message bodies."""
from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional, Sequence

from signals.classifier import ClassifiedRatio, CompositeSignal, Signal
from signals.composite import CompositeUpdate
from signals.pending import Match, PendingAssertion
from signals.snapshot import Transition

_SIGNAL_ICON = {
    Signal.BUY: "🟢",
    Signal.SELL: "🔴",
    Signal.HOLD: "⚪",
    CompositeSignal.BUY_COMPOSITE: "🟢",
    CompositeSignal.SELL_COMPOSITE: "🔴",
    CompositeSignal.HOLD_COMPOSITE: "⚪",
}

_COMPOSITE_REASON = {
    CompositeSignal.SELL_COMPOSITE: "primary overbought while secondary weak",
    CompositeSignal.BUY_COMPOSITE: "primary oversold while secondary strong",
    CompositeSignal.HOLD_COMPOSITE: "no divergence",
}

HELP_TEXT = (
    "Available Commands:\n\n"
    "/start   – Receive signal notifications in this chat.\n"
    "/stop    – Stop notifications.\n"
    "/status  – Show the latest sentiment snapshot.\n"
    "/pending – Show alerts waiting for sentiment confirmation.\n"
    "/help    – Show this message.\n\n"
    "Note: Signals are contrarian crowd-sentiment readings, not investment advice."
)


def _sorted_by_ratio(snapshot: Mapping[str, ClassifiedRatio]) -> List[ClassifiedRatio]:
    return sorted(snapshot.values(), key=lambda c: c.ratio, reverse=True)


def format_snapshot_lines(snapshot: Mapping[str, ClassifiedRatio]) -> List[str]:
    return [
        f"{_SIGNAL_ICON[c.signal]} {c.symbol} (Average: {c.ratio:.2f}): {c.signal.value}"
        for c in _sorted_by_ratio(snapshot)
    ]


def format_snapshot(
    snapshot: Mapping[str, ClassifiedRatio],
    server_time: Optional[str] = None,
) -> str:
    """Full-state summary, sorted high to low by buy share."""
    title = "📊 Trading signals based on average values (sorted high to low)"
    if server_time:
        title += f"\nServer time: {server_time}"
    lines = format_snapshot_lines(snapshot) or ["No symbols in the latest snapshot."]
    return title + "\n\n" + "\n".join(lines)


def format_transitions(transitions: Sequence[Transition]) -> str:
    lines = ["🔄 Signal changes:"]
    for t in transitions:
        lines.append(
            f"{_SIGNAL_ICON[t.to_signal]} {t.symbol}: {t.from_signal.value} → {t.to_signal.value} "
            f"(Average: {t.ratio:.2f})"
        )
    return "\n".join(lines)


def format_composite(update: CompositeUpdate, primary: str, secondary: str) -> str:
    icon = _SIGNAL_ICON[update.signal]
    if update.initial:
        head = f"{icon} Composite {primary}/{secondary}: {update.signal.value}"
    else:
        head = (
            f"{icon} Composite {primary}/{secondary}: "
            f"{update.previous.value} → {update.signal.value}"
        )
    return (
        f"{head}\n"
        f"Reason: {_COMPOSITE_REASON[update.signal]}\n"
        f"  {primary}:  {update.primary_ratio:.2f}\n"
        f"  {secondary}: {update.secondary_ratio:.2f}"
    )


def _payload_lines(payload: Mapping[str, Any]) -> Iterable[str]:
    for key, value in payload.items():
        yield f"  {key}: {value}"


def format_match(match: Match) -> str:
    a = match.assertion
    alert_signal = a.payload.get("signal", a.direction.value)
    lines = [
        f"✅ {a.symbol} alert confirmed by sentiment",
        f"Alert: {alert_signal}",
        f"Sentiment: {match.signal.value} (Average: {match.ratio:.2f})",
    ]
    if a.payload:
        lines.append("")
        lines.append("Alert details:")
        lines.extend(_payload_lines(a.payload))
    return "\n".join(lines)


def format_pending(assertions: Sequence[PendingAssertion], now: float, timeout: float) -> str:
    if not assertions:
        return "📭 No alerts waiting for confirmation."
    lines = [f"⏳ Pending alerts ({len(assertions)}):"]
    for a in assertions:
        age_min = a.age(now) / 60.0
        left_min = max(0.0, timeout - a.age(now)) / 60.0
        lines.append(
            f"- {a.symbol} {a.direction.value} | age {age_min:.1f}m | expires in {left_min:.1f}m"
        )
    return "\n".join(lines)


def format_catch_up(
    snapshot: Mapping[str, ClassifiedRatio],
    composite: Optional[CompositeSignal],
    pending_count: int,
    primary: str,
    secondary: str,
) -> str:
    if not snapshot:
        body = "No sentiment data yet – waiting for the first poll."
    else:
        body = "\n".join(format_snapshot_lines(snapshot))
    comp = composite.value if composite is not None else "n/a"
    return (
        "📋 Current state\n\n"
        f"{body}\n\n"
        f"Composite {primary}/{secondary}: {comp}\n"
        f"Pending alerts: {pending_count}"
    )
