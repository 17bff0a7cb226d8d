"""
core/feed.py
Client for the crowd-sentiment "current ratios" feed.

Expected payload
----------------
{
  "pairs": {
    "EURUSD": {"average": "61.23", ...},
    "GBPUSD": {"average": "38.90", ...},
    ...
  },
  "server_time": "2024-05-02 10:15"      # optional
}

Any other top-level shape is a FeedError. Inside "pairs", one bad entry only
skips that symbol.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

logger = logging.getLogger(__name__)

_session = requests.Session()
_session.headers.update({"Accept": "application/json", "User-Agent": "sentiment-signal-bot/0.1"})


class FeedError(Exception):
    """The feed could not be reached or returned an unusable payload."""


@dataclass(frozen=True)
class FeedSnapshot:
    ratios: Dict[str, float] = field(default_factory=dict)
    server_time: Optional[str] = None


def _to_ratio(value: Any) -> Optional[float]:
    try:
        ratio = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(ratio):
        return None
    return ratio


def parse_ratios(payload: Any) -> FeedSnapshot:
    """Extract {SYMBOL: buy share} in feed order, skipping unusable entries."""
    if not isinstance(payload, dict):
        raise FeedError(f"Expected a JSON object, got {type(payload).__name__}")
    pairs = payload.get("pairs")
    if not isinstance(pairs, dict):
        raise FeedError("Could not find 'pairs' data in the response")

    ratios: Dict[str, float] = {}
    for symbol, data in pairs.items():
        if not isinstance(data, dict) or "average" not in data:
            continue
        ratio = _to_ratio(data["average"])
        if ratio is None:
            logger.debug("%s: average is not a valid number (%r)", symbol, data["average"])
            continue
        ratios[str(symbol).strip().upper()] = ratio

    if not ratios:
        raise FeedError(f"None of the {len(pairs)} pairs carried a usable average")

    server_time = payload.get("server_time")
    return FeedSnapshot(
        ratios=ratios,
        server_time=str(server_time) if server_time not in (None, "") else None,
    )


def fetch_ratios(
    url: str,
    *,
    timeout: float = 15.0,
    retries: int = 3,
    backoff: float = 1.0,
    session: Optional[requests.Session] = None,
) -> FeedSnapshot:
    """
    GET the feed and parse it. Network errors are retried with exponential
    backoff; once attempts run out they surface as FeedError.
    """
    http = session or _session

    try:
        for attempt in Retrying(
            retry=retry_if_exception_type(requests.RequestException),
            wait=wait_exponential(multiplier=backoff, min=0, max=10),
            stop=stop_after_attempt(retries),
            reraise=True,
        ):
            with attempt:
                resp = http.get(url, timeout=timeout)
                resp.raise_for_status()
    except requests.RequestException as e:
        raise FeedError(f"Error fetching data: {e}") from e

    try:
        payload = resp.json()
    except ValueError as e:
        raise FeedError(f"Feed returned non-JSON body: {e}") from e

    return parse_ratios(payload)
