"""
apps/jobs.py

The poll loop: fetch → classify → detect → correlate → notify, forever.

Only one cycle is ever in flight. The next run is armed as a one-shot
APScheduler job *after* the current cycle has finished, with a delay of
interval ± uniform(jitter) so we never lock step with the feed's own refresh.
"""
from __future__ import annotations

import asyncio
import logging
import random
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

from apps.alert import Notifier
from core.feed import FeedError, FeedSnapshot
from core.formatting import format_composite, format_match, format_snapshot, format_transitions
from signals.engine import CycleReport, ReconciliationEngine

logger = logging.getLogger(__name__)

IDLE = "IDLE"
FETCHING = "FETCHING"
JOB_ID = "poll_cycle"


def dispatch_report(report: CycleReport, notifier: Notifier, engine: ReconciliationEngine) -> int:
    """Turn one cycle's results into notifications. Returns how many were scheduled."""
    messages = []

    if report.priming:
        messages.append(format_snapshot(report.snapshot, report.server_time))
    if report.transitions:
        messages.append(format_transitions(report.transitions))

    update = report.composite
    if update is not None and (update.initial or update.changed):
        primary, secondary = engine.composite.symbols
        messages.append(format_composite(update, primary, secondary))

    for match in report.matches:
        messages.append(format_match(match))

    sent = 0
    for text in messages:
        if notifier.notify(text) is not None:
            sent += 1
    return sent


class PollScheduler:
    def __init__(
        self,
        engine: ReconciliationEngine,
        notifier: Notifier,
        fetch: Callable[[], FeedSnapshot],
        *,
        interval_seconds: float,
        jitter_seconds: float = 0.0,
        scheduler: Optional[AsyncIOScheduler] = None,
        rng: Optional[random.Random] = None,
    ):
        self.engine = engine
        self.notifier = notifier
        self._fetch = fetch
        self.interval_seconds = float(interval_seconds)
        self.jitter_seconds = float(jitter_seconds)
        self.scheduler = scheduler or AsyncIOScheduler(timezone="UTC")
        self._rng = rng or random.Random()
        self.state = IDLE

    def next_delay(self) -> float:
        return self.interval_seconds + self._rng.uniform(-self.jitter_seconds, self.jitter_seconds)

    def arm(self, delay: float) -> None:
        run_at = datetime.now(timezone.utc) + timedelta(seconds=max(0.0, delay))
        self.scheduler.add_job(
            self.run_cycle,
            DateTrigger(run_date=run_at),
            id=JOB_ID,
            name="Sentiment poll cycle",
            replace_existing=True,
            misfire_grace_time=None,
        )
        logger.debug("Next poll at %s (in %.1fs)", run_at.isoformat(), delay)

    def start(self, run_now: bool = True) -> None:
        self.scheduler.start()
        self.arm(0.0 if run_now else self.next_delay())
        logger.info(
            "Scheduler started – polling every %.0fs ± %.0fs",
            self.interval_seconds, self.jitter_seconds,
        )

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

    async def poll_once(self) -> Optional[CycleReport]:
        """
        One fetch + reconcile. A fetch failure skips snapshot, composite and
        matching, but stale pending alerts are still expired so an outage
        cannot keep them alive.
        """
        try:
            snap = await asyncio.to_thread(self._fetch)
        except FeedError as e:
            logger.error("Fetch failed – skipping cycle: %s", e)
            self.engine.expire_pending()
            return None

        report = self.engine.run_cycle(snap.ratios, snap.server_time)
        dispatch_report(report, self.notifier, self.engine)
        return report

    async def run_cycle(self) -> Optional[CycleReport]:
        self.state = FETCHING
        report = None
        try:
            report = await self.poll_once()
        except Exception:
            logger.exception("Poll cycle failed")
        finally:
            self.arm(self.next_delay())
            self.state = IDLE
        return report
