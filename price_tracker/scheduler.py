"""Recurring tick coordinator.

`RunCoordinator.tick()` runs one full pass over the alert set.  At most one
tick executes at a time: a trigger that fires while a tick is still running
is skipped, not queued.  A failing tick is logged and never takes the
process down.
"""

from __future__ import annotations

import datetime as _dt
import logging
import threading
import time
from enum import Enum
from typing import Optional

from apscheduler.schedulers.base import BaseScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from . import config
from .models import TickSummary
from .tracker import AlertStoreLike, PriceTracker

logger = logging.getLogger(__name__)

JOB_ID = "price-tracker-tick"


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class RunCoordinator:
    """Owns the Idle/Running state and the cron schedule for ticks."""

    def __init__(
        self,
        store: AlertStoreLike,
        tracker: PriceTracker,
        *,
        cron: str = config.CRON_SCHEDULE,
        timezone: str = config.SCHEDULER_TIMEZONE,
    ) -> None:
        self.store = store
        self.tracker = tracker
        self.cron = cron
        self.timezone = timezone
        self.trigger = self.build_trigger()
        self._lock = threading.Lock()
        # Guards the tick counters; skipped fires race each other.
        self._stats_lock = threading.Lock()
        self._state = RunState.IDLE
        self.ticks_run = 0
        self.ticks_skipped = 0
        self.ticks_failed = 0
        self.last_summary: Optional[TickSummary] = None

    @property
    def state(self) -> RunState:
        return self._state

    def build_trigger(self) -> CronTrigger:
        """Parse the crontab expression. Raises ValueError if it is invalid."""
        return CronTrigger.from_crontab(self.cron, timezone=self.timezone)

    def tick(self) -> Optional[TickSummary]:
        """Run one pass over all alerts, or skip if one is already running.

        Returns the summary, or None when the tick was skipped or failed.
        """
        if not self._lock.acquire(blocking=False):
            with self._stats_lock:
                self.ticks_skipped += 1
            logger.warning("Previous tick still running; skipping this trigger.")
            return None

        self._state = RunState.RUNNING
        started_at = _dt.datetime.now(_dt.timezone.utc)
        t0 = time.monotonic()
        try:
            logger.info("Running price tracker...")
            alerts = self.store.find_all()
            if not alerts:
                logger.info("No alerts to process.")
            outcomes = self.tracker.run_batches(alerts)
            summary = TickSummary.from_outcomes(
                outcomes,
                windows=self.tracker.last_window_count,
                started_at=started_at,
                duration=time.monotonic() - t0,
            )
            with self._stats_lock:
                self.ticks_run += 1
            self.last_summary = summary
            logger.info("Tick finished: %s", summary.describe())
            return summary
        except Exception:
            with self._stats_lock:
                self.ticks_failed += 1
            logger.exception("Error running price tracker tick")
            return None
        finally:
            self._state = RunState.IDLE
            self._lock.release()

    def schedule(self, scheduler: BaseScheduler) -> None:
        """Register `tick` on `scheduler` with the cron trigger.

        Two instances are allowed so an overlapping fire reaches tick()
        and is skipped there.
        """
        scheduler.add_job(
            self.tick,
            self.trigger,
            id=JOB_ID,
            name="price tracker tick",
            max_instances=2,
            coalesce=True,
            replace_existing=True,
        )
        logger.info("Scheduled price tracker with cron %r (%s)", self.cron, self.timezone)

    def start(self, run_immediately: bool = config.RUN_ON_START) -> None:
        """Block running ticks on schedule until interrupted."""
        scheduler = BlockingScheduler(timezone=self.timezone)
        self.schedule(scheduler)
        if run_immediately:
            self.tick()
        try:
            scheduler.start()
        except (KeyboardInterrupt, SystemExit):
            logger.info("Shutdown signal received; stopping scheduler")
        finally:
            if scheduler.running:
                scheduler.shutdown(wait=False)


__all__ = ["RunCoordinator", "RunState", "JOB_ID"]
