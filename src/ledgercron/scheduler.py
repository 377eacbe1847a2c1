"""In-process periodic trigger for the recurring job."""

from __future__ import annotations

from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler as APScheduler
from apscheduler.triggers.interval import IntervalTrigger
from flask import Flask

from .exceptions import RuleLoadError
from .extensions import get_admin_client
from .logging_config import get_logger
from .services.recurring import RunSummary, run_recurring

logger = get_logger("scheduler")

JOB_ID = "recurring_transactions"


class RecurringScheduler:
    """Runs the recurring job every N minutes inside the web process.

    This is an additional trigger, not a replacement for the external one; both may
    fire for the same due occurrence and the job tolerates that.
    """

    def __init__(self, app: Flask, *, interval_minutes: int):
        """Initialize the scheduler.

        Args:
            app: Flask app providing the administrative client
            interval_minutes: Minutes between runs
        """
        self.app = app
        self.interval_minutes = interval_minutes
        self.scheduler: Optional[APScheduler] = None

    def start(self) -> None:
        if self.scheduler is not None:
            logger.warning("Scheduler already running")
            return

        self.scheduler = APScheduler(timezone="UTC")
        self.scheduler.add_job(
            func=self.run_once,
            trigger=IntervalTrigger(minutes=self.interval_minutes, timezone="UTC"),
            id=JOB_ID,
            name="Recurring transactions",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()
        logger.info("Scheduled recurring transactions every %d minute(s)", self.interval_minutes)

    def stop(self) -> None:
        """Stop the background scheduler gracefully."""
        if self.scheduler is not None:
            self.scheduler.shutdown(wait=True)
            self.scheduler = None
            logger.info("Background scheduler stopped")

    @property
    def running(self) -> bool:
        return self.scheduler is not None

    def run_once(self) -> Optional[RunSummary]:
        """Execute one invocation; failures are logged, never raised into APScheduler."""
        try:
            return run_recurring(get_admin_client(self.app))
        except RuleLoadError as exc:
            logger.error("Scheduled recurring run aborted: %s", exc)
        except Exception as exc:
            logger.error("Scheduled recurring run failed: %s", exc, exc_info=True)
        return None


def create_scheduler(app: Flask, *, auto_start: bool = False) -> RecurringScheduler:
    """Create and optionally start the scheduler for ``app``."""
    config = app.config["LEDGERCRON_CONFIG"]
    scheduler = RecurringScheduler(app, interval_minutes=config.SCHEDULER_INTERVAL_MINUTES)
    if auto_start:
        scheduler.start()
    return scheduler
