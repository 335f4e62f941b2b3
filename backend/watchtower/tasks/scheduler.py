"""Background scheduling for report expiry and the stale-report sweep."""

import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from watchtower.config import get_settings

if TYPE_CHECKING:
    from watchtower.core.engine import ReportingEngine

logger = logging.getLogger(__name__)
settings = get_settings()

# Global scheduler instance
scheduler: AsyncIOScheduler | None = None


async def _run_timer(func: Callable[[], Awaitable[None]], job_id: str) -> None:
    try:
        await func()
    except Exception as e:
        logger.error(f"Timer {job_id} failed: {e}", exc_info=True)


class APSchedulerExpiryScheduler:
    """Runs engine timers as one-shot APScheduler date jobs."""

    def __init__(self, aps: AsyncIOScheduler):
        self._scheduler = aps

    def schedule(
        self, run_at: datetime, func: Callable[[], Awaitable[None]], job_id: str
    ) -> None:
        # Timers already in the past (e.g. after hydration) run immediately.
        run_at = max(run_at, datetime.now(UTC))
        self._scheduler.add_job(
            _run_timer,
            trigger=DateTrigger(run_date=run_at),
            args=[func, job_id],
            id=job_id,
            name=f"Report timer {job_id}",
            replace_existing=True,
            misfire_grace_time=None,
        )
        logger.debug(f"Scheduled {job_id} at {run_at.isoformat()}")


async def sweep_expired_reports_job(engine: "ReportingEngine") -> None:
    """Background job purging reports whose timers did not fire."""
    try:
        purged = await engine.sweep()
        if purged:
            logger.info(f"Sweep removed {purged} stale reports")
    except Exception as e:
        logger.error(f"Report sweep failed: {e}", exc_info=True)


def setup_scheduler() -> AsyncIOScheduler:
    """Set up and start the background task scheduler."""
    global scheduler

    scheduler = AsyncIOScheduler(timezone=UTC)
    scheduler.start()
    logger.info("Scheduler started")

    return scheduler


def add_sweep_job(aps: AsyncIOScheduler, engine: "ReportingEngine") -> None:
    """Schedule the periodic stale-report sweep."""
    aps.add_job(
        sweep_expired_reports_job,
        trigger=IntervalTrigger(seconds=settings.sweep_interval_seconds),
        args=[engine],
        id="sweep_expired_reports",
        name="Purge stale location reports",
        replace_existing=True,
    )


def shutdown_scheduler() -> None:
    """Shut down the scheduler gracefully."""
    global scheduler

    if scheduler:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler shut down")
        scheduler = None
