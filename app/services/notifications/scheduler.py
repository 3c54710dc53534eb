"""APScheduler integration for the weekly digest."""

from typing import Optional
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from app.config import get_settings
from app.db.session import async_session_maker
from app.services.notifications.digest import send_weekly_digest

logger = logging.getLogger(__name__)
settings = get_settings()

# Global scheduler instance
_scheduler: Optional[AsyncIOScheduler] = None


async def weekly_digest_job() -> None:
    """Background job sending the weekly review summary."""
    logger.info("Running weekly digest job")
    try:
        await send_weekly_digest(async_session_maker)
    except Exception as e:
        logger.error(f"Weekly digest job failed: {e}", exc_info=True)


def get_scheduler() -> AsyncIOScheduler:
    """Get or create the scheduler instance."""
    global _scheduler
    if _scheduler is None:
        _scheduler = AsyncIOScheduler(timezone="UTC")
    return _scheduler


def start_scheduler() -> None:
    """Start the background scheduler with the weekly digest job.

    Runs every WEEKLY_DIGEST_DAY at WEEKLY_DIGEST_HOUR (UTC).
    """
    scheduler = get_scheduler()

    if scheduler.running:
        logger.warning("Scheduler already running")
        return

    scheduler.add_job(
        weekly_digest_job,
        trigger=CronTrigger(
            day_of_week=settings.WEEKLY_DIGEST_DAY,
            hour=settings.WEEKLY_DIGEST_HOUR,
            timezone="UTC",
        ),
        id="weekly_digest",
        name="Send weekly review digest",
        replace_existing=True,
    )

    scheduler.start()
    logger.info(
        f"Started digest scheduler ({settings.WEEKLY_DIGEST_DAY} "
        f"{settings.WEEKLY_DIGEST_HOUR:02d}:00 UTC)"
    )


def stop_scheduler() -> None:
    """Stop the background scheduler gracefully."""
    global _scheduler
    if _scheduler and _scheduler.running:
        _scheduler.shutdown(wait=False)
        logger.info("Stopped digest scheduler")
    _scheduler = None


def is_scheduler_running() -> bool:
    return _scheduler is not None and _scheduler.running
