"""AdOrchestrator — Scheduler Jobs.

APScheduler interval job that pushes pending conversion events to
Google Ads for every active CAPI config.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlmodel import Session

from adorchestrator.config import settings
from adorchestrator.database import engine
from adorchestrator.services.conversion_sync import sync_pending_conversions
from adorchestrator.core.logging import get_logger

logger = get_logger("scheduler")

scheduler = AsyncIOScheduler()


async def conversion_sync_job():
    """Run one conversion sync pass."""
    logger.info("Scheduled conversion sync starting...")
    try:
        with Session(engine) as session:
            result = await sync_pending_conversions(session)
        logger.info(f"Scheduled conversion sync finished. {result.message}")
    except Exception as e:
        logger.error(f"Scheduled conversion sync failed: {e}")


def start_scheduler():
    """Configure and start the scheduler."""
    if not settings.scheduler_enabled:
        logger.info("Scheduler disabled via config")
        return

    scheduler.add_job(
        conversion_sync_job,
        "interval",
        minutes=settings.conversion_sync_minutes,
        id="conversion_sync",
        replace_existing=True,
        misfire_grace_time=300,
    )
    scheduler.start()
    logger.info(
        f"Scheduler started. Conversion sync every {settings.conversion_sync_minutes} min"
    )


def stop_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
