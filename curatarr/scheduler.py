from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from datetime import datetime, timedelta
from typing import Optional
import logging

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()

RETENTION_JOB_ID = "curatarr_log_retention"


def get_next_run_time() -> Optional[datetime]:
    """Get the next scheduled retention run time."""
    job = scheduler.get_job(RETENTION_JOB_ID)
    return job.next_run_time if job else None


def switch_running() -> bool:
    """Whether a media server switch holds the gate or is in flight."""
    from curatarr.progress import switch_progress
    from curatarr.services.media_server_switch import switch_lock

    return switch_lock.locked() or switch_progress.is_running


async def prune_collection_logs(session_factory=None, now: Optional[datetime] = None) -> int:
    """Delete collection logs older than their collection's retention period."""
    from curatarr.database import async_session
    from curatarr.models import Collection, CollectionLog
    from sqlalchemy import select, delete

    # Collection logs belong to the switch transaction while one is running
    if switch_running():
        logger.info("Skipping log retention: media server switch in progress")
        return 0

    session_factory = session_factory or async_session
    now = now or datetime.now()
    removed = 0

    async with session_factory() as session:
        result = await session.execute(
            select(Collection.id, Collection.keep_logs_for_months)
        )
        for collection_id, months in result.all():
            if not months or months <= 0:
                continue
            cutoff = now - timedelta(days=30 * months)
            deleted = await session.execute(
                delete(CollectionLog).where(
                    CollectionLog.collection_id == collection_id,
                    CollectionLog.timestamp < cutoff
                )
            )
            removed += deleted.rowcount or 0

        if switch_running():
            await session.rollback()
            logger.info("Discarding log retention run: media server switch started")
            return 0

        await session.commit()

    if removed > 0:
        logger.info(f"Removed {removed} expired collection logs")
    return removed


def schedule_log_retention(hour: int, minute: int):
    """(Re)schedule the daily log retention job."""
    trigger = CronTrigger(hour=hour, minute=minute)
    scheduler.add_job(
        prune_collection_logs,
        trigger,
        id=RETENTION_JOB_ID,
        replace_existing=True
    )
    logger.info(f"Scheduled log retention daily at {hour:02d}:{minute:02d}")


def start_scheduler():
    """Start the scheduler."""
    if not scheduler.running:
        scheduler.start()
        logger.info("Scheduler started")


def stop_scheduler():
    """Stop the scheduler."""
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Scheduler stopped")
