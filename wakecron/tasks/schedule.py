"""
In-process scheduling with APScheduler.

Every row of the schedule table becomes one cron job on an
AsyncIOScheduler sharing the web server's event loop.
"""
import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from wakecron.config import Settings, get_settings
from wakecron.schemas import ScheduledTrigger
from wakecron.tasks.jobs import build_schedule, run_trigger


logger = logging.getLogger(__name__)

# Late fires inside this window still run; older ones are dropped.
MISFIRE_GRACE_SECONDS = 60

_scheduler: Optional[AsyncIOScheduler] = None


def cron_trigger(trigger: ScheduledTrigger, timezone: str = "UTC") -> CronTrigger:
    """Build the APScheduler trigger for a table row."""
    return CronTrigger.from_crontab(trigger.cron, timezone=timezone)


def create_scheduler(settings: Optional[Settings] = None) -> AsyncIOScheduler:
    """
    Create and configure the scheduler.

    Args:
        settings: Service settings (cached settings if None)

    Returns:
        Configured, not yet started scheduler
    """
    settings = settings or get_settings()
    scheduler = AsyncIOScheduler(timezone=settings.SCHEDULER_TIMEZONE)

    for trigger in build_schedule(settings):
        scheduler.add_job(
            run_trigger,
            cron_trigger(trigger, settings.SCHEDULER_TIMEZONE),
            args=[trigger, settings],
            id=trigger.name,
            name=trigger.name,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
            misfire_grace_time=MISFIRE_GRACE_SECONDS,
        )

    return scheduler


def start_scheduler(settings: Optional[Settings] = None) -> Optional[AsyncIOScheduler]:
    """
    Start the background scheduler.

    Must be called from inside the running event loop (the app lifespan).

    Returns:
        Running scheduler instance, or None when disabled by settings
    """
    global _scheduler

    settings = settings or get_settings()

    if not settings.SCHEDULER_ENABLED:
        logger.info("⏸️ [CRON] Scheduler disabled (SCHEDULER_ENABLED=false)")
        return None

    if _scheduler is not None:
        logger.warning("⚠️ [CRON] Scheduler already running")
        return _scheduler

    _scheduler = create_scheduler(settings)
    _scheduler.start()
    logger.info("✅ [CRON] Scheduler started with %d triggers", len(_scheduler.get_jobs()))

    for job in _scheduler.get_jobs():
        logger.info("   - %s: %s", job.name, job.trigger)

    return _scheduler


def stop_scheduler(scheduler: Optional[AsyncIOScheduler] = None) -> None:
    """
    Stop the background scheduler.

    Args:
        scheduler: Scheduler to stop (uses global if None)
    """
    global _scheduler

    target = scheduler or _scheduler

    if target:
        target.shutdown(wait=False)
        logger.info("👋 [CRON] Scheduler stopped")
        if target is _scheduler:
            _scheduler = None


def get_scheduler() -> Optional[AsyncIOScheduler]:
    """Get the current scheduler instance."""
    return _scheduler
