"""Background job that marks finished hangouts as completed."""
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlmodel import Session

from dogcal.core.config import settings
from dogcal.core.database import engine
from dogcal.scheduling.hangouts import complete_past_hangouts

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


def completion_job():
    """Sweep ASSIGNED hangouts whose end time has passed."""
    try:
        with Session(engine) as session:
            completed = complete_past_hangouts(session)
            if completed:
                logger.info(f"Completion sweep marked {completed} hangout(s) completed")
    except Exception as e:
        # Keep the job scheduled; the next run retries
        logger.error(f"Completion sweep failed: {e}")


def start_scheduler():
    """Start the completion sweep."""
    scheduler.add_job(
        completion_job,
        trigger=IntervalTrigger(minutes=settings.completion_sweep_interval_minutes),
        id="completion_sweep",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        f"Scheduler started, sweeping every {settings.completion_sweep_interval_minutes} minutes"
    )


def shutdown_scheduler():
    """Graceful shutdown."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler shut down")
