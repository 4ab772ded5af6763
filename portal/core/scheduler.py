"""In-process scheduling of the daily batch jobs."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from portal.core.clock import local_now
from portal.core.config import settings
from portal.core.scheduler_tracker import run_tracked_job
from portal.core.store import get_record_store
from portal.interface.graph_mailer import get_mailer
from portal.services import digest_service, task_generator


logger = logging.getLogger(__name__)

GENERATE_TASKS_JOB = "generate_tasks"
DAILY_DIGEST_JOB = "daily_digest"
JOB_NAMES = (GENERATE_TASKS_JOB, DAILY_DIGEST_JOB)

# Global scheduler instance
scheduler = AsyncIOScheduler(timezone=settings.timezone)


async def run_generate_tasks() -> None:
    await task_generator.generate_daily_tasks(store=get_record_store(), now=local_now())


async def run_daily_digest() -> None:
    await digest_service.send_daily_digests(store=get_record_store(), mailer=get_mailer(), now=local_now())


def start_scheduler() -> None:
    """Register the batch jobs and start the scheduler.

    Called from the application lifespan when ``enable_scheduler`` is set.
    """
    logger.info("Starting scheduler", extra={"timezone": settings.timezone})

    scheduler.add_job(
        run_tracked_job,
        args=[run_generate_tasks, GENERATE_TASKS_JOB],
        trigger=CronTrigger(hour=settings.generate_tasks_hour, minute=0, timezone=settings.timezone),
        id=GENERATE_TASKS_JOB,
        name="Generate Daily Tasks",
        replace_existing=True,
    )
    logger.info(f"Scheduled task generation: daily at {settings.generate_tasks_hour}:00")

    scheduler.add_job(
        run_tracked_job,
        args=[run_daily_digest, DAILY_DIGEST_JOB],
        trigger=CronTrigger(
            hour=settings.daily_digest_hour,
            minute=settings.daily_digest_minute,
            timezone=settings.timezone,
        ),
        id=DAILY_DIGEST_JOB,
        name="Send Daily Digests",
        replace_existing=True,
    )
    logger.info(f"Scheduled daily digest: daily at {settings.daily_digest_hour}:{settings.daily_digest_minute:02d}")

    scheduler.start()
    logger.info("Scheduler started successfully")


def stop_scheduler() -> None:
    """Stop the scheduler if it is running."""
    if scheduler.running:
        logger.info("Stopping scheduler")
        scheduler.shutdown(wait=True)
        logger.info("Scheduler stopped")
