"""Daily expansion of recurring reminders into dated tasks.

The job is stateless per run. For each active reminder whose cadence matches
today it creates one task, unless a task generated from that reminder already
exists for today, so re-running it on the same day creates nothing new.
"""

import logging
from datetime import datetime

from pydantic import Field

from portal.core import schema
from portal.core.clock import sunday_based_weekday
from portal.core.events import EventBus
from portal.core.logging import log_with_context, span
from portal.core.store import RecordStore
from portal.domain.base import PortalModel
from portal.domain.reminder import RecurringReminder
from portal.services import reminder_service, task_service


logger = logging.getLogger(__name__)


class GeneratedTask(PortalModel):
    id: str
    title: str
    user_email: str


class ReminderFailure(PortalModel):
    reminder_id: str
    error: str


class GenerationSummary(PortalModel):
    """Outcome of one generator run, returned verbatim to the scheduler."""

    success: bool = True
    date: str
    day_of_week: int
    total_reminders: int
    tasks_created: int = 0
    tasks: list[GeneratedTask] = Field(default_factory=list)
    errors: list[ReminderFailure] = Field(default_factory=list)


async def _expand_reminder(
    *, store: RecordStore, reminder: RecurringReminder, today: str, now: datetime
) -> GeneratedTask | None:
    """Create today's task for one reminder, or return None if it already exists."""
    existing = await task_service.get_tasks_for_date(
        store=store,
        user_email=reminder.user_email,
        due_date=today,
        include_completed=True,
    )
    if any(task.recurring_reminder_id == reminder.id for task in existing):
        logger.debug("Task already generated", extra={"reminder_id": reminder.id, "date": today})
        return None

    record = await store.create_record(
        collection=schema.TASKS,
        data={
            **reminder_service.reminder_task_fields(reminder),
            "due_date": today,
            "status": "pending",
        },
    )

    try:
        await reminder_service.mark_generated(store=store, reminder_id=reminder.id, generated_at=now)
    except Exception as e:
        logger.warning(
            "Failed to update last_generated_at",
            extra={"reminder_id": reminder.id, "error": str(e)},
        )

    return GeneratedTask(id=record["id"], title=record["title"], user_email=record["user_email"])


async def generate_daily_tasks(
    *,
    store: RecordStore,
    now: datetime,
    event_bus: EventBus | None = None,
) -> GenerationSummary:
    """Expand today's reminders into tasks.

    Args:
        store: Record store
        now: Local "now"; its calendar date and weekday select the reminders
        event_bus: Optional bus notified once per created task

    Returns:
        Summary of created tasks and per-reminder errors

    Raises:
        DatabaseError: If the initial reminder fetch fails
    """
    with span("task_generator.generate_daily_tasks"):
        today = now.date().isoformat()
        day_of_week = sunday_based_weekday(now.date())

        daily = await reminder_service.get_daily_reminders(store=store)
        weekly = await reminder_service.get_weekly_reminders_for_day(store=store, day_of_week=day_of_week)
        reminders = [*daily, *weekly]

        summary = GenerationSummary(date=today, day_of_week=day_of_week, total_reminders=len(reminders))

        for reminder in reminders:
            try:
                created = await _expand_reminder(store=store, reminder=reminder, today=today, now=now)
            except Exception as e:
                log_with_context(
                    logger, "error", "Failed to generate task", reminder_id=reminder.id, error=str(e)
                )
                summary.errors.append(ReminderFailure(reminder_id=reminder.id, error=str(e)))
                continue

            if created is None:
                continue

            summary.tasks.append(created)
            if event_bus is not None:
                event_bus.publish("task_created", created.to_api())

        summary.tasks_created = len(summary.tasks)
        log_with_context(
            logger,
            "info",
            "Task generation complete",
            date=today,
            day_of_week=day_of_week,
            total_reminders=summary.total_reminders,
            tasks_created=summary.tasks_created,
            errors=len(summary.errors),
        )
        return summary
