"""Recurring reminder CRUD and cadence queries."""

import logging
from datetime import datetime
from typing import Any

from portal.core import schema
from portal.core.errors import OwnershipError
from portal.core.filters import sanitize_param
from portal.core.logging import span
from portal.core.store import RecordStore
from portal.domain.reminder import (
    RecurringReminder,
    ReminderCreate,
    ReminderFrequency,
    ReminderUpdate,
    TaskPriority,
)


logger = logging.getLogger(__name__)


class RemindersAlreadyExistError(ValueError):
    """Raised when seeding defaults for a user who already has reminders."""


DEFAULT_REMINDERS: list[ReminderCreate] = [
    ReminderCreate(
        title="Social Media - Morning Post",
        description="Post morning content to parish social media accounts",
        category="misc",
        frequency=ReminderFrequency.DAILY,
        time_of_day="09:00:00",
        priority=TaskPriority.NORMAL,
    ),
    ReminderCreate(
        title="Social Media - Afternoon Post + Stories",
        description="Post afternoon content and stories to parish social media accounts",
        category="misc",
        frequency=ReminderFrequency.DAILY,
        time_of_day="14:00:00",
        priority=TaskPriority.NORMAL,
    ),
    ReminderCreate(
        title="EMAIL BLAST DEADLINE",
        description="Finalize and schedule the weekly parish email blast",
        category="announcement",
        frequency=ReminderFrequency.WEEKLY,
        day_of_week=3,
        time_of_day="11:30:00",
        priority=TaskPriority.URGENT,
    ),
    ReminderCreate(
        title="Pre-Mass Announcement Screens",
        description="Update the pre-Mass announcement slides for the weekend",
        category="av",
        frequency=ReminderFrequency.WEEKLY,
        day_of_week=6,
        time_of_day="08:00:00",
        priority=TaskPriority.HIGH,
    ),
    ReminderCreate(
        title="Print 450 Bulletins",
        description="Print 450 bulletins for the weekend Masses",
        category="misc",
        frequency=ReminderFrequency.WEEKLY,
        day_of_week=6,
        time_of_day="09:00:00",
        priority=TaskPriority.HIGH,
    ),
    ReminderCreate(
        title='Create "Pregame" Video',
        description="Produce the pre-Mass video for the weekend",
        category="av",
        frequency=ReminderFrequency.WEEKLY,
        day_of_week=6,
        time_of_day="10:00:00",
        priority=TaskPriority.HIGH,
    ),
    ReminderCreate(
        title='Record/Edit/Release "5 AND THRIVE"',
        description="Record, edit, and publish the weekly 5 AND THRIVE video",
        category="av",
        frequency=ReminderFrequency.WEEKLY,
        day_of_week=0,
        time_of_day="14:00:00",
        priority=TaskPriority.HIGH,
    ),
]


def _owner_filter(user_email: str) -> str:
    return f'user_email = "{sanitize_param(user_email)}"'


async def list_reminders(
    *,
    store: RecordStore,
    user_email: str,
    active_only: bool = True,
) -> list[RecurringReminder]:
    """List a user's reminders, newest first.

    Args:
        store: Record store
        user_email: Owner whose reminders are listed
        active_only: Exclude deactivated reminders (default True)

    Returns:
        The user's reminders
    """
    with span("reminder_service.list_reminders"):
        filter_query = _owner_filter(user_email)
        if active_only:
            filter_query += " && is_active = true"

        records = await store.list_all_records(
            collection=schema.REMINDERS, filter_query=filter_query, sort="-created_at"
        )
        return [RecurringReminder.model_validate(r) for r in records]


async def get_owned_reminder(*, store: RecordStore, user_email: str, reminder_id: str) -> RecurringReminder:
    """Fetch a reminder and verify the caller owns it.

    Raises:
        RecordNotFoundError: If the reminder does not exist
        OwnershipError: If the reminder belongs to someone else
    """
    record = await store.get_record(collection=schema.REMINDERS, record_id=reminder_id)
    reminder = RecurringReminder.model_validate(record)
    if reminder.user_email != user_email:
        logger.warning(
            "Reminder ownership mismatch",
            extra={"reminder_id": reminder_id, "caller": user_email},
        )
        msg = f"Reminder {reminder_id} does not belong to {user_email}"
        raise OwnershipError(msg)
    return reminder


async def create_reminder(*, store: RecordStore, user_email: str, data: ReminderCreate) -> RecurringReminder:
    """Create a reminder owned by ``user_email``."""
    with span("reminder_service.create_reminder"):
        record = await store.create_record(
            collection=schema.REMINDERS,
            data={**data.model_dump(mode="json"), "user_email": user_email},
        )
        logger.info("Created reminder", extra={"reminder_id": record["id"], "user_email": user_email})
        return RecurringReminder.model_validate(record)


async def update_reminder(
    *,
    store: RecordStore,
    user_email: str,
    reminder_id: str,
    changes: ReminderUpdate,
) -> RecurringReminder:
    """Apply a partial update to a reminder the caller owns.

    Raises:
        RecordNotFoundError: If the reminder does not exist
        OwnershipError: If the reminder belongs to someone else
        ValueError: If the update would leave a weekly reminder without a weekday
    """
    with span("reminder_service.update_reminder"):
        current = await get_owned_reminder(store=store, user_email=user_email, reminder_id=reminder_id)

        payload = changes.model_dump(mode="json", exclude_unset=True)
        frequency = payload.get("frequency", current.frequency)
        day_of_week = payload.get("day_of_week", current.day_of_week)
        if frequency == ReminderFrequency.WEEKLY and day_of_week is None:
            msg = "dayOfWeek is required for weekly reminders"
            raise ValueError(msg)

        if not payload:
            return current

        record = await store.update_record(collection=schema.REMINDERS, record_id=reminder_id, data=payload)
        logger.info("Updated reminder", extra={"reminder_id": reminder_id, "fields": sorted(payload)})
        return RecurringReminder.model_validate(record)


async def delete_reminder(*, store: RecordStore, user_email: str, reminder_id: str) -> None:
    """Delete a reminder the caller owns. Tasks it generated are kept."""
    with span("reminder_service.delete_reminder"):
        await get_owned_reminder(store=store, user_email=user_email, reminder_id=reminder_id)
        await store.delete_record(collection=schema.REMINDERS, record_id=reminder_id)
        logger.info("Deleted reminder", extra={"reminder_id": reminder_id, "user_email": user_email})


async def get_daily_reminders(*, store: RecordStore) -> list[RecurringReminder]:
    """All active reminders with daily cadence, across every user."""
    with span("reminder_service.get_daily_reminders"):
        records = await store.list_all_records(
            collection=schema.REMINDERS,
            filter_query=f'is_active = true && frequency = "{ReminderFrequency.DAILY}"',
            sort="created_at",
        )
        return [RecurringReminder.model_validate(r) for r in records]


async def get_weekly_reminders_for_day(*, store: RecordStore, day_of_week: int) -> list[RecurringReminder]:
    """All active weekly reminders that fire on ``day_of_week`` (0=Sunday)."""
    with span("reminder_service.get_weekly_reminders_for_day"):
        records = await store.list_all_records(
            collection=schema.REMINDERS,
            filter_query=(
                f'is_active = true && frequency = "{ReminderFrequency.WEEKLY}" && day_of_week = "{day_of_week}"'
            ),
            sort="created_at",
        )
        return [RecurringReminder.model_validate(r) for r in records]


async def mark_generated(*, store: RecordStore, reminder_id: str, generated_at: datetime) -> None:
    """Record when a reminder last produced a task."""
    await store.update_record(
        collection=schema.REMINDERS,
        record_id=reminder_id,
        data={"last_generated_at": generated_at.isoformat()},
    )


async def seed_default_reminders(*, store: RecordStore, user_email: str) -> list[RecurringReminder]:
    """Create the standard communications reminders for a new user.

    Args:
        store: Record store
        user_email: User to seed

    Returns:
        The created reminders

    Raises:
        RemindersAlreadyExistError: If the user already has any reminder, active or not
    """
    with span("reminder_service.seed_default_reminders"):
        existing = await store.get_first_record(collection=schema.REMINDERS, filter_query=_owner_filter(user_email))
        if existing is not None:
            msg = "User already has reminders. Delete existing reminders first."
            raise RemindersAlreadyExistError(msg)

        created: list[RecurringReminder] = []
        for template in DEFAULT_REMINDERS:
            created.append(await create_reminder(store=store, user_email=user_email, data=template))

        logger.info("Seeded default reminders", extra={"user_email": user_email, "count": len(created)})
        return created


def reminder_task_fields(reminder: RecurringReminder) -> dict[str, Any]:
    """Task fields copied from a reminder when it is expanded."""
    return {
        "user_email": reminder.user_email,
        "title": reminder.title,
        "description": reminder.description,
        "category": reminder.category,
        "priority": str(reminder.priority or TaskPriority.NORMAL),
        "due_time": reminder.time_of_day,
        "recurring_reminder_id": reminder.id,
    }
