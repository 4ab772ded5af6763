"""Unit tests for the daily task generator."""

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from portal.core import schema
from portal.core.events import EventBus
from portal.domain.reminder import ReminderCreate, ReminderFrequency, TaskPriority
from portal.services import reminder_service, task_generator
from tests.unit.conftest import OTHER_EMAIL, USER_EMAIL
from tests.unit.mocks import InMemoryRecordStore


# Monday 10 March 2025, 05:00 local
MONDAY = datetime(2025, 3, 10, 5, 0, tzinfo=ZoneInfo("America/New_York"))


async def _add_reminder(store: InMemoryRecordStore, user_email: str = USER_EMAIL, **fields) -> str:
    data = ReminderCreate(**{"category": "misc", "frequency": ReminderFrequency.DAILY, **fields})
    reminder = await reminder_service.create_reminder(store=store, user_email=user_email, data=data)
    return reminder.id


@pytest.mark.unit
class TestGenerateDailyTasks:
    """Tests for generate_daily_tasks."""

    async def test_monday_scenario(self, store: InMemoryRecordStore) -> None:
        """Daily reminders and Monday weekly reminders expand; other days do not."""
        morning = await _add_reminder(store, title="Morning Post", time_of_day="09:00:00")
        monday = await _add_reminder(
            store,
            title="Monday Planning",
            frequency=ReminderFrequency.WEEKLY,
            day_of_week=1,
            priority=TaskPriority.HIGH,
        )
        await _add_reminder(store, title="Saturday Screens", frequency=ReminderFrequency.WEEKLY, day_of_week=6)

        summary = await task_generator.generate_daily_tasks(store=store, now=MONDAY)

        assert summary.success is True
        assert summary.date == "2025-03-10"
        assert summary.day_of_week == 1
        assert summary.total_reminders == 2
        assert summary.tasks_created == 2
        assert summary.errors == []

        tasks = store.all(schema.TASKS)
        assert {t["recurring_reminder_id"] for t in tasks} == {morning, monday}
        morning_task = next(t for t in tasks if t["recurring_reminder_id"] == morning)
        assert morning_task["due_date"] == "2025-03-10"
        assert morning_task["due_time"] == "09:00:00"
        assert morning_task["status"] == "pending"
        assert morning_task["user_email"] == USER_EMAIL
        monday_task = next(t for t in tasks if t["recurring_reminder_id"] == monday)
        assert monday_task["priority"] == "high"

    async def test_second_run_same_day_creates_nothing(self, store: InMemoryRecordStore) -> None:
        await _add_reminder(store, title="Morning Post")

        first = await task_generator.generate_daily_tasks(store=store, now=MONDAY)
        second = await task_generator.generate_daily_tasks(store=store, now=MONDAY)

        assert first.tasks_created == 1
        assert second.tasks_created == 0
        assert second.total_reminders == 1
        assert len(store.all(schema.TASKS)) == 1

    async def test_completed_task_is_not_regenerated(self, store: InMemoryRecordStore) -> None:
        await _add_reminder(store, title="Morning Post")
        await task_generator.generate_daily_tasks(store=store, now=MONDAY)
        task_id = store.all(schema.TASKS)[0]["id"]
        await store.update_record(collection=schema.TASKS, record_id=task_id, data={"status": "completed"})

        rerun = await task_generator.generate_daily_tasks(store=store, now=MONDAY)

        assert rerun.tasks_created == 0
        assert len(store.all(schema.TASKS)) == 1

    async def test_inactive_reminders_are_skipped(self, store: InMemoryRecordStore) -> None:
        await _add_reminder(store, title="Paused", is_active=False)

        summary = await task_generator.generate_daily_tasks(store=store, now=MONDAY)

        assert summary.total_reminders == 0
        assert store.all(schema.TASKS) == []

    async def test_each_owner_gets_their_own_task(self, store: InMemoryRecordStore) -> None:
        await _add_reminder(store, USER_EMAIL, title="Morning Post")
        await _add_reminder(store, OTHER_EMAIL, title="Morning Post")

        summary = await task_generator.generate_daily_tasks(store=store, now=MONDAY)

        assert summary.tasks_created == 2
        assert {t.user_email for t in summary.tasks} == {USER_EMAIL, OTHER_EMAIL}

    async def test_one_failure_does_not_stop_the_run(self, store: InMemoryRecordStore) -> None:
        failing = await _add_reminder(store, title="First")
        await _add_reminder(store, title="Second")
        created: list[str] = []
        original_create = store.create_record

        async def flaky_create(*, collection: str, data: dict) -> dict:
            if collection == schema.TASKS and data["title"] == "First":
                raise RuntimeError("insert failed")
            record = await original_create(collection=collection, data=data)
            created.append(record["title"])
            return record

        store.create_record = flaky_create  # type: ignore[method-assign]

        summary = await task_generator.generate_daily_tasks(store=store, now=MONDAY)

        assert summary.tasks_created == 1
        assert created == ["Second"]
        assert len(summary.errors) == 1
        assert summary.errors[0].reminder_id == failing
        assert summary.errors[0].error == "insert failed"

    async def test_last_generated_at_failure_still_counts_task(self, store: InMemoryRecordStore) -> None:
        await _add_reminder(store, title="Morning Post")
        store.fail_on.add(("update", schema.REMINDERS))

        summary = await task_generator.generate_daily_tasks(store=store, now=MONDAY)

        assert summary.tasks_created == 1
        assert summary.errors == []

    async def test_last_generated_at_is_stamped(self, store: InMemoryRecordStore) -> None:
        reminder_id = await _add_reminder(store, title="Morning Post")

        await task_generator.generate_daily_tasks(store=store, now=MONDAY)

        reminder = await store.get_record(collection=schema.REMINDERS, record_id=reminder_id)
        assert reminder["last_generated_at"] == MONDAY.isoformat()

    async def test_publishes_task_created_events(self, store: InMemoryRecordStore, event_bus: EventBus) -> None:
        await _add_reminder(store, title="Morning Post")
        queue = event_bus.subscribe()

        await task_generator.generate_daily_tasks(store=store, now=MONDAY, event_bus=event_bus)

        event = queue.get_nowait()
        assert event.type == "task_created"
        assert event.data["title"] == "Morning Post"
        assert event.data["userEmail"] == USER_EMAIL

    async def test_reminder_fetch_failure_propagates(self, store: InMemoryRecordStore) -> None:
        store.fail_on.add(("list", schema.REMINDERS))

        with pytest.raises(Exception, match="simulated failure"):
            await task_generator.generate_daily_tasks(store=store, now=MONDAY)
