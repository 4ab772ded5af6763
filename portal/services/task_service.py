"""Task CRUD, date queries, and completion transitions."""

import logging
from datetime import UTC, datetime

from portal.core import schema
from portal.core.errors import OwnershipError
from portal.core.filters import sanitize_param
from portal.core.logging import span
from portal.core.store import RecordStore
from portal.domain.task import OPEN_STATUSES, Task, TaskCreate, TaskStatus, TaskUpdate


logger = logging.getLogger(__name__)

_TASK_SORT = "due_date,due_time,created_at"
_OPEN_FILTER = "(" + " || ".join(f'status = "{s}"' for s in OPEN_STATUSES) + ")"


def _owner_filter(user_email: str) -> str:
    return f'user_email = "{sanitize_param(user_email)}"'


def _to_tasks(records: list[dict]) -> list[Task]:
    return [Task.model_validate(r) for r in records]


async def list_tasks(
    *,
    store: RecordStore,
    user_email: str,
    status: TaskStatus | None = None,
    include_completed: bool = False,
) -> list[Task]:
    """List a user's tasks, optionally narrowed to one status.

    Completed tasks are excluded unless ``include_completed`` is set or
    ``status`` asks for them explicitly.
    """
    with span("task_service.list_tasks"):
        filter_query = _owner_filter(user_email)
        if status is not None:
            filter_query += f' && status = "{status}"'
        elif not include_completed:
            filter_query += f' && status != "{TaskStatus.COMPLETED}"'

        records = await store.list_all_records(collection=schema.TASKS, filter_query=filter_query, sort=_TASK_SORT)
        return _to_tasks(records)


async def get_tasks_for_date(
    *,
    store: RecordStore,
    user_email: str,
    due_date: str,
    include_completed: bool = False,
) -> list[Task]:
    """Tasks due on one calendar day (YYYY-MM-DD)."""
    with span("task_service.get_tasks_for_date"):
        filter_query = f'{_owner_filter(user_email)} && due_date = "{sanitize_param(due_date)}"'
        if not include_completed:
            filter_query += f' && status != "{TaskStatus.COMPLETED}"'

        records = await store.list_all_records(collection=schema.TASKS, filter_query=filter_query, sort=_TASK_SORT)
        return _to_tasks(records)


async def get_tasks_for_date_range(
    *,
    store: RecordStore,
    user_email: str,
    start_date: str,
    end_date: str,
    include_completed: bool = False,
) -> list[Task]:
    """Tasks due between two calendar days, inclusive."""
    with span("task_service.get_tasks_for_date_range"):
        filter_query = (
            f'{_owner_filter(user_email)} && due_date >= "{sanitize_param(start_date)}"'
            f' && due_date <= "{sanitize_param(end_date)}"'
        )
        if not include_completed:
            filter_query += f' && status != "{TaskStatus.COMPLETED}"'

        records = await store.list_all_records(collection=schema.TASKS, filter_query=filter_query, sort=_TASK_SORT)
        return _to_tasks(records)


async def get_overdue_tasks(*, store: RecordStore, user_email: str, today: str) -> list[Task]:
    """Open tasks due on or before ``today``."""
    with span("task_service.get_overdue_tasks"):
        filter_query = f'{_owner_filter(user_email)} && due_date <= "{sanitize_param(today)}" && {_OPEN_FILTER}'
        records = await store.list_all_records(collection=schema.TASKS, filter_query=filter_query, sort=_TASK_SORT)
        return _to_tasks(records)


async def count_open_tasks(*, store: RecordStore, user_email: str) -> int:
    """Number of pending or in-progress tasks for a user."""
    records = await store.list_all_records(
        collection=schema.TASKS, filter_query=f"{_owner_filter(user_email)} && {_OPEN_FILTER}"
    )
    return len(records)


async def get_owned_task(*, store: RecordStore, user_email: str, task_id: str) -> Task:
    """Fetch a task and verify the caller owns it.

    Raises:
        RecordNotFoundError: If the task does not exist
        OwnershipError: If the task belongs to someone else
    """
    task = Task.model_validate(await store.get_record(collection=schema.TASKS, record_id=task_id))
    if task.user_email != user_email:
        logger.warning("Task ownership mismatch", extra={"task_id": task_id, "caller": user_email})
        msg = f"Task {task_id} does not belong to {user_email}"
        raise OwnershipError(msg)
    return task


async def create_task(*, store: RecordStore, user_email: str, data: TaskCreate) -> Task:
    """Create a task owned by ``user_email``."""
    with span("task_service.create_task"):
        payload = {**data.model_dump(mode="json"), "user_email": user_email}
        if data.status == TaskStatus.COMPLETED:
            payload["completed_at"] = datetime.now(UTC).isoformat()

        record = await store.create_record(collection=schema.TASKS, data=payload)
        logger.info("Created task", extra={"task_id": record["id"], "user_email": user_email})
        return Task.model_validate(record)


async def update_task(*, store: RecordStore, user_email: str, task_id: str, changes: TaskUpdate) -> Task:
    """Apply a partial update to a task the caller owns.

    A status change into or out of ``completed`` stamps or clears ``completed_at``.
    """
    with span("task_service.update_task"):
        current = await get_owned_task(store=store, user_email=user_email, task_id=task_id)

        payload = changes.model_dump(mode="json", exclude_unset=True)
        new_status = payload.get("status")
        if new_status == TaskStatus.COMPLETED and current.status != TaskStatus.COMPLETED:
            payload["completed_at"] = datetime.now(UTC).isoformat()
        elif new_status is not None and new_status != TaskStatus.COMPLETED:
            payload["completed_at"] = None

        if not payload:
            return current

        record = await store.update_record(collection=schema.TASKS, record_id=task_id, data=payload)
        logger.info("Updated task", extra={"task_id": task_id, "fields": sorted(payload)})
        return Task.model_validate(record)


async def set_task_completion(*, store: RecordStore, user_email: str, task_id: str, completed: bool) -> Task:
    """Complete a task, or reopen it to pending when ``completed`` is False."""
    with span("task_service.set_task_completion"):
        await get_owned_task(store=store, user_email=user_email, task_id=task_id)

        if completed:
            payload = {"status": str(TaskStatus.COMPLETED), "completed_at": datetime.now(UTC).isoformat()}
        else:
            payload = {"status": str(TaskStatus.PENDING), "completed_at": None}

        record = await store.update_record(collection=schema.TASKS, record_id=task_id, data=payload)
        logger.info("Set task completion", extra={"task_id": task_id, "completed": completed})
        return Task.model_validate(record)


async def delete_task(*, store: RecordStore, user_email: str, task_id: str) -> None:
    """Delete a task the caller owns."""
    with span("task_service.delete_task"):
        await get_owned_task(store=store, user_email=user_email, task_id=task_id)
        await store.delete_record(collection=schema.TASKS, record_id=task_id)
        logger.info("Deleted task", extra={"task_id": task_id, "user_email": user_email})


async def get_tasks_for_linked_record(
    *, store: RecordStore, user_email: str, record_type: str, record_id: str
) -> list[Task]:
    """A user's tasks that cross-reference a request record."""
    records = await store.list_all_records(
        collection=schema.TASKS,
        filter_query=(
            f'{_owner_filter(user_email)} && linked_record_type = "{sanitize_param(record_type)}" && linked_record_id = "{sanitize_param(record_id)}"'
        ),
        sort=_TASK_SORT,
    )
    return _to_tasks(records)
