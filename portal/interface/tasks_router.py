"""Task endpoints for the signed-in user."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse

from portal.core.errors import OwnershipError
from portal.core.events import EventBus
from portal.core.store import RecordNotFoundError, RecordStore
from portal.domain.base import PortalModel
from portal.domain.task import Task, TaskCreate, TaskStatus, TaskUpdate
from portal.interface.dependencies import get_current_user_email, get_event_bus, get_record_store
from portal.services import task_service


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tasks", tags=["tasks"])

NOT_FOUND = "Task not found"


class TaskPatch(TaskUpdate):
    """PATCH body: the task id plus the fields to change."""

    id: str


class TaskCompletion(PortalModel):
    id: str
    completed: bool | None = None


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)


@router.get("")
async def list_tasks(
    date: str | None = Query(default=None),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    task_status: TaskStatus | None = Query(default=None, alias="status"),
    linked_record_type: str | None = Query(default=None, alias="linkedRecordType"),
    linked_record_id: str | None = Query(default=None, alias="linkedRecordId"),
    include_completed: bool = Query(default=False, alias="includeCompleted"),
    user_email: str = Depends(get_current_user_email),
    store: RecordStore = Depends(get_record_store),
) -> JSONResponse:
    """List tasks by date, date range, linked record, or status."""
    tasks: list[Task]
    if date:
        tasks = await task_service.get_tasks_for_date(
            store=store, user_email=user_email, due_date=date, include_completed=include_completed
        )
    elif start_date and end_date:
        tasks = await task_service.get_tasks_for_date_range(
            store=store,
            user_email=user_email,
            start_date=start_date,
            end_date=end_date,
            include_completed=include_completed,
        )
    elif linked_record_type and linked_record_id:
        tasks = await task_service.get_tasks_for_linked_record(
            store=store, user_email=user_email, record_type=linked_record_type, record_id=linked_record_id
        )
    else:
        tasks = await task_service.list_tasks(
            store=store, user_email=user_email, status=task_status, include_completed=include_completed
        )
    return JSONResponse(content={"tasks": [t.to_api() for t in tasks]})


@router.post("")
async def create_task(
    body: TaskCreate,
    user_email: str = Depends(get_current_user_email),
    store: RecordStore = Depends(get_record_store),
    event_bus: EventBus = Depends(get_event_bus),
) -> JSONResponse:
    task = await task_service.create_task(store=store, user_email=user_email, data=body)
    event_bus.publish("task_created", task.to_api())
    return JSONResponse(status_code=status.HTTP_201_CREATED, content=task.to_api())


@router.patch("")
async def update_task(
    body: TaskPatch,
    user_email: str = Depends(get_current_user_email),
    store: RecordStore = Depends(get_record_store),
    event_bus: EventBus = Depends(get_event_bus),
) -> JSONResponse:
    changes = TaskUpdate.model_validate(body.model_dump(exclude={"id"}, exclude_unset=True))
    try:
        task = await task_service.update_task(store=store, user_email=user_email, task_id=body.id, changes=changes)
    except (RecordNotFoundError, OwnershipError) as e:
        raise _not_found() from e
    event_bus.publish("task_updated", task.to_api())
    return JSONResponse(content=task.to_api())


@router.delete("")
async def delete_task(
    task_id: str = Query(..., alias="id", min_length=1),
    user_email: str = Depends(get_current_user_email),
    store: RecordStore = Depends(get_record_store),
    event_bus: EventBus = Depends(get_event_bus),
) -> JSONResponse:
    try:
        await task_service.delete_task(store=store, user_email=user_email, task_id=task_id)
    except (RecordNotFoundError, OwnershipError) as e:
        raise _not_found() from e
    event_bus.publish("task_deleted", {"id": task_id})
    return JSONResponse(content={"success": True})


@router.post("/complete")
async def complete_task(
    body: TaskCompletion,
    user_email: str = Depends(get_current_user_email),
    store: RecordStore = Depends(get_record_store),
    event_bus: EventBus = Depends(get_event_bus),
) -> JSONResponse:
    """Complete a task, or reopen it when ``completed`` is false."""
    completed = body.completed is not False
    try:
        task = await task_service.set_task_completion(
            store=store, user_email=user_email, task_id=body.id, completed=completed
        )
    except (RecordNotFoundError, OwnershipError) as e:
        raise _not_found() from e
    event_bus.publish("task_completed" if completed else "task_updated", task.to_api())
    return JSONResponse(content=task.to_api())
