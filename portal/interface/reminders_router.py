"""Recurring reminder endpoints for the signed-in user."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse

from portal.core.errors import OwnershipError
from portal.core.store import RecordNotFoundError, RecordStore
from portal.domain.reminder import ReminderCreate, ReminderUpdate
from portal.interface.dependencies import get_current_user_email, get_record_store
from portal.services import reminder_service
from portal.services.reminder_service import RemindersAlreadyExistError


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/recurring-reminders", tags=["reminders"])

NOT_FOUND = "Reminder not found"


class ReminderPatch(ReminderUpdate):
    """PATCH body: the reminder id plus the fields to change."""

    id: str


@router.get("")
async def list_reminders(
    active_only: bool = Query(default=True, alias="activeOnly"),
    user_email: str = Depends(get_current_user_email),
    store: RecordStore = Depends(get_record_store),
) -> JSONResponse:
    reminders = await reminder_service.list_reminders(store=store, user_email=user_email, active_only=active_only)
    return JSONResponse(content={"reminders": [r.to_api() for r in reminders]})


@router.post("")
async def create_reminder(
    body: ReminderCreate,
    user_email: str = Depends(get_current_user_email),
    store: RecordStore = Depends(get_record_store),
) -> JSONResponse:
    reminder = await reminder_service.create_reminder(store=store, user_email=user_email, data=body)
    return JSONResponse(status_code=status.HTTP_201_CREATED, content=reminder.to_api())


@router.patch("")
async def update_reminder(
    body: ReminderPatch,
    user_email: str = Depends(get_current_user_email),
    store: RecordStore = Depends(get_record_store),
) -> JSONResponse:
    changes = ReminderUpdate.model_validate(body.model_dump(exclude={"id"}, exclude_unset=True))
    try:
        reminder = await reminder_service.update_reminder(
            store=store, user_email=user_email, reminder_id=body.id, changes=changes
        )
    except (RecordNotFoundError, OwnershipError) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return JSONResponse(content=reminder.to_api())


@router.delete("")
async def delete_reminder(
    reminder_id: str = Query(..., alias="id", min_length=1),
    user_email: str = Depends(get_current_user_email),
    store: RecordStore = Depends(get_record_store),
) -> JSONResponse:
    try:
        await reminder_service.delete_reminder(store=store, user_email=user_email, reminder_id=reminder_id)
    except (RecordNotFoundError, OwnershipError) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND) from e
    return JSONResponse(content={"success": True})


@router.post("/seed")
async def seed_reminders(
    user_email: str = Depends(get_current_user_email),
    store: RecordStore = Depends(get_record_store),
) -> JSONResponse:
    """Create the standard communications reminders for a new user."""
    try:
        reminders = await reminder_service.seed_default_reminders(store=store, user_email=user_email)
    except RemindersAlreadyExistError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return JSONResponse(
        content={"success": True, "count": len(reminders), "reminders": [r.to_api() for r in reminders]}
    )
