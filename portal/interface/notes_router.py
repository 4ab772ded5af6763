"""Command-center note endpoints for the signed-in user."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from pydantic import Field

from portal.core.errors import OwnershipError
from portal.core.store import RecordNotFoundError, RecordStore
from portal.domain.base import PortalModel
from portal.domain.note import NoteCreate, NoteUpdate
from portal.interface.dependencies import get_current_user_email, get_record_store
from portal.services import note_service


router = APIRouter(prefix="/api/notes", tags=["notes"])

NOT_FOUND = "Note not found"


class NotePatch(NoteUpdate):
    id: str = Field(..., min_length=1)


class NoteRef(PortalModel):
    id: str = Field(..., min_length=1)


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)


@router.get("")
async def list_notes(
    pinned_only: bool = Query(default=False, alias="pinnedOnly"),
    user_email: str = Depends(get_current_user_email),
    store: RecordStore = Depends(get_record_store),
) -> JSONResponse:
    """List the caller's notes, pinned first."""
    notes = await note_service.list_notes(store=store, user_email=user_email, pinned_only=pinned_only)
    return JSONResponse(content={"success": True, "notes": [n.to_api() for n in notes]})


@router.post("")
async def create_note(
    body: NoteCreate,
    user_email: str = Depends(get_current_user_email),
    store: RecordStore = Depends(get_record_store),
) -> JSONResponse:
    note = await note_service.create_note(store=store, user_email=user_email, data=body)
    return JSONResponse(status_code=status.HTTP_201_CREATED, content={"success": True, "note": note.to_api()})


@router.patch("")
async def update_note(
    body: NotePatch,
    user_email: str = Depends(get_current_user_email),
    store: RecordStore = Depends(get_record_store),
) -> JSONResponse:
    changes = NoteUpdate.model_validate(body.model_dump(exclude={"id"}, exclude_unset=True))
    try:
        note = await note_service.update_note(store=store, user_email=user_email, note_id=body.id, changes=changes)
    except (RecordNotFoundError, OwnershipError) as e:
        raise _not_found() from e
    return JSONResponse(content={"success": True, "note": note.to_api()})


@router.delete("")
async def delete_note(
    note_id: str = Query(..., alias="id", min_length=1),
    user_email: str = Depends(get_current_user_email),
    store: RecordStore = Depends(get_record_store),
) -> JSONResponse:
    try:
        await note_service.delete_note(store=store, user_email=user_email, note_id=note_id)
    except (RecordNotFoundError, OwnershipError) as e:
        raise _not_found() from e
    return JSONResponse(content={"success": True})


@router.post("/toggle-pin")
async def toggle_pin(
    body: NoteRef,
    user_email: str = Depends(get_current_user_email),
    store: RecordStore = Depends(get_record_store),
) -> JSONResponse:
    try:
        note = await note_service.toggle_pin(store=store, user_email=user_email, note_id=body.id)
    except (RecordNotFoundError, OwnershipError) as e:
        raise _not_found() from e
    return JSONResponse(content={"success": True, "note": note.to_api()})
