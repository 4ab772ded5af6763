"""User preference endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from portal.core.store import RecordStore
from portal.domain.preferences import UserPreferencesUpdate
from portal.interface.dependencies import get_current_user_email, get_record_store
from portal.services import preference_service


router = APIRouter(prefix="/api/user-preferences", tags=["preferences"])


@router.get("")
async def get_preferences(
    user_email: str = Depends(get_current_user_email),
    store: RecordStore = Depends(get_record_store),
) -> JSONResponse:
    prefs = await preference_service.get_preferences(store=store, user_email=user_email)
    return JSONResponse(content=prefs.to_api())


@router.patch("")
async def update_preferences(
    body: UserPreferencesUpdate,
    user_email: str = Depends(get_current_user_email),
    store: RecordStore = Depends(get_record_store),
) -> JSONResponse:
    prefs = await preference_service.update_preferences(store=store, user_email=user_email, changes=body)
    return JSONResponse(content=prefs.to_api())
