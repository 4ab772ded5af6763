"""Social media draft endpoints for the signed-in user."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from pydantic import Field

from portal.core.errors import OwnershipError
from portal.core.store import RecordNotFoundError, RecordStore
from portal.domain.social import (
    ContentStatus,
    ContentType,
    Platform,
    SocialContentCreate,
    SocialContentUpdate,
    SocialGenerateRequest,
)
from portal.interface.dependencies import get_current_user_email, get_record_store
from portal.services import social_service


router = APIRouter(prefix="/api/social", tags=["social"])

NOT_FOUND = "Content not found"


class SocialContentPatch(SocialContentUpdate):
    id: str = Field(..., min_length=1)


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)


@router.get("")
async def list_content(
    platform: Platform | None = Query(default=None),
    content_type: ContentType | None = Query(default=None, alias="contentType"),
    content_status: ContentStatus | None = Query(default=None, alias="status"),
    limit: int | None = Query(default=None, ge=1),
    user_email: str = Depends(get_current_user_email),
    store: RecordStore = Depends(get_record_store),
) -> JSONResponse:
    """List the caller's drafts, newest first."""
    content = await social_service.list_content(
        store=store,
        user_email=user_email,
        platform=platform,
        content_type=content_type,
        status=content_status,
        limit=limit,
    )
    return JSONResponse(content={"success": True, "content": [c.to_api() for c in content]})


@router.post("")
async def create_content(
    body: SocialContentCreate,
    user_email: str = Depends(get_current_user_email),
    store: RecordStore = Depends(get_record_store),
) -> JSONResponse:
    content = await social_service.create_content(store=store, user_email=user_email, data=body)
    return JSONResponse(status_code=status.HTTP_201_CREATED, content={"success": True, "content": content.to_api()})


@router.patch("")
async def update_content(
    body: SocialContentPatch,
    user_email: str = Depends(get_current_user_email),
    store: RecordStore = Depends(get_record_store),
) -> JSONResponse:
    changes = SocialContentUpdate.model_validate(body.model_dump(exclude={"id"}, exclude_unset=True))
    try:
        content = await social_service.update_content(
            store=store, user_email=user_email, content_id=body.id, changes=changes
        )
    except (RecordNotFoundError, OwnershipError) as e:
        raise _not_found() from e
    return JSONResponse(content={"success": True, "content": content.to_api()})


@router.delete("")
async def delete_content(
    content_id: str = Query(..., alias="id", min_length=1),
    user_email: str = Depends(get_current_user_email),
    store: RecordStore = Depends(get_record_store),
) -> JSONResponse:
    try:
        await social_service.delete_content(store=store, user_email=user_email, content_id=content_id)
    except (RecordNotFoundError, OwnershipError) as e:
        raise _not_found() from e
    return JSONResponse(content={"success": True})


@router.post("/generate")
async def generate_content(
    body: SocialGenerateRequest,
    user_email: str = Depends(get_current_user_email),
    store: RecordStore = Depends(get_record_store),
) -> JSONResponse:
    """Draft a post with the AI agent and save it."""
    content = await social_service.generate_content(store=store, user_email=user_email, request=body)
    return JSONResponse(status_code=status.HTTP_201_CREATED, content={"success": True, "content": content.to_api()})
