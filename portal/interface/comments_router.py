"""Comments on request records, for staff and for submitters via tokened links."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse

from portal.core.errors import OwnershipError
from portal.core.store import RecordNotFoundError, RecordStore
from portal.domain.comment import CommentCreate, PublicCommentCreate
from portal.domain.requests import RequestType
from portal.interface.dependencies import get_mailer, get_record_store, require_admin
from portal.interface.graph_mailer import Mailer
from portal.services import comment_service
from portal.services.comment_service import InvalidReplyTokenError


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/comments", tags=["comments"])


@router.get("")
async def list_comments(
    record_id: str = Query(..., alias="recordId", min_length=1),
    table: RequestType = Query(...),
    _admin: str = Depends(require_admin),
    store: RecordStore = Depends(get_record_store),
) -> JSONResponse:
    comments = await comment_service.list_comments(store=store, record_id=record_id, table=table)
    return JSONResponse(content={"comments": [c.to_api() for c in comments]})


@router.post("")
async def add_comment(
    body: CommentCreate,
    admin_email: str = Depends(require_admin),
    store: RecordStore = Depends(get_record_store),
    mailer: Mailer = Depends(get_mailer),
) -> JSONResponse:
    """Add a staff comment; public comments also email the requester."""
    try:
        comment = await comment_service.add_comment(
            store=store, mailer=mailer, comment=body, admin_email=admin_email
        )
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Record not found") from e
    return JSONResponse(status_code=status.HTTP_201_CREATED, content={"success": True, "comment": comment.to_api()})


@router.post("/public")
async def add_public_reply(
    body: PublicCommentCreate,
    store: RecordStore = Depends(get_record_store),
    mailer: Mailer = Depends(get_mailer),
) -> JSONResponse:
    """Reply from the original submitter through a tokened link."""
    try:
        comment = await comment_service.add_public_reply(store=store, mailer=mailer, reply=body)
    except InvalidReplyTokenError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Record not found") from e
    except OwnershipError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e
    return JSONResponse(status_code=status.HTTP_201_CREATED, content={"success": True, "comment": comment.to_api()})
