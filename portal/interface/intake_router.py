"""Public submission forms and the ministry lookup they use."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from portal.core.events import EventBus
from portal.core.store import RecordStore
from portal.domain.ministry import search_ministries
from portal.domain.requests import (
    AnnouncementSubmission,
    AvSubmission,
    FlyerReviewSubmission,
    GraphicDesignSubmission,
    RequestSubmission,
    SmsSubmission,
    WebsiteUpdateSubmission,
)
from portal.interface.dependencies import get_event_bus, get_mailer, get_record_store
from portal.interface.graph_mailer import Mailer
from portal.services import intake_service


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["intake"])


class _Collaborators:
    """Per-request collaborators shared by every submission endpoint."""

    def __init__(
        self,
        store: RecordStore = Depends(get_record_store),
        mailer: Mailer = Depends(get_mailer),
        event_bus: EventBus = Depends(get_event_bus),
    ) -> None:
        self.store = store
        self.mailer = mailer
        self.event_bus = event_bus

    async def submit(self, submission: RequestSubmission) -> dict[str, Any]:
        record = await intake_service.submit_request(
            store=self.store, mailer=self.mailer, submission=submission, event_bus=self.event_bus
        )
        return {"success": True, "id": record["id"]}


@router.post("/announcements")
async def submit_announcement(
    body: AnnouncementSubmission, deps: _Collaborators = Depends()
) -> JSONResponse:
    return JSONResponse(content=await deps.submit(body))


@router.post("/website-updates")
async def submit_website_update(
    body: WebsiteUpdateSubmission, deps: _Collaborators = Depends()
) -> JSONResponse:
    return JSONResponse(content=await deps.submit(body))


@router.post("/sms-requests")
async def submit_sms_request(body: SmsSubmission, deps: _Collaborators = Depends()) -> JSONResponse:
    return JSONResponse(content=await deps.submit(body))


@router.post("/av-requests")
async def submit_av_request(body: AvSubmission, deps: _Collaborators = Depends()) -> JSONResponse:
    return JSONResponse(content=await deps.submit(body))


@router.post("/flyer-review")
async def submit_flyer_review(body: FlyerReviewSubmission, deps: _Collaborators = Depends()) -> JSONResponse:
    return JSONResponse(content=await deps.submit(body))


@router.post("/graphic-design")
async def submit_graphic_design(
    body: GraphicDesignSubmission, deps: _Collaborators = Depends()
) -> JSONResponse:
    return JSONResponse(content=await deps.submit(body))


@router.get("/ministries")
async def list_ministries(q: str = Query(default="")) -> JSONResponse:
    """Ministry picker data, optionally filtered by ``q``."""
    return JSONResponse(content={"ministries": [m.to_api() for m in search_ministries(q)]})
