"""Staff triage endpoints for submitted requests."""

import logging
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse, Response

from portal.core.clock import local_now
from portal.core.events import EventBus
from portal.core.store import RecordNotFoundError, RecordStore
from portal.domain.base import camelize_record
from portal.domain.requests import (
    ApprovalDecision,
    DesignStatusUpdate,
    MarkCompletedRequest,
    OverrideStatusUpdate,
    RequestType,
    SummarizeRequest,
)
from portal.interface.dependencies import (
    get_event_bus,
    get_mailer,
    get_record_store,
    get_request_registry,
    require_admin,
)
from portal.interface.graph_mailer import Mailer
from portal.services import report_service, summary_service, triage_service
from portal.services.triage_service import RequestRegistry


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def _record_not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Record not found")


@router.get("/requests")
async def list_requests(
    request_type: RequestType = Query(..., alias="type"),
    hide_completed: bool = Query(default=False, alias="hideCompleted"),
    registry: RequestRegistry = Depends(get_request_registry),
) -> JSONResponse:
    """List one request type, newest first."""
    records = await triage_service.list_requests(
        registry=registry, request_type=request_type, hide_completed=hide_completed
    )
    return JSONResponse(content={"records": [camelize_record(r) for r in records]})


@router.get("/approvals")
async def list_pending_approvals(registry: RequestRegistry = Depends(get_request_registry)) -> JSONResponse:
    records = await triage_service.list_pending_approvals(registry=registry)
    return JSONResponse(content={"records": [camelize_record(r) for r in records]})


@router.post("/markCompleted")
async def mark_completed(
    body: MarkCompletedRequest,
    registry: RequestRegistry = Depends(get_request_registry),
    event_bus: EventBus = Depends(get_event_bus),
) -> JSONResponse:
    """Set a request's completed flag to exactly the given value."""
    try:
        record = await triage_service.set_completed(
            registry=registry,
            request_type=body.table,
            record_id=body.record_id,
            completed=body.completed,
            event_bus=event_bus,
        )
    except RecordNotFoundError as e:
        raise _record_not_found() from e
    return JSONResponse(content={"success": True, "record": camelize_record(record)})


@router.post("/updateOverrideStatus")
async def update_override_status(
    body: OverrideStatusUpdate,
    registry: RequestRegistry = Depends(get_request_registry),
) -> JSONResponse:
    try:
        record = await triage_service.update_override_status(
            registry=registry, record_id=body.record_id, override_status=body.override_status
        )
    except RecordNotFoundError as e:
        raise _record_not_found() from e
    return JSONResponse(content={"success": True, "record": camelize_record(record)})


@router.post("/approvals")
async def decide_approval(
    body: ApprovalDecision,
    admin_email: str = Depends(require_admin),
    registry: RequestRegistry = Depends(get_request_registry),
    mailer: Mailer = Depends(get_mailer),
) -> JSONResponse:
    """Approve or reject an announcement awaiting coordinator approval."""
    try:
        record = await triage_service.decide_approval(
            registry=registry, mailer=mailer, decision=body, admin_email=admin_email
        )
    except RecordNotFoundError as e:
        raise _record_not_found() from e
    return JSONResponse(content={"success": True, "record": camelize_record(record)})


@router.post("/updateDesignStatus")
async def update_design_status(
    body: DesignStatusUpdate,
    registry: RequestRegistry = Depends(get_request_registry),
) -> JSONResponse:
    try:
        record = await triage_service.update_design_status(
            registry=registry, record_id=body.record_id, status=body.status
        )
    except RecordNotFoundError as e:
        raise _record_not_found() from e
    return JSONResponse(content={"success": True, "record": camelize_record(record)})


@router.post("/summarizeItems")
async def summarize_items(
    body: SummarizeRequest,
    store: RecordStore = Depends(get_record_store),
    mailer: Mailer = Depends(get_mailer),
) -> JSONResponse:
    """Summarize selected announcements with the AI agent and email the result."""
    outcome = await summary_service.summarize_announcements(store=store, mailer=mailer, record_ids=body.record_ids)
    return JSONResponse(content=outcome.model_dump(mode="json", exclude_none=True))


@router.get("/weekly-report")
async def weekly_report(
    week_offset: int = Query(default=0, alias="weekOffset", ge=0),
    report_format: Literal["json", "csv"] = Query(default="json", alias="format"),
    registry: RequestRegistry = Depends(get_request_registry),
) -> Response:
    """Turnaround statistics for one week of production requests, as JSON or a CSV download."""
    report = await report_service.build_weekly_report(registry=registry, now=local_now(), week_offset=week_offset)
    headers = {"Cache-Control": "no-store"}
    if report_format == "csv":
        headers["Content-Disposition"] = f'attachment; filename="weekly-report-{report.week_start}.csv"'
        return Response(content=report_service.report_to_csv(report), media_type="text/csv", headers=headers)
    return JSONResponse(content=report.to_api(), headers=headers)
