"""Cron-triggered batch job endpoints."""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from portal.core.clock import local_now
from portal.core.errors import classify_error
from portal.core.events import EventBus
from portal.core.store import RecordStore
from portal.interface.dependencies import (
    get_event_bus,
    get_mailer,
    get_record_store,
    verify_cron_secret,
)
from portal.interface.graph_mailer import Mailer
from portal.services import digest_service, task_generator


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cron", tags=["cron"], dependencies=[Depends(verify_cron_secret)])


def _job_failed(job_name: str, exc: Exception) -> JSONResponse:
    classified = classify_error(exc)
    logger.error(
        f"{job_name} failed",
        extra={"error": str(exc), "error_category": classified.category.value},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": str(exc)},
    )


@router.get("/generate-tasks")
async def generate_tasks(
    store: RecordStore = Depends(get_record_store),
    event_bus: EventBus = Depends(get_event_bus),
) -> JSONResponse:
    """Expand today's recurring reminders into tasks."""
    try:
        summary = await task_generator.generate_daily_tasks(store=store, now=local_now(), event_bus=event_bus)
    except Exception as e:
        return _job_failed("generate_tasks", e)
    return JSONResponse(content=summary.to_api())


@router.get("/daily-digest")
async def daily_digest(
    store: RecordStore = Depends(get_record_store),
    mailer: Mailer = Depends(get_mailer),
) -> JSONResponse:
    """Send today's digest email to every opted-in user."""
    try:
        summary = await digest_service.send_daily_digests(store=store, mailer=mailer, now=local_now())
    except Exception as e:
        return _job_failed("daily_digest", e)
    return JSONResponse(content=summary.to_api())
