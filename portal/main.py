"""Parish portal - request intake, staff triage, and recurring task automation."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from portal.core.config import settings
from portal.core.events import EventBus
from portal.core.logging import configure_logfire, instrument_fastapi
from portal.core.scheduler import JOB_NAMES, start_scheduler, stop_scheduler
from portal.core.scheduler_tracker import job_tracker
from portal.core.store import get_record_store
from portal.interface.admin_router import router as admin_router
from portal.interface.comments_router import router as comments_router
from portal.interface.cron_router import router as cron_router
from portal.interface.error_handlers import register_error_handlers
from portal.interface.graph_mailer import get_mailer
from portal.interface.intake_router import router as intake_router
from portal.interface.notes_router import router as notes_router
from portal.interface.preferences_router import router as preferences_router
from portal.interface.reminders_router import router as reminders_router
from portal.interface.social_router import router as social_router
from portal.interface.stream_router import router as stream_router
from portal.interface.tasks_router import router as tasks_router


logger = logging.getLogger(__name__)


def validate_startup_configuration() -> None:
    """Fail fast when the selected backend is missing credentials.

    Optional collaborators (mail, AI) only log a warning, since the portal
    can run without them.
    """
    logger.info("startup_validation_begin")

    try:
        if settings.data_backend == "airtable":
            settings.require_credential("airtable_personal_token", "Airtable")
            settings.require_credential("airtable_base_id", "Airtable")
        logger.info("startup_validation", extra={"stage": "backend", "backend": settings.data_backend})
    except ValueError as e:
        logger.error("startup_validation_failed", extra={"error": str(e)})
        print(f"\nStartup validation failed: {e}\n", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    if not get_mailer().is_configured:
        logger.warning("startup_validation", extra={"service": "graph_mail", "status": "disabled"})
    if not settings.openrouter_api_key:
        logger.warning("startup_validation", extra={"service": "openrouter", "status": "disabled"})
    if not settings.cron_secret:
        logger.warning("startup_validation", extra={"service": "cron", "status": "unauthenticated"})
    if settings.trust_user_header:
        logger.warning("startup_validation", extra={"service": "auth", "status": "trusting_user_header"})

    logger.info("startup_validation_complete", extra={"status": "ok"})


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Startup
    configure_logfire()
    validate_startup_configuration()

    store = get_record_store()
    await store.init()
    logger.info("Record store initialized", extra={"backend": settings.data_backend})

    if settings.enable_scheduler:
        start_scheduler()
    yield
    # Shutdown
    stop_scheduler()
    await store.close()


def create_app() -> FastAPI:
    """Build the application with its routers, handlers, and event bus."""
    application = FastAPI(
        title="parish-portal",
        description="Parish communications portal",
        version="0.1.0",
        lifespan=lifespan,
    )
    application.state.event_bus = EventBus()

    instrument_fastapi(application)
    register_error_handlers(application)

    application.include_router(intake_router)
    application.include_router(reminders_router)
    application.include_router(tasks_router)
    application.include_router(preferences_router)
    application.include_router(notes_router)
    application.include_router(social_router)
    application.include_router(admin_router)
    application.include_router(comments_router)
    application.include_router(stream_router)
    application.include_router(cron_router)

    application.add_api_route("/health", health_check, methods=["GET"])
    application.add_api_route("/health/scheduler", scheduler_health_check, methods=["GET"])
    return application


async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "healthy"}, status_code=200)


async def scheduler_health_check() -> JSONResponse:
    """Scheduler health check endpoint with job statuses."""
    job_statuses = {job_name: job_tracker.get_job_status(job_name) for job_name in JOB_NAMES}

    has_failures = any(status["consecutive_failures"] > 0 for status in job_statuses.values())
    overall_status = "degraded" if has_failures else "healthy"

    return JSONResponse(
        content={
            "status": overall_status,
            "scheduler_enabled": settings.enable_scheduler,
            "jobs": job_statuses,
        },
        status_code=200 if overall_status == "healthy" else 503,
    )


app = create_app()
