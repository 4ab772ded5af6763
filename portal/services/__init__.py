"""Service layer for business logic."""

from portal.services import (
    comment_service,
    digest_service,
    intake_service,
    preference_service,
    reminder_service,
    summary_service,
    task_generator,
    task_service,
    triage_service,
)


__all__ = [
    "comment_service",
    "digest_service",
    "intake_service",
    "preference_service",
    "reminder_service",
    "summary_service",
    "task_generator",
    "task_service",
    "triage_service",
]
