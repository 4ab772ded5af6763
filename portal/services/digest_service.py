"""Daily digest email: today's tasks and overdue tasks for each opted-in user."""

import logging
from datetime import datetime

from pydantic import Field

from portal.core.config import constants
from portal.core.logging import log_with_context, span
from portal.core.store import RecordStore
from portal.domain.base import PortalModel
from portal.domain.task import Task
from portal.interface.email_templates import render_email
from portal.interface.graph_mailer import Mailer, send_or_raise
from portal.services import preference_service, task_service


logger = logging.getLogger(__name__)


class DigestResult(PortalModel):
    email: str
    tasks_today: int
    overdue_count: int


class DigestFailure(PortalModel):
    email: str
    error: str


class DigestSummary(PortalModel):
    """Outcome of one digest run, returned verbatim to the scheduler."""

    success: bool = True
    date: str
    emails_sent: int = 0
    results: list[DigestResult] = Field(default_factory=list)
    errors: list[DigestFailure] = Field(default_factory=list)


def digest_subject(now: datetime, tasks_today: int) -> str:
    """Subject line, e.g. ``Daily Digest: Monday, Mar 10 - 2 tasks today``."""
    return f"Daily Digest: {now:%A, %b} {now.day} - {tasks_today} tasks today"


def build_digest_email(
    *,
    user_email: str,
    now: datetime,
    todays_tasks: list[Task],
    overdue_tasks: list[Task],
    pending_count: int,
) -> str:
    """Render the digest HTML for one user."""
    return render_email(
        "daily_digest.html",
        user_name=user_email.split("@")[0],
        date_label=f"{now:%A, %B} {now.day}, {now.year}",
        todays_tasks=todays_tasks,
        overdue_tasks=overdue_tasks,
        pending_count=pending_count,
        priority_colors=constants.PRIORITY_COLORS,
    )


async def send_daily_digests(*, store: RecordStore, mailer: Mailer, now: datetime) -> DigestSummary:
    """Email each opted-in user a summary of today's and overdue tasks.

    Users with nothing due today and nothing overdue are skipped and do not
    appear in the results. One user's failure is recorded and the run
    continues with the next user.

    Args:
        store: Record store
        mailer: Outbound mail channel
        now: Local "now"; its calendar date defines "today"

    Returns:
        Summary of sent digests and per-user errors

    Raises:
        DatabaseError: If the list of opted-in users cannot be fetched
    """
    with span("digest_service.send_daily_digests"):
        today = now.date().isoformat()
        users = await preference_service.get_users_with_digest_enabled(store=store)
        logger.info("Sending daily digests", extra={"date": today, "users": len(users)})

        summary = DigestSummary(date=today)

        for prefs in users:
            email = prefs.user_email
            try:
                todays_tasks = await task_service.get_tasks_for_date(store=store, user_email=email, due_date=today)
                overdue_tasks = await task_service.get_overdue_tasks(store=store, user_email=email, today=today)
                pending_count = await task_service.count_open_tasks(store=store, user_email=email)

                if not todays_tasks and not overdue_tasks:
                    logger.debug("No tasks for user, skipping digest", extra={"user_email": email})
                    continue

                if not mailer.is_configured:
                    logger.warning("Mail not configured, skipping digest", extra={"user_email": email})
                    continue

                html = build_digest_email(
                    user_email=email,
                    now=now,
                    todays_tasks=todays_tasks,
                    overdue_tasks=overdue_tasks,
                    pending_count=pending_count,
                )
                await send_or_raise(mailer, to=email, subject=digest_subject(now, len(todays_tasks)), html=html)
            except Exception as e:
                log_with_context(logger, "error", "Failed to send digest", user_email=email, error=str(e))
                summary.errors.append(DigestFailure(email=email, error=str(e)))
                continue

            summary.results.append(
                DigestResult(email=email, tasks_today=len(todays_tasks), overdue_count=len(overdue_tasks))
            )

        summary.emails_sent = len(summary.results)
        log_with_context(
            logger,
            "info",
            "Daily digest complete",
            date=today,
            emails_sent=summary.emails_sent,
            errors=len(summary.errors),
        )
        return summary
