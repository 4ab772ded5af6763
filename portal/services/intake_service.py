"""Public form submissions: persist, confirm, and route for approval."""

import logging
from typing import Any

from portal.core.events import EventBus
from portal.core.logging import span
from portal.core.store import RecordStore
from portal.domain.base import camelize_record
from portal.domain.ministry import find_ministry, get_approval_coordinator, requires_approval
from portal.domain.requests import AnnouncementSubmission, ApprovalStatus, RequestSubmission
from portal.interface.email_templates import render_email
from portal.interface.graph_mailer import Mailer, send_or_raise


logger = logging.getLogger(__name__)


def _approval_fields(submission: AnnouncementSubmission) -> dict[str, Any]:
    needs_approval = requires_approval(submission.ministry)
    return {
        "requires_approval": needs_approval,
        "approval_status": str(ApprovalStatus.PENDING if needs_approval else ApprovalStatus.APPROVED),
    }


async def _notify_approver(
    *, mailer: Mailer, submission: AnnouncementSubmission, record: dict[str, Any]
) -> None:
    ministry = find_ministry(submission.ministry)
    coordinator = get_approval_coordinator(ministry.approval_coordinator) if ministry else None
    if coordinator is None or not coordinator.email:
        logger.warning(
            "No approval coordinator email configured",
            extra={"record_id": record["id"], "ministry": submission.ministry},
        )
        return

    html = render_email(
        "approval_request.html",
        coordinator_name=coordinator.name,
        submitter_name=submission.name,
        submitter_email=submission.email,
        ministry=ministry.name if ministry else submission.ministry,
        event_date=submission.date_of_event,
        body=submission.announcement_body,
        record_id=record["id"],
    )
    await send_or_raise(
        mailer,
        to=coordinator.email,
        subject=f"Approval Needed: {ministry.name if ministry else 'Announcement'} announcement",
        html=html,
    )
    logger.info("Approval request sent", extra={"record_id": record["id"], "approver": coordinator.email})


async def submit_request(
    *,
    store: RecordStore,
    mailer: Mailer,
    submission: RequestSubmission,
    event_bus: EventBus | None = None,
) -> dict[str, Any]:
    """Persist a validated submission and send its notification emails.

    Steps run in order and are not rolled back: if the confirmation email
    fails, the record stays persisted.

    Args:
        store: Record store
        mailer: Outbound mail channel
        submission: Validated form payload
        event_bus: Optional bus notified of the new request

    Returns:
        The persisted record

    Raises:
        DatabaseError: If the record cannot be persisted
        DownstreamServiceError: If a notification email cannot be sent
    """
    request_type = submission.request_type
    with span(f"intake_service.submit_request.{request_type}"):
        data = submission.to_record()
        awaiting_approval = False
        if isinstance(submission, AnnouncementSubmission):
            data.update(_approval_fields(submission))
            awaiting_approval = data["requires_approval"]

        record = await store.create_record(collection=request_type.collection, data=data)
        logger.info(
            "Request submitted",
            extra={"request_type": str(request_type), "record_id": record["id"], "email": submission.email},
        )

        ministry = find_ministry(submission.ministry)
        coordinator = (
            get_approval_coordinator(ministry.approval_coordinator)
            if ministry and ministry.approval_coordinator
            else None
        )
        html = render_email(
            "confirmation.html",
            request_label=request_type.label,
            name=submission.name,
            fields=submission.confirmation_fields(),
            file_links=submission.file_links,
            awaiting_approval=awaiting_approval,
            ministry=submission.ministry,
            coordinator_name=coordinator.name if coordinator else "ministry coordinator",
        )
        await send_or_raise(
            mailer, to=submission.email, subject=f"Saint Helen {request_type.label} Received", html=html
        )

        if awaiting_approval and isinstance(submission, AnnouncementSubmission):
            await _notify_approver(mailer=mailer, submission=submission, record=record)

        if event_bus is not None:
            event_bus.publish(
                "request_submitted",
                {"type": str(request_type), "record": camelize_record(record)},
            )

        return record
