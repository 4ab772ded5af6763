"""Staff triage of submitted requests.

Every request type resolves once to a ``RequestAccessor`` bound to its
collection, so handlers never branch on type names.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from portal.core.events import EventBus
from portal.core.logging import span
from portal.core.store import RecordStore
from portal.domain.base import camelize_record
from portal.domain.requests import (
    ApprovalDecision,
    ApprovalStatus,
    DesignStatus,
    OverrideStatus,
    RequestType,
)
from portal.interface.email_templates import render_email
from portal.interface.graph_mailer import Mailer, send_or_raise


logger = logging.getLogger(__name__)


class RequestAccessor:
    """Data access for one request type."""

    def __init__(self, *, store: RecordStore, request_type: RequestType) -> None:
        self._store = store
        self.request_type = request_type

    @property
    def collection(self) -> str:
        return self.request_type.collection

    async def get_by_id(self, record_id: str) -> dict[str, Any]:
        """Fetch a request record, raising RecordNotFoundError when absent."""
        return await self._store.get_record(collection=self.collection, record_id=record_id)

    async def list(self, *, hide_completed: bool = False) -> list[dict[str, Any]]:
        """List records newest first, optionally hiding completed ones."""
        filter_query = "completed = false" if hide_completed else ""
        return await self._store.list_all_records(
            collection=self.collection, filter_query=filter_query, sort="-created_at"
        )

    async def mark_completed(self, record_id: str, *, completed: bool) -> dict[str, Any]:
        """Set the completed flag to exactly ``completed``."""
        return await self._store.update_record(
            collection=self.collection,
            record_id=record_id,
            data={
                "completed": completed,
                "completed_date": datetime.now(UTC).isoformat() if completed else None,
            },
        )

    async def update(self, record_id: str, data: dict[str, Any]) -> dict[str, Any]:
        return await self._store.update_record(collection=self.collection, record_id=record_id, data=data)


class RequestRegistry:
    """Mapping from every ``RequestType`` to its accessor."""

    def __init__(self, store: RecordStore) -> None:
        self._accessors = {rt: RequestAccessor(store=store, request_type=rt) for rt in RequestType}

    def __getitem__(self, request_type: RequestType) -> RequestAccessor:
        return self._accessors[request_type]


async def list_requests(
    *, registry: RequestRegistry, request_type: RequestType, hide_completed: bool = False
) -> list[dict[str, Any]]:
    """List one request type for the admin dashboard."""
    with span("triage_service.list_requests"):
        return await registry[request_type].list(hide_completed=hide_completed)


async def set_completed(
    *,
    registry: RequestRegistry,
    request_type: RequestType,
    record_id: str,
    completed: bool,
    event_bus: EventBus | None = None,
) -> dict[str, Any]:
    """Set a request's completed flag. Repeating the same call is a no-op in effect."""
    with span("triage_service.set_completed"):
        accessor = registry[request_type]
        await accessor.get_by_id(record_id)
        record = await accessor.mark_completed(record_id, completed=completed)
        logger.info(
            "Request completion set",
            extra={"request_type": str(request_type), "record_id": record_id, "completed": completed},
        )
        if event_bus is not None:
            event_bus.publish(
                "request_updated", {"type": str(request_type), "record": camelize_record(record)}
            )
        return record


async def update_override_status(
    *, registry: RequestRegistry, record_id: str, override_status: OverrideStatus
) -> dict[str, Any]:
    """Change how an announcement is placed regardless of its dates."""
    with span("triage_service.update_override_status"):
        accessor = registry[RequestType.ANNOUNCEMENTS]
        await accessor.get_by_id(record_id)
        record = await accessor.update(record_id, {"override_status": str(override_status)})
        logger.info("Override status updated", extra={"record_id": record_id, "override": str(override_status)})
        return record


async def update_design_status(
    *, registry: RequestRegistry, record_id: str, status: DesignStatus
) -> dict[str, Any]:
    """Move a graphic design request through its workflow.

    Reaching ``Completed`` also sets the completed flag.
    """
    with span("triage_service.update_design_status"):
        accessor = registry[RequestType.GRAPHIC_DESIGN]
        await accessor.get_by_id(record_id)
        data: dict[str, Any] = {"status": str(status)}
        if status == DesignStatus.COMPLETED:
            data["completed"] = True
            data["completed_date"] = datetime.now(UTC).isoformat()
        record = await accessor.update(record_id, data)
        logger.info("Design status updated", extra={"record_id": record_id, "status": str(status)})
        return record


async def list_pending_approvals(*, registry: RequestRegistry) -> list[dict[str, Any]]:
    """Announcements waiting on a coordinator decision."""
    records = await registry[RequestType.ANNOUNCEMENTS].list(hide_completed=False)
    return [r for r in records if r.get("requires_approval") and r.get("approval_status") == ApprovalStatus.PENDING]


async def decide_approval(
    *,
    registry: RequestRegistry,
    mailer: Mailer,
    decision: ApprovalDecision,
    admin_email: str,
) -> dict[str, Any]:
    """Approve or reject an announcement and tell the submitter.

    Raises:
        RecordNotFoundError: If the announcement does not exist
        DownstreamServiceError: If the decision email cannot be sent
    """
    with span("triage_service.decide_approval"):
        accessor = registry[RequestType.ANNOUNCEMENTS]
        await accessor.get_by_id(decision.record_id)

        approved = decision.action == "approve"
        now = datetime.now(UTC).isoformat()
        if approved:
            data = {"approval_status": str(ApprovalStatus.APPROVED), "approved_by": admin_email, "approved_at": now}
        else:
            data = {"approval_status": str(ApprovalStatus.REJECTED), "rejection_reason": decision.reason}

        record = await accessor.update(decision.record_id, data)
        logger.info(
            "Approval decided",
            extra={"record_id": decision.record_id, "approved": approved, "admin": admin_email},
        )

        html = render_email(
            "approval_decision.html",
            name=record.get("name", ""),
            ministry=record.get("ministry"),
            approved=approved,
            reason=decision.reason,
        )
        subject = "Your announcement was approved" if approved else "Your announcement was not approved"
        await send_or_raise(mailer, to=record["email"], subject=subject, html=html)
        return record
