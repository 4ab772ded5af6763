"""Weekly turnaround report for the production request queues."""

import csv
import io
import logging
import math
from datetime import UTC, datetime, time, timedelta
from typing import Any

from portal.core.clock import sunday_based_weekday
from portal.core.logging import span
from portal.domain.base import PortalModel
from portal.domain.requests import RequestType
from portal.services.triage_service import RequestRegistry


logger = logging.getLogger(__name__)

REPORTED_TYPES: tuple[RequestType, ...] = (
    RequestType.WEBSITE_UPDATES,
    RequestType.FLYER_REVIEWS,
    RequestType.GRAPHIC_DESIGN,
)

_DONE_STATUSES = {"Completed", "Done"}

CSV_HEADERS = [
    "Request Type",
    "Requester Name",
    "Email",
    "Description",
    "Submitted Date",
    "Completed Date",
    "Status",
    "Priority/Urgent",
    "Completion Time",
]


class CompletionTime(PortalModel):
    total_hours: int
    days: int
    hours: int
    display_text: str


class ReportedRequest(PortalModel):
    id: str
    request_type: RequestType
    name: str
    email: str
    description: str
    submitted_date: str
    completed_date: str | None = None
    status: str
    priority: str | None = None
    urgent: bool = False
    completed: bool = False
    completion_time: CompletionTime | None = None

    @property
    def is_done(self) -> bool:
        return self.completed or self.completion_time is not None or self.status in _DONE_STATUSES


class RequestTypeStats(PortalModel):
    total: int = 0
    completed: int = 0
    pending: int = 0
    avg_completion_time: float = 0.0
    requests: list[ReportedRequest] = []


class UrgentStats(PortalModel):
    total: int = 0
    completed: int = 0
    avg_completion_time: float = 0.0


class WeeklyReport(PortalModel):
    """Counts and average turnaround, in days, for one Sunday-to-Saturday week."""

    week_start: str
    week_end: str
    total_requests: int
    completed_requests: int
    pending_requests: int
    avg_completion_time: float
    requests_by_type: dict[str, RequestTypeStats]
    urgent_requests: UrgentStats


def week_bounds(now: datetime, week_offset: int = 0) -> tuple[datetime, datetime]:
    """Start and end of the local Sunday-based week ``week_offset`` weeks before ``now``."""
    start_day = now.date() - timedelta(days=sunday_based_weekday(now.date()) + 7 * week_offset)
    start = datetime.combine(start_day, time.min, tzinfo=now.tzinfo)
    end = datetime.combine(start_day + timedelta(days=6), time.max, tzinfo=now.tzinfo)
    return start, end


def _parse_timestamp(value: Any) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def completion_time(submitted: datetime, completed: datetime | None) -> CompletionTime | None:
    """Turnaround rounded up to whole hours, e.g. ``2d 3h``."""
    if completed is None:
        return None
    total_hours = max(math.ceil((completed - submitted).total_seconds() / 3600), 0)
    days, hours = divmod(total_hours, 24)
    if days and hours:
        display = f"{days}d {hours}h"
    elif days:
        display = f"{days}d"
    else:
        display = f"{hours}h"
    return CompletionTime(total_hours=total_hours, days=days, hours=hours, display_text=display)


def _to_reported(request_type: RequestType, record: dict[str, Any], submitted: datetime) -> ReportedRequest:
    completed_at = _parse_timestamp(record.get("completed_date"))
    priority = record.get("priority")
    urgent = bool(record.get("urgent")) or priority == "Urgent" or record.get("urgency") == "urgent"
    description = (
        record.get("project_description")
        or record.get("project_type")
        or record.get("event_name")
        or record.get("description")
        or ""
    )
    status = record.get("status") or ("Completed" if record.get("completed") else "Pending")
    return ReportedRequest(
        id=record["id"],
        request_type=request_type,
        name=record.get("name", ""),
        email=record.get("email", ""),
        description=description,
        submitted_date=submitted.isoformat(),
        completed_date=completed_at.isoformat() if completed_at else None,
        status=status,
        priority=priority,
        urgent=urgent,
        completed=bool(record.get("completed")),
        completion_time=completion_time(submitted, completed_at),
    )


def _average_days(requests: list[ReportedRequest]) -> float:
    hours = [r.completion_time.total_hours for r in requests if r.completion_time is not None]
    if not hours:
        return 0.0
    return round(sum(hours) / len(hours) / 24, 1)


def _stats(requests: list[ReportedRequest]) -> RequestTypeStats:
    completed = sum(1 for r in requests if r.is_done)
    return RequestTypeStats(
        total=len(requests),
        completed=completed,
        pending=len(requests) - completed,
        avg_completion_time=_average_days(requests),
        requests=requests,
    )


async def build_weekly_report(*, registry: RequestRegistry, now: datetime, week_offset: int = 0) -> WeeklyReport:
    """Summarize the requests submitted during one week.

    Args:
        registry: Request accessors
        now: Local "now"; the week containing it is offset 0
        week_offset: Number of weeks to look back

    Returns:
        Per-type and overall completion statistics
    """
    with span("report_service.build_weekly_report"):
        start, end = week_bounds(now, week_offset)

        by_type: dict[str, RequestTypeStats] = {}
        everything: list[ReportedRequest] = []
        for request_type in REPORTED_TYPES:
            requests = []
            for record in await registry[request_type].list():
                submitted = _parse_timestamp(record.get("created_at"))
                if submitted is not None and start <= submitted <= end:
                    requests.append(_to_reported(request_type, record, submitted))
            by_type[str(request_type)] = _stats(requests)
            everything.extend(requests)

        completed = sum(1 for r in everything if r.is_done)
        urgent = [r for r in everything if r.urgent]
        report = WeeklyReport(
            week_start=start.date().isoformat(),
            week_end=end.date().isoformat(),
            total_requests=len(everything),
            completed_requests=completed,
            pending_requests=len(everything) - completed,
            avg_completion_time=_average_days(everything),
            requests_by_type=by_type,
            urgent_requests=UrgentStats(
                total=len(urgent),
                completed=sum(1 for r in urgent if r.is_done),
                avg_completion_time=_average_days(urgent),
            ),
        )
        logger.info(
            "Weekly report built",
            extra={"week_start": report.week_start, "total": report.total_requests, "completed": completed},
        )
        return report


def report_to_csv(report: WeeklyReport) -> str:
    """Render the report as a CSV export: a summary block, then one row per request."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow([f"Weekly Report: {report.week_start} to {report.week_end}"])
    writer.writerow([f"Total Requests: {report.total_requests}"])
    writer.writerow([f"Completed: {report.completed_requests}"])
    writer.writerow([f"Pending: {report.pending_requests}"])
    writer.writerow([f"Average Completion Time: {report.avg_completion_time} days"])
    writer.writerow(
        [f"Urgent Requests: {report.urgent_requests.total} ({report.urgent_requests.completed} completed)"]
    )
    writer.writerow([])
    writer.writerow(CSV_HEADERS)

    rows = [r for stats in report.requests_by_type.values() for r in stats.requests]
    for request in sorted(rows, key=lambda r: r.submitted_date):
        writer.writerow(
            [
                request.request_type.label,
                request.name,
                request.email,
                request.description,
                request.submitted_date[:10],
                request.completed_date[:10] if request.completed_date else "",
                request.status,
                "Urgent" if request.urgent else (request.priority or "Standard"),
                request.completion_time.display_text if request.completion_time else "",
            ]
        )
    return buffer.getvalue()
