"""On-demand AI summaries of selected announcements."""

import logging
from typing import Any

from pydantic_ai import Agent

from portal.agents.summary_agent import get_summary_agent
from portal.core.config import settings
from portal.core.errors import DownstreamServiceError
from portal.core.logging import span
from portal.core.store import RecordNotFoundError, RecordStore
from portal.domain.base import PortalModel
from portal.domain.requests import RequestType
from portal.interface.email_templates import render_email
from portal.interface.graph_mailer import Mailer, send_or_raise


logger = logging.getLogger(__name__)


class SummaryOutcome(PortalModel):
    success: bool = True
    summary: str | None = None
    message: str | None = None


def build_prompt(records: list[dict[str, Any]]) -> str:
    """Plain-text listing of the selected announcements for the agent."""
    lines = ["Here are the selected announcements:", ""]
    for index, record in enumerate(records, start=1):
        lines.extend(
            [
                f"Announcement #{index}:",
                f"Ministry: {record.get('ministry') or 'N/A'}",
                f"Date: {record.get('date_of_event') or 'N/A'}",
                f"Time: {record.get('time_of_event') or 'N/A'}",
                f"Announcement Body: {record.get('announcement_body') or ''}",
                f"Files: {', '.join(record.get('file_links') or []) or 'none'}",
                "---",
            ]
        )
    return "\n".join(lines)


async def _fetch_announcements(store: RecordStore, record_ids: list[str]) -> list[dict[str, Any]]:
    records = []
    for record_id in record_ids:
        try:
            records.append(
                await store.get_record(collection=RequestType.ANNOUNCEMENTS.collection, record_id=record_id)
            )
        except RecordNotFoundError:
            logger.warning("Announcement not found for summary", extra={"record_id": record_id})
    return records


async def summarize_announcements(
    *,
    store: RecordStore,
    mailer: Mailer,
    record_ids: list[str],
    agent: Agent[None, str] | None = None,
) -> SummaryOutcome:
    """Summarize announcements with the AI agent and email the result.

    Unknown ids are skipped. When none resolve, no agent call is made.

    Raises:
        DownstreamServiceError: If the agent call or the email fails
    """
    with span("summary_service.summarize_announcements"):
        records = await _fetch_announcements(store, record_ids)
        if not records:
            return SummaryOutcome(message="No valid records found for those IDs")

        try:
            summary_agent = agent or get_summary_agent()
            result = await summary_agent.run(build_prompt(records))
        except Exception as e:
            logger.error("Summary agent failed", extra={"error": str(e), "records": len(records)})
            raise DownstreamServiceError("AI summary", str(e)) from e

        summary = result.output.strip()
        logger.info("Summary generated", extra={"records": len(records), "length": len(summary)})

        recipient = settings.summary_recipient_email
        if recipient:
            html = render_email("summary.html", count=len(records), summary=summary)
            await send_or_raise(mailer, to=recipient, subject="Manual Summarize - Selected Items", html=html)
        else:
            logger.warning("No summary recipient configured, summary not emailed")

        return SummaryOutcome(summary=summary)
