"""Request types submitted through the public forms and triaged by staff."""

import re
from enum import StrEnum
from typing import Any, ClassVar

from pydantic import Field, field_validator

from portal.core import schema
from portal.core.config import constants
from portal.domain.base import PortalModel


_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def validate_email_address(value: str) -> str:
    """Normalize and validate a submitter email address."""
    cleaned = value.strip()
    if not _EMAIL_RE.match(cleaned):
        msg = "Please provide a valid email address"
        raise ValueError(msg)
    return cleaned


class RequestType(StrEnum):
    """Closed set of request types handled by intake and triage."""

    ANNOUNCEMENTS = "announcements"
    WEBSITE_UPDATES = "websiteUpdates"
    SMS_REQUESTS = "smsRequests"
    AV_REQUESTS = "avRequests"
    FLYER_REVIEWS = "flyerReviews"
    GRAPHIC_DESIGN = "graphicDesign"

    @property
    def collection(self) -> str:
        return _COLLECTIONS[self]

    @property
    def label(self) -> str:
        return _LABELS[self]


_COLLECTIONS: dict[RequestType, str] = {
    RequestType.ANNOUNCEMENTS: schema.ANNOUNCEMENTS,
    RequestType.WEBSITE_UPDATES: schema.WEBSITE_UPDATES,
    RequestType.SMS_REQUESTS: schema.SMS_REQUESTS,
    RequestType.AV_REQUESTS: schema.AV_REQUESTS,
    RequestType.FLYER_REVIEWS: schema.FLYER_REVIEWS,
    RequestType.GRAPHIC_DESIGN: schema.GRAPHIC_DESIGN_REQUESTS,
}

_LABELS: dict[RequestType, str] = {
    RequestType.ANNOUNCEMENTS: "Announcement",
    RequestType.WEBSITE_UPDATES: "Website Update",
    RequestType.SMS_REQUESTS: "SMS Request",
    RequestType.AV_REQUESTS: "A/V Request",
    RequestType.FLYER_REVIEWS: "Flyer Review",
    RequestType.GRAPHIC_DESIGN: "Graphic Design Request",
}


class ApprovalStatus(StrEnum):
    """Approval state of an announcement."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class OverrideStatus(StrEnum):
    """Staff override of an announcement's automatic placement."""

    NONE = "none"
    FORCE_INCLUDE = "forceInclude"
    FORCE_EXCLUDE = "forceExclude"
    DEFER = "defer"


class DesignStatus(StrEnum):
    """Workflow status of a graphic design request."""

    PENDING = "Pending"
    IN_DESIGN = "In Design"
    REVIEW = "Review"
    COMPLETED = "Completed"
    CANCELED = "Canceled"


class RequestSubmission(PortalModel):
    """Fields common to every submission form."""

    request_type: ClassVar[RequestType]

    name: str = Field(..., min_length=1, description="Submitter's name")
    email: str = Field(..., description="Submitter's email address")
    ministry: str | None = Field(default=None, description="Submitting ministry")
    file_links: list[str] = Field(default_factory=list, description="Links to uploaded files")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Validate the submitter's email address."""
        return validate_email_address(v)

    def to_record(self) -> dict[str, Any]:
        """Fields to persist for this submission."""
        return {**self.model_dump(), "completed": False}

    def confirmation_fields(self) -> list[tuple[str, str]]:
        """Label/value pairs echoed back in the confirmation email."""
        return [("Ministry", self.ministry or "N/A")]


class AnnouncementSubmission(RequestSubmission):
    """Announcement for the bulletin, screens, email blast, or website."""

    request_type: ClassVar[RequestType] = RequestType.ANNOUNCEMENTS

    announcement_body: str = Field(..., min_length=1)
    date_of_event: str | None = None
    time_of_event: str | None = None
    promotion_start_date: str | None = None
    platforms: list[str] = Field(default_factory=list)
    add_to_events_calendar: bool = False
    external_event: bool = False

    def confirmation_fields(self) -> list[tuple[str, str]]:
        return [
            *super().confirmation_fields(),
            ("Event Date", f"{self.date_of_event or 'N/A'} {self.time_of_event or ''}".strip()),
            ("Promotion Start", self.promotion_start_date or "N/A"),
            ("Platforms", ", ".join(self.platforms) or "N/A"),
            ("Add to Calendar", "Yes" if self.add_to_events_calendar else "No"),
        ]


class WebsiteUpdateSubmission(RequestSubmission):
    request_type: ClassVar[RequestType] = RequestType.WEBSITE_UPDATES

    urgent: bool = False
    page_to_update: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    sign_up_url: str | None = None

    def confirmation_fields(self) -> list[tuple[str, str]]:
        return [
            ("Page to Update", self.page_to_update),
            ("Urgent", "Yes" if self.urgent else "No"),
            ("Description", self.description),
        ]


class SmsSubmission(RequestSubmission):
    request_type: ClassVar[RequestType] = RequestType.SMS_REQUESTS

    sms_message: str = Field(..., min_length=1, max_length=constants.SMS_MAX_LENGTH)
    requested_date: str | None = None
    additional_info: str | None = None

    def confirmation_fields(self) -> list[tuple[str, str]]:
        return [
            *super().confirmation_fields(),
            ("Message", self.sms_message),
            ("Requested Date", self.requested_date or "N/A"),
        ]


class DateTimeEntry(PortalModel):
    """One occurrence of an A/V event."""

    date: str
    start_time: str
    end_time: str


class AvSubmission(RequestSubmission):
    request_type: ClassVar[RequestType] = RequestType.AV_REQUESTS

    event_name: str = Field(..., min_length=1)
    date_time_entries: list[DateTimeEntry] = Field(default_factory=list)
    description: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    needs_livestream: bool = False
    av_needs: str | None = None
    expected_attendees: str | None = None
    additional_notes: str | None = None

    def to_record(self) -> dict[str, Any]:
        record = super().to_record()
        record["date_time_entries"] = [entry.to_api() for entry in self.date_time_entries]
        return record

    def confirmation_fields(self) -> list[tuple[str, str]]:
        schedule = "; ".join(f"{e.date} {e.start_time}-{e.end_time}" for e in self.date_time_entries)
        return [
            *super().confirmation_fields(),
            ("Event", self.event_name),
            ("Location", self.location),
            ("Dates", schedule or "N/A"),
            ("Livestream", "Yes" if self.needs_livestream else "No"),
        ]


class FlyerReviewSubmission(RequestSubmission):
    request_type: ClassVar[RequestType] = RequestType.FLYER_REVIEWS

    event_name: str = Field(..., min_length=1)
    event_date: str | None = None
    target_audience: str | None = None
    purpose: str | None = None
    feedback_needed: str | None = None
    urgency: str = "standard"

    def confirmation_fields(self) -> list[tuple[str, str]]:
        return [
            *super().confirmation_fields(),
            ("Event", self.event_name),
            ("Event Date", self.event_date or "N/A"),
            ("Urgency", self.urgency),
        ]


class GraphicDesignSubmission(RequestSubmission):
    request_type: ClassVar[RequestType] = RequestType.GRAPHIC_DESIGN

    project_type: str = Field(..., min_length=1)
    project_description: str = Field(..., min_length=1)
    deadline: str | None = None
    priority: str = "Standard"
    required_dimensions: str | None = None

    def confirmation_fields(self) -> list[tuple[str, str]]:
        return [
            *super().confirmation_fields(),
            ("Project Type", self.project_type),
            ("Deadline", self.deadline or "N/A"),
            ("Priority", self.priority),
        ]


SUBMISSION_MODELS: dict[RequestType, type[RequestSubmission]] = {
    model.request_type: model
    for model in (
        AnnouncementSubmission,
        WebsiteUpdateSubmission,
        SmsSubmission,
        AvSubmission,
        FlyerReviewSubmission,
        GraphicDesignSubmission,
    )
}


class MarkCompletedRequest(PortalModel):
    """Set (not toggle) the completed flag of a request record."""

    table: RequestType
    record_id: str = Field(..., min_length=1)
    completed: bool


class OverrideStatusUpdate(PortalModel):
    record_id: str = Field(..., min_length=1)
    override_status: OverrideStatus


class DesignStatusUpdate(PortalModel):
    record_id: str = Field(..., min_length=1)
    status: DesignStatus


class ApprovalDecision(PortalModel):
    record_id: str = Field(..., min_length=1)
    action: str = Field(..., pattern=r"^(approve|reject)$")
    reason: str | None = None


class SummarizeRequest(PortalModel):
    record_ids: list[str] = Field(..., min_length=1)
