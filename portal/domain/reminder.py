"""Recurring reminder domain models and enums."""

from enum import StrEnum

from pydantic import Field, model_validator

from portal.domain.base import PortalModel, explicitly_nulled


class ReminderFrequency(StrEnum):
    """How often a reminder expands into a task."""

    DAILY = "daily"
    WEEKLY = "weekly"


class TaskPriority(StrEnum):
    """Priority shared by reminders and the tasks they produce."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class RecurringReminder(PortalModel):
    """A template describing recurring work; never completable itself."""

    id: str = Field(..., description="Unique reminder ID")
    user_email: str = Field(..., description="Owner's email address")
    title: str = Field(..., description="Title copied onto generated tasks")
    description: str | None = Field(default=None, description="Free-text details")
    category: str = Field(..., description="Category label, e.g. announcement, av, misc")
    frequency: ReminderFrequency = Field(..., description="daily or weekly")
    day_of_week: int | None = Field(default=None, ge=0, le=6, description="0=Sunday .. 6=Saturday (weekly only)")
    day_of_month: int | None = Field(default=None, description="Stored for future monthly cadence; not matched")
    time_of_day: str | None = Field(default=None, description="HH:MM:SS copied onto the task's due time")
    priority: TaskPriority = Field(default=TaskPriority.NORMAL, description="Priority copied onto generated tasks")
    is_active: bool = Field(default=True, description="Inactive reminders never expand into tasks")
    last_generated_at: str | None = Field(default=None, description="Advisory timestamp of the last expansion")
    created_at: str | None = Field(default=None, description="Creation timestamp (ISO format)")
    updated_at: str | None = Field(default=None, description="Last update timestamp (ISO format)")


class ReminderCreate(PortalModel):
    """Fields accepted when creating a reminder."""

    title: str = Field(..., min_length=1)
    description: str | None = None
    category: str = Field(..., min_length=1)
    frequency: ReminderFrequency
    day_of_week: int | None = Field(default=None, ge=0, le=6)
    day_of_month: int | None = Field(default=None, ge=1, le=31)
    time_of_day: str | None = None
    priority: TaskPriority = TaskPriority.NORMAL
    is_active: bool = True

    @model_validator(mode="after")
    def weekly_requires_day(self) -> "ReminderCreate":
        """Weekly reminders must name the weekday they fire on."""
        if self.frequency == ReminderFrequency.WEEKLY and self.day_of_week is None:
            msg = "dayOfWeek is required for weekly reminders"
            raise ValueError(msg)
        return self


class ReminderUpdate(PortalModel):
    """Partial update of a reminder; unset fields are left unchanged."""

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    category: str | None = Field(default=None, min_length=1)
    frequency: ReminderFrequency | None = None
    day_of_week: int | None = Field(default=None, ge=0, le=6)
    day_of_month: int | None = Field(default=None, ge=1, le=31)
    time_of_day: str | None = None
    priority: TaskPriority | None = None
    is_active: bool | None = None

    @model_validator(mode="after")
    def required_fields_not_cleared(self) -> "ReminderUpdate":
        """Stored columns that cannot be empty may be omitted but not set to null."""
        cleared = explicitly_nulled(self, ("title", "category", "frequency", "priority", "is_active"))
        if cleared:
            msg = f"{', '.join(cleared)} cannot be null"
            raise ValueError(msg)
        return self
