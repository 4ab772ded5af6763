"""Task domain models and enums."""

from enum import StrEnum

from pydantic import Field, model_validator

from portal.domain.base import PortalModel, explicitly_nulled
from portal.domain.reminder import TaskPriority


class TaskStatus(StrEnum):
    """Task lifecycle state."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


OPEN_STATUSES: tuple[TaskStatus, ...] = (TaskStatus.PENDING, TaskStatus.IN_PROGRESS)


class Task(PortalModel):
    """A concrete, dated, completable work item."""

    id: str = Field(..., description="Unique task ID")
    user_email: str = Field(..., description="Owner's email address")
    title: str = Field(..., description="Task title")
    description: str | None = Field(default=None, description="Free-text details")
    category: str = Field(..., description="Category label")
    priority: TaskPriority = Field(default=TaskPriority.NORMAL, description="Task priority")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="Lifecycle state")
    due_date: str | None = Field(default=None, description="Due date (YYYY-MM-DD)")
    due_time: str | None = Field(default=None, description="Due time (HH:MM:SS)")
    linked_record_id: str | None = Field(default=None, description="ID of a related request record")
    linked_record_type: str | None = Field(default=None, description="Request type of the linked record")
    recurring_reminder_id: str | None = Field(default=None, description="Reminder that generated this task")
    completed_at: str | None = Field(default=None, description="Completion timestamp, cleared on reopen")
    created_at: str | None = Field(default=None, description="Creation timestamp (ISO format)")
    updated_at: str | None = Field(default=None, description="Last update timestamp (ISO format)")


class TaskCreate(PortalModel):
    """Fields accepted when creating a task."""

    title: str = Field(..., min_length=1)
    description: str | None = None
    category: str = Field(..., min_length=1)
    priority: TaskPriority = TaskPriority.NORMAL
    status: TaskStatus = TaskStatus.PENDING
    due_date: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    due_time: str | None = None
    linked_record_id: str | None = None
    linked_record_type: str | None = None
    recurring_reminder_id: str | None = None


class TaskUpdate(PortalModel):
    """Partial update of a task; unset fields are left unchanged."""

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    category: str | None = Field(default=None, min_length=1)
    priority: TaskPriority | None = None
    status: TaskStatus | None = None
    due_date: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    due_time: str | None = None
    linked_record_id: str | None = None
    linked_record_type: str | None = None

    @model_validator(mode="after")
    def required_fields_not_cleared(self) -> "TaskUpdate":
        """Stored columns that cannot be empty may be omitted but not set to null."""
        cleared = explicitly_nulled(self, ("title", "category", "priority", "status"))
        if cleared:
            msg = f"{', '.join(cleared)} cannot be null"
            raise ValueError(msg)
        return self
