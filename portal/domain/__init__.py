"""Domain models and DTOs."""

from portal.domain.comment import Comment, CommentCreate, PublicCommentCreate
from portal.domain.preferences import UserPreferences, UserPreferencesUpdate
from portal.domain.reminder import (
    RecurringReminder,
    ReminderCreate,
    ReminderFrequency,
    ReminderUpdate,
    TaskPriority,
)
from portal.domain.requests import (
    ApprovalStatus,
    DesignStatus,
    OverrideStatus,
    RequestSubmission,
    RequestType,
)
from portal.domain.task import Task, TaskCreate, TaskStatus, TaskUpdate


__all__ = [
    "ApprovalStatus",
    "Comment",
    "CommentCreate",
    "DesignStatus",
    "OverrideStatus",
    "PublicCommentCreate",
    "RecurringReminder",
    "ReminderCreate",
    "ReminderFrequency",
    "ReminderUpdate",
    "RequestSubmission",
    "RequestType",
    "Task",
    "TaskCreate",
    "TaskPriority",
    "TaskStatus",
    "TaskUpdate",
    "UserPreferences",
    "UserPreferencesUpdate",
]
