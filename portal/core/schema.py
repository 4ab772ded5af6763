"""Relational schema for the portal's record collections.

Each collection is declared once as ``column -> SQL type``. The SQLite store uses
the declared ``BOOLEAN`` and ``JSON`` types to convert values on the way in and
out, and ``init_db`` turns the declarations into ``CREATE TABLE`` statements.
"""

import logging

import aiosqlite


logger = logging.getLogger(__name__)


REMINDERS = "recurring_reminders"
TASKS = "tasks"
USER_PREFERENCES = "user_preferences"
ANNOUNCEMENTS = "announcements"
WEBSITE_UPDATES = "website_updates"
SMS_REQUESTS = "sms_requests"
AV_REQUESTS = "av_requests"
FLYER_REVIEWS = "flyer_reviews"
GRAPHIC_DESIGN_REQUESTS = "graphic_design_requests"
COMMENTS = "comments"
NOTES = "notes"
SOCIAL_CONTENT = "social_media_content"


_REQUEST_BASE: dict[str, str] = {
    "name": "TEXT NOT NULL",
    "email": "TEXT NOT NULL",
    "ministry": "TEXT",
    "file_links": "JSON",
    "completed": "BOOLEAN NOT NULL DEFAULT 0",
    "completed_date": "TEXT",
}


COLLECTIONS: dict[str, dict[str, str]] = {
    REMINDERS: {
        "user_email": "TEXT NOT NULL",
        "title": "TEXT NOT NULL",
        "description": "TEXT",
        "category": "TEXT NOT NULL",
        "frequency": "TEXT NOT NULL",
        "day_of_week": "INTEGER",
        "day_of_month": "INTEGER",
        "time_of_day": "TEXT",
        "priority": "TEXT NOT NULL DEFAULT 'normal'",
        "is_active": "BOOLEAN NOT NULL DEFAULT 1",
        "last_generated_at": "TEXT",
        "updated_at": "TEXT",
    },
    TASKS: {
        "user_email": "TEXT NOT NULL",
        "title": "TEXT NOT NULL",
        "description": "TEXT",
        "category": "TEXT NOT NULL",
        "priority": "TEXT NOT NULL DEFAULT 'normal'",
        "status": "TEXT NOT NULL DEFAULT 'pending'",
        "due_date": "TEXT",
        "due_time": "TEXT",
        "linked_record_id": "TEXT",
        "linked_record_type": "TEXT",
        "recurring_reminder_id": "TEXT",
        "completed_at": "TEXT",
        "updated_at": "TEXT",
    },
    USER_PREFERENCES: {
        "user_email": "TEXT NOT NULL UNIQUE",
        "daily_digest_enabled": "BOOLEAN NOT NULL DEFAULT 1",
        "daily_digest_time": "TEXT NOT NULL DEFAULT '07:30:00'",
        "email_notifications": "BOOLEAN NOT NULL DEFAULT 1",
        "default_view": "TEXT NOT NULL DEFAULT 'list'",
        "theme": "TEXT NOT NULL DEFAULT 'system'",
        "updated_at": "TEXT",
    },
    ANNOUNCEMENTS: {
        **_REQUEST_BASE,
        "announcement_body": "TEXT NOT NULL",
        "date_of_event": "TEXT",
        "time_of_event": "TEXT",
        "promotion_start_date": "TEXT",
        "platforms": "JSON",
        "add_to_events_calendar": "BOOLEAN NOT NULL DEFAULT 0",
        "external_event": "BOOLEAN NOT NULL DEFAULT 0",
        "approval_status": "TEXT NOT NULL DEFAULT 'pending'",
        "requires_approval": "BOOLEAN NOT NULL DEFAULT 0",
        "approved_by": "TEXT",
        "approved_at": "TEXT",
        "rejection_reason": "TEXT",
        "override_status": "TEXT NOT NULL DEFAULT 'none'",
    },
    WEBSITE_UPDATES: {
        **_REQUEST_BASE,
        "urgent": "BOOLEAN NOT NULL DEFAULT 0",
        "page_to_update": "TEXT NOT NULL",
        "description": "TEXT NOT NULL",
        "sign_up_url": "TEXT",
    },
    SMS_REQUESTS: {
        **_REQUEST_BASE,
        "sms_message": "TEXT NOT NULL",
        "requested_date": "TEXT",
        "additional_info": "TEXT",
    },
    AV_REQUESTS: {
        **_REQUEST_BASE,
        "event_name": "TEXT NOT NULL",
        "date_time_entries": "JSON",
        "description": "TEXT NOT NULL",
        "location": "TEXT NOT NULL",
        "needs_livestream": "BOOLEAN NOT NULL DEFAULT 0",
        "av_needs": "TEXT",
        "expected_attendees": "TEXT",
        "additional_notes": "TEXT",
    },
    FLYER_REVIEWS: {
        **_REQUEST_BASE,
        "event_name": "TEXT NOT NULL",
        "event_date": "TEXT",
        "target_audience": "TEXT",
        "purpose": "TEXT",
        "feedback_needed": "TEXT",
        "urgency": "TEXT NOT NULL DEFAULT 'standard'",
        "status": "TEXT NOT NULL DEFAULT 'Pending'",
    },
    GRAPHIC_DESIGN_REQUESTS: {
        **_REQUEST_BASE,
        "project_type": "TEXT NOT NULL",
        "project_description": "TEXT NOT NULL",
        "deadline": "TEXT",
        "priority": "TEXT NOT NULL DEFAULT 'Standard'",
        "required_dimensions": "TEXT",
        "status": "TEXT NOT NULL DEFAULT 'Pending'",
    },
    COMMENTS: {
        "record_id": "TEXT NOT NULL",
        "table_name": "TEXT NOT NULL",
        "message": "TEXT NOT NULL",
        "is_public": "BOOLEAN NOT NULL DEFAULT 0",
        "public_name": "TEXT",
        "public_email": "TEXT",
        "admin_user": "TEXT",
    },
    NOTES: {
        "user_email": "TEXT NOT NULL",
        "content": "TEXT NOT NULL",
        "color": "TEXT NOT NULL DEFAULT 'yellow'",
        "is_pinned": "BOOLEAN NOT NULL DEFAULT 0",
        "updated_at": "TEXT",
    },
    SOCIAL_CONTENT: {
        "user_email": "TEXT NOT NULL",
        "platform": "TEXT NOT NULL",
        "content_type": "TEXT NOT NULL",
        "content": "TEXT NOT NULL",
        "hashtags": "TEXT",
        "suggested_date": "TEXT",
        "source_record_id": "TEXT",
        "source_record_type": "TEXT",
        "status": "TEXT NOT NULL DEFAULT 'draft'",
        "updated_at": "TEXT",
    },
}


INDEXES: list[tuple[str, str, list[str]]] = [
    ("idx_reminders_cadence", REMINDERS, ["is_active", "frequency", "day_of_week"]),
    ("idx_reminders_owner", REMINDERS, ["user_email"]),
    ("idx_tasks_owner_due", TASKS, ["user_email", "due_date"]),
    ("idx_tasks_reminder_due", TASKS, ["recurring_reminder_id", "due_date"]),
    ("idx_comments_record", COMMENTS, ["table_name", "record_id"]),
    ("idx_notes_owner", NOTES, ["user_email", "is_pinned"]),
    ("idx_social_owner", SOCIAL_CONTENT, ["user_email", "status"]),
]


def columns_of_type(collection: str, sql_type: str) -> frozenset[str]:
    """Return the columns of a collection declared with the given SQL type."""
    columns = COLLECTIONS.get(collection, {})
    return frozenset(name for name, decl in columns.items() if decl.split()[0] == sql_type)


def has_column(collection: str, column: str) -> bool:
    """Return True if the collection declares the column."""
    return column in COLLECTIONS.get(collection, {})


def _create_table_sql(collection: str, columns: dict[str, str]) -> str:
    column_sql = ",\n    ".join(
        ["id TEXT PRIMARY KEY", *(f"{name} {decl}" for name, decl in columns.items()), "created_at TEXT NOT NULL"]
    )
    return f"CREATE TABLE IF NOT EXISTS {collection} (\n    {column_sql}\n)"


async def init_db(conn: aiosqlite.Connection) -> None:
    """Create every collection table and index that does not exist yet."""
    for collection, columns in COLLECTIONS.items():
        await conn.execute(_create_table_sql(collection, columns))

    for index_name, collection, columns in INDEXES:
        await conn.execute(f"CREATE INDEX IF NOT EXISTS {index_name} ON {collection} ({', '.join(columns)})")

    await conn.commit()
    logger.info("Database schema initialized", extra={"collections": len(COLLECTIONS)})
