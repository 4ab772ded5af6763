"""Per-user preference models."""

from pydantic import Field

from portal.domain.base import PortalModel


class UserPreferences(PortalModel):
    """A user's notification and display preferences."""

    id: str | None = Field(default=None, description="Preference row ID")
    user_email: str = Field(..., description="Owner's email address")
    daily_digest_enabled: bool = Field(default=True, description="Receive the daily digest email")
    daily_digest_time: str = Field(default="07:30:00", description="Preferred digest time (informational)")
    email_notifications: bool = Field(default=True, description="Receive per-request notification emails")
    default_view: str = Field(default="list", description="Default task view in the dashboard")
    theme: str = Field(default="system", description="UI theme")


class UserPreferencesUpdate(PortalModel):
    """Partial update of a user's preferences."""

    daily_digest_enabled: bool | None = None
    daily_digest_time: str | None = Field(default=None, pattern=r"^\d{2}:\d{2}(:\d{2})?$")
    email_notifications: bool | None = None
    default_view: str | None = None
    theme: str | None = None
