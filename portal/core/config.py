"""Configuration management for the parish portal."""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage backend selection (read once at startup)
    data_backend: Literal["sqlite", "airtable"] = Field(
        default="sqlite", description="Record store backend: relational 'sqlite' or legacy 'airtable'"
    )
    sqlite_db_path: str = Field(default="portal.db", description="Path to the SQLite database file")

    # Airtable Configuration (legacy backend)
    airtable_personal_token: str | None = Field(default=None, description="Airtable personal access token")
    airtable_base_id: str | None = Field(default=None, description="Airtable base ID")
    airtable_api_url: str = Field(default="https://api.airtable.com/v0", description="Airtable REST API root")

    # Microsoft Graph mail Configuration
    azure_ad_tenant_id: str | None = Field(default=None, description="Azure AD tenant ID for Graph mail")
    azure_ad_client_id: str | None = Field(default=None, description="Azure AD application (client) ID")
    azure_ad_client_secret: str | None = Field(default=None, description="Azure AD client secret")
    mailbox_to_send_from: str | None = Field(default=None, description="Mailbox that sends all portal email")

    # Security
    cron_secret: str | None = Field(default=None, description="Bearer secret required by the cron endpoints")
    secret_key: str = Field(
        default="dev-secret-change-me", description="Key used to sign session cookies and public comment links"
    )
    admin_emails: str = Field(default="", description="Comma-separated staff addresses allowed on admin routes")
    trust_user_header: bool = Field(
        default=False,
        description="Accept the caller identity from the X-User-Email header set by a trusted proxy",
    )

    # Routing of notifications
    portal_base_url: str = Field(default="http://localhost:8000", description="Public base URL of the portal")
    adult_discipleship_coordinator_email: str | None = Field(
        default=None, description="Approver for ministries that require approval"
    )
    summary_recipient_email: str | None = Field(
        default=None, description="Internal recipient of AI-generated announcement summaries"
    )

    # OpenRouter Configuration
    openrouter_api_key: str | None = Field(default=None, description="OpenRouter API key for LLM access")
    model_id: str = Field(
        default="anthropic/claude-3.5-sonnet",
        description="Model ID for OpenRouter (defaults to Claude 3.5 Sonnet)",
    )

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")

    # Scheduling
    timezone: str = Field(default="America/New_York", description="Local timezone used to derive 'today'")
    enable_scheduler: bool = Field(
        default=False, description="Run the batch jobs in-process instead of relying on external cron"
    )
    generate_tasks_hour: int = Field(default=5, description="Local hour at which daily tasks are generated")
    daily_digest_hour: int = Field(default=7, description="Local hour at which digests are sent")
    daily_digest_minute: int = Field(default=30, description="Minute past the hour at which digests are sent")

    def require_credential(self, field_name: str, service_name: str) -> str:
        """Validate that a required credential is set, raising a clear error if missing.

        Args:
            field_name: Name of the field to check
            service_name: Human-readable service name for error message

        Returns:
            The credential value

        Raises:
            ValueError: If the credential is None or empty
        """
        value = getattr(self, field_name)
        if not value:
            raise ValueError(
                f"{service_name} credential not configured. "
                f"Set {field_name.upper()} environment variable or add to .env file."
            )
        return value

    @property
    def admin_email_set(self) -> set[str]:
        """Lower-cased staff addresses parsed from ``admin_emails``."""
        return {email.strip().lower() for email in self.admin_emails.split(",") if email.strip()}


# Application Constants
class Constants:
    """Application-wide constants."""

    # API Configuration
    API_TIMEOUT_SECONDS: int = 30

    # Request intake
    SMS_MAX_LENGTH: int = 160

    # Pagination
    AIRTABLE_MAX_PAGE_SIZE: int = 100

    # Session and link lifetimes
    SESSION_MAX_AGE_SECONDS: int = 86400 * 7
    PUBLIC_COMMENT_LINK_MAX_AGE_SECONDS: int = 86400 * 30

    # Graph token refresh margin
    GRAPH_TOKEN_EXPIRY_MARGIN_SECONDS: int = 60

    # Event bus
    EVENT_QUEUE_MAXSIZE: int = 100
    EVENT_STREAM_KEEPALIVE_SECONDS: int = 25

    # Digest priority colours
    PRIORITY_COLORS: dict[str, str] = {
        "urgent": "#ef4444",
        "high": "#f59e0b",
        "normal": "#3b82f6",
        "low": "#6b7280",
    }

    # Paths
    PACKAGE_ROOT: Path = Path(__file__).parent.parent
    TEMPLATES_DIR: Path = PACKAGE_ROOT / "templates"


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
