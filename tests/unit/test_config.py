"""Tests for configuration validation."""

import pytest

from portal.core.config import Settings


def test_require_credential_with_valid_value() -> None:
    """Test require_credential returns value when credential is set."""
    settings = Settings(openrouter_api_key="sk-test")

    assert settings.require_credential("openrouter_api_key", "OpenRouter API key") == "sk-test"


def test_require_credential_with_none_raises_error() -> None:
    settings = Settings(azure_ad_client_secret=None)

    with pytest.raises(ValueError, match="Azure AD client secret credential not configured"):
        settings.require_credential("azure_ad_client_secret", "Azure AD client secret")


def test_require_credential_error_message_includes_field_name() -> None:
    """Test error message includes the environment variable name."""
    settings = Settings(airtable_personal_token="")

    with pytest.raises(ValueError, match="AIRTABLE_PERSONAL_TOKEN"):
        settings.require_credential("airtable_personal_token", "Airtable")


def test_admin_email_set_normalizes_entries() -> None:
    settings = Settings(admin_emails=" Comms@SaintHelen.org, ,office@sainthelen.org ")

    assert settings.admin_email_set == {"comms@sainthelen.org", "office@sainthelen.org"}


def test_backend_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATA_BACKEND", "airtable")
    monkeypatch.setenv("ENABLE_SCHEDULER", "true")

    settings = Settings()

    assert settings.data_backend == "airtable"
    assert settings.enable_scheduler is True


def test_unknown_backend_is_rejected() -> None:
    with pytest.raises(ValueError, match="data_backend"):
        Settings(data_backend="postgres")


def test_defaults() -> None:
    settings = Settings(_env_file=None)

    assert settings.timezone == "America/New_York"
    assert settings.generate_tasks_hour == 5
    assert (settings.daily_digest_hour, settings.daily_digest_minute) == (7, 30)
    assert settings.trust_user_header is False
