"""Unit tests for error classification utilities."""

import pytest

from portal.core.errors import (
    DownstreamServiceError,
    ErrorCategory,
    ErrorSeverity,
    OwnershipError,
    classify_error,
)
from portal.core.store import DatabaseError


@pytest.mark.unit
class TestClassifyError:
    """Tests for classify_error."""

    def test_ownership_reads_as_not_found(self):
        """Foreign records must be indistinguishable from missing ones."""
        result = classify_error(OwnershipError("reminder belongs to bob@sainthelen.org"))

        assert result.category == ErrorCategory.RECORD_NOT_FOUND
        assert result.message == "Record not found."
        assert "bob" not in result.message

    def test_permission_denied(self):
        result = classify_error(PermissionError("nope"))

        assert result.category == ErrorCategory.PERMISSION_DENIED
        assert result.severity == ErrorSeverity.MEDIUM

    def test_validation_message_passes_through(self):
        result = classify_error(ValueError("dayOfWeek is required for weekly reminders"))

        assert result.category == ErrorCategory.VALIDATION_FAILED
        assert result.message == "dayOfWeek is required for weekly reminders"

    def test_missing_credential_is_authentication(self):
        """A ValueError from require_credential is a configuration problem, not bad input."""
        result = classify_error(ValueError("OpenRouter API key credential not configured. Set OPENROUTER_API_KEY"))

        assert result.category == ErrorCategory.AUTHENTICATION_FAILED
        assert result.severity == ErrorSeverity.CRITICAL

    def test_quota_exceeded(self):
        result = classify_error(Exception("OpenRouter API error: quota exceeded for this model"))

        assert result.category == ErrorCategory.SERVICE_QUOTA_EXCEEDED
        assert "try again later" in result.message.lower()

    def test_rate_limit(self):
        result = classify_error(Exception("HTTP 429: Too many requests"))

        assert result.category == ErrorCategory.RATE_LIMIT_EXCEEDED

    def test_network_error_by_type(self):
        result = classify_error(TimeoutError("read"))

        assert result.category == ErrorCategory.NETWORK_ERROR

    def test_downstream_network_failure(self):
        result = classify_error(DownstreamServiceError("Email delivery", "Connection refused"))

        assert result.category == ErrorCategory.NETWORK_ERROR

    def test_database_error(self):
        result = classify_error(DatabaseError("Failed to create record in tasks: disk I/O error"))

        assert result.category == ErrorCategory.DATABASE_ERROR
        assert result.message == "The record store failed to complete the request."
        assert "disk" not in result.message

    def test_unknown(self):
        result = classify_error(RuntimeError("something odd"))

        assert result.category == ErrorCategory.UNKNOWN
        assert result.message == "An unexpected error occurred."


@pytest.mark.unit
def test_downstream_error_message_names_service():
    error = DownstreamServiceError("AI summary", "model unavailable")

    assert str(error) == "AI summary failed: model unavailable"
    assert error.service == "AI summary"
