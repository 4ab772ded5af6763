"""Error taxonomy and classification for portal operations."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel


class OwnershipError(PermissionError):
    """Raised when a caller touches a reminder or task owned by someone else."""


class DownstreamServiceError(RuntimeError):
    """Raised when an external collaborator (mail, AI, storage) fails a request."""

    def __init__(self, service: str, message: str) -> None:
        super().__init__(f"{service} failed: {message}")
        self.service = service


class ErrorCategory(Enum):
    """Categories of errors surfaced by handlers and batch jobs."""

    AUTHENTICATION_FAILED = "authentication_failed"
    PERMISSION_DENIED = "permission_denied"
    RECORD_NOT_FOUND = "record_not_found"
    VALIDATION_FAILED = "validation_failed"
    SERVICE_QUOTA_EXCEEDED = "service_quota_exceeded"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    NETWORK_ERROR = "network_error"
    DATABASE_ERROR = "database_error"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorResponse(BaseModel):
    """Structured error description used for logs and 5xx bodies."""

    category: ErrorCategory
    message: str
    severity: ErrorSeverity


_PatternName = Literal["quota", "rate_limit", "auth", "network", "database"]

_ERROR_PATTERNS: dict[_PatternName, dict[str, list[str] | set[str]]] = {
    "quota": {
        "phrases": [
            "quota exceeded",
            "insufficient credits",
            "credit limit",
            "out of credits",
        ],
        "exception_types": set(),
    },
    "rate_limit": {
        "phrases": [
            "rate limit",
            "too many requests",
            "throttled",
            "429",
        ],
        "exception_types": set(),
    },
    "auth": {
        "phrases": [
            "authentication failed",
            "invalid api key",
            "unauthorized",
            "invalid_client",
            "credential not configured",
            "401",
        ],
        "exception_types": {"AuthenticationError"},
    },
    "network": {
        "phrases": [
            "connection",
            "timeout",
            "timed out",
            "503",
            "502",
            "504",
            "unreachable",
        ],
        "exception_types": {"ConnectionError", "TimeoutError", "ConnectError", "ReadTimeout"},
    },
    "database": {
        "phrases": [
            "failed to create record",
            "failed to list records",
            "failed to update record",
            "failed to delete record",
            "failed to get record",
        ],
        "exception_types": {"DatabaseError"},
    },
}


def _match_error_pattern(*, error_str: str, exception_type: str, pattern_type: _PatternName) -> bool:
    """Return True if the error matches the configured pattern type."""
    patterns = _ERROR_PATTERNS[pattern_type]
    return any(phrase in error_str for phrase in patterns["phrases"]) or exception_type in patterns["exception_types"]


def classify_error(exception: Exception) -> ErrorResponse:  # noqa: PLR0911
    """Classify an exception raised while serving a request or running a job.

    Args:
        exception: The exception to classify

    Returns:
        ErrorResponse with category, caller-facing message, and severity
    """
    error_str = str(exception).lower()
    exception_type = type(exception).__name__

    if isinstance(exception, OwnershipError | KeyError):
        return ErrorResponse(
            category=ErrorCategory.RECORD_NOT_FOUND,
            message="Record not found.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, PermissionError):
        return ErrorResponse(
            category=ErrorCategory.PERMISSION_DENIED,
            message="You don't have permission for this action.",
            severity=ErrorSeverity.MEDIUM,
        )

    if isinstance(exception, ValueError) and not _match_error_pattern(
        error_str=error_str, exception_type=exception_type, pattern_type="auth"
    ):
        return ErrorResponse(
            category=ErrorCategory.VALIDATION_FAILED,
            message=str(exception),
            severity=ErrorSeverity.LOW,
        )

    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="quota"):
        return ErrorResponse(
            category=ErrorCategory.SERVICE_QUOTA_EXCEEDED,
            message="The AI service quota has been exceeded. Please try again later.",
            severity=ErrorSeverity.HIGH,
        )

    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="rate_limit"):
        return ErrorResponse(
            category=ErrorCategory.RATE_LIMIT_EXCEEDED,
            message="Too many requests to an external service. Please wait a moment and try again.",
            severity=ErrorSeverity.MEDIUM,
        )

    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="auth"):
        return ErrorResponse(
            category=ErrorCategory.AUTHENTICATION_FAILED,
            message="An external service rejected the portal's credentials.",
            severity=ErrorSeverity.CRITICAL,
        )

    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="network"):
        return ErrorResponse(
            category=ErrorCategory.NETWORK_ERROR,
            message="An external service could not be reached.",
            severity=ErrorSeverity.MEDIUM,
        )

    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="database"):
        return ErrorResponse(
            category=ErrorCategory.DATABASE_ERROR,
            message="The record store failed to complete the request.",
            severity=ErrorSeverity.HIGH,
        )

    return ErrorResponse(
        category=ErrorCategory.UNKNOWN,
        message="An unexpected error occurred.",
        severity=ErrorSeverity.MEDIUM,
    )
