"""Execution tracking for the scheduled batch jobs."""

import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any


logger = logging.getLogger(__name__)


class JobTracker:
    """Track job execution history and health status in process memory."""

    def __init__(self) -> None:
        self._jobs: dict[str, dict[str, Any]] = {}

    def _entry(self, job_name: str) -> dict[str, Any]:
        return self._jobs.setdefault(job_name, {})

    def record_job_start(self, job_name: str) -> None:
        self._entry(job_name)["current_run"] = datetime.now(UTC).isoformat()

    def record_job_success(self, job_name: str) -> None:
        entry = self._entry(job_name)
        entry["last_success"] = datetime.now(UTC).isoformat()
        entry["consecutive_failures"] = 0
        entry["success_count"] = entry.get("success_count", 0) + 1
        entry.pop("current_run", None)

    def record_job_failure(self, job_name: str, error: str) -> int:
        """Record a failed run and return the consecutive failure count."""
        entry = self._entry(job_name)
        entry["last_failure"] = datetime.now(UTC).isoformat()
        entry["last_error"] = error[:500]
        entry["consecutive_failures"] = entry.get("consecutive_failures", 0) + 1
        entry["failure_count"] = entry.get("failure_count", 0) + 1
        entry.pop("current_run", None)
        return entry["consecutive_failures"]

    def get_job_status(self, job_name: str) -> dict[str, Any]:
        """Get job execution status.

        Args:
            job_name: Name of the scheduled job

        Returns:
            Dict with job status information
        """
        entry = self._jobs.get(job_name, {})
        return {
            "job_name": job_name,
            "last_success": entry.get("last_success"),
            "last_failure": entry.get("last_failure"),
            "last_error": entry.get("last_error"),
            "consecutive_failures": entry.get("consecutive_failures", 0),
            "success_count": entry.get("success_count", 0),
            "failure_count": entry.get("failure_count", 0),
            "currently_running": "current_run" in entry,
            "current_run_started": entry.get("current_run"),
        }

    def reset(self) -> None:
        self._jobs.clear()


# Global job tracker instance
job_tracker = JobTracker()


async def run_tracked_job(job_func: Callable[[], Awaitable[Any]], job_name: str) -> None:
    """Run a scheduled job once, recording its outcome.

    Failures are logged and recorded, never retried or re-raised, so the
    scheduler keeps firing on its next trigger.
    """
    job_tracker.record_job_start(job_name)
    try:
        logger.info("Executing %s", job_name)
        await job_func()
    except Exception as e:
        consecutive_failures = job_tracker.record_job_failure(job_name, str(e))
        logger.error(
            f"{job_name} failed",
            extra={"error": str(e), "consecutive_failures": consecutive_failures},
        )
        return

    job_tracker.record_job_success(job_name)
    logger.info("%s completed successfully", job_name)
