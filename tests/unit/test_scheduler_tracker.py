"""Tests for scheduler job tracking."""

from unittest.mock import AsyncMock

import pytest

from portal.core.scheduler_tracker import JobTracker, job_tracker, run_tracked_job


@pytest.fixture
def tracker() -> JobTracker:
    """Create a standalone job tracker for testing."""
    return JobTracker()


@pytest.mark.unit
def test_record_job_start(tracker: JobTracker) -> None:
    tracker.record_job_start("generate_tasks")

    status = tracker.get_job_status("generate_tasks")
    assert status["currently_running"] is True
    assert status["current_run_started"] is not None


@pytest.mark.unit
def test_record_job_success(tracker: JobTracker) -> None:
    tracker.record_job_start("generate_tasks")
    tracker.record_job_success("generate_tasks")

    status = tracker.get_job_status("generate_tasks")
    assert status["last_success"] is not None
    assert status["success_count"] == 1
    assert status["currently_running"] is False


@pytest.mark.unit
def test_consecutive_failures_reset_on_success(tracker: JobTracker) -> None:
    """Test that consecutive failures are tracked and cleared by a success."""
    assert tracker.record_job_failure("daily_digest", "Error 1") == 1
    assert tracker.record_job_failure("daily_digest", "Error 2") == 2

    tracker.record_job_success("daily_digest")

    status = tracker.get_job_status("daily_digest")
    assert status["consecutive_failures"] == 0
    assert status["failure_count"] == 2
    assert status["last_error"] == "Error 2"


@pytest.mark.unit
def test_long_errors_are_truncated(tracker: JobTracker) -> None:
    tracker.record_job_failure("daily_digest", "x" * 2000)

    assert len(tracker.get_job_status("daily_digest")["last_error"]) == 500


@pytest.mark.unit
def test_unknown_job_has_empty_status(tracker: JobTracker) -> None:
    status = tracker.get_job_status("never_ran")

    assert status["job_name"] == "never_ran"
    assert status["last_success"] is None
    assert status["consecutive_failures"] == 0
    assert status["currently_running"] is False


@pytest.mark.unit
async def test_run_tracked_job_records_success() -> None:
    job = AsyncMock(return_value=None)

    await run_tracked_job(job, "generate_tasks")

    job.assert_awaited_once()
    assert job_tracker.get_job_status("generate_tasks")["success_count"] == 1


@pytest.mark.unit
async def test_run_tracked_job_records_failure_without_raising() -> None:
    """A failing run is recorded and the next trigger still fires."""
    job = AsyncMock(side_effect=RuntimeError("Graph token rejected"))

    await run_tracked_job(job, "daily_digest")
    await run_tracked_job(job, "daily_digest")

    assert job.await_count == 2
    status = job_tracker.get_job_status("daily_digest")
    assert status["consecutive_failures"] == 2
    assert status["last_error"] == "Graph token rejected"
    assert status["currently_running"] is False
