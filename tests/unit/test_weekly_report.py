"""Tests for the weekly request turnaround report."""

import csv
import io
from datetime import UTC, datetime
from unittest.mock import patch
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient

from portal.core import schema
from portal.services.report_service import build_weekly_report, completion_time, week_bounds
from portal.services.triage_service import RequestRegistry
from tests.unit.mocks import InMemoryRecordStore


PARISH_TZ = ZoneInfo("America/New_York")
# A Wednesday; its week runs Sunday 2025-03-09 through Saturday 2025-03-15
NOW = datetime(2025, 3, 12, 10, 0, tzinfo=PARISH_TZ)


async def _seed(store: InMemoryRecordStore, collection: str, created_at: str, **data) -> dict:
    record = await store.create_record(collection=collection, data={"name": "Pat", "email": "pat@example.org", **data})
    return await store.update_record(collection=collection, record_id=record["id"], data={"created_at": created_at})


@pytest.fixture
async def seeded(store: InMemoryRecordStore) -> InMemoryRecordStore:
    await _seed(
        store,
        schema.WEBSITE_UPDATES,
        "2025-03-10T14:00:00+00:00",
        page_to_update="/lent",
        description="Update Lent schedule",
        urgent=True,
        completed=True,
        completed_date="2025-03-11T16:30:00+00:00",
    )
    await _seed(
        store,
        schema.GRAPHIC_DESIGN_REQUESTS,
        "2025-03-11T12:00:00+00:00",
        project_type="Poster",
        project_description="Easter poster",
        priority="Standard",
        status="Pending",
        completed=False,
    )
    await _seed(
        store,
        schema.FLYER_REVIEWS,
        "2025-03-04T15:00:00+00:00",
        event_name="Youth retreat",
        urgency="urgent",
        status="Pending",
        completed=False,
    )
    await _seed(
        store,
        schema.ANNOUNCEMENTS,
        "2025-03-10T09:00:00+00:00",
        announcement_body="Not part of the report",
        completed=False,
    )
    return store


@pytest.mark.unit
class TestWeekBounds:
    def test_midweek(self) -> None:
        start, end = week_bounds(NOW)

        assert start == datetime(2025, 3, 9, tzinfo=PARISH_TZ)
        assert end.date().isoformat() == "2025-03-15"

    def test_sunday_starts_its_own_week(self) -> None:
        start, _ = week_bounds(datetime(2025, 3, 9, 8, 0, tzinfo=PARISH_TZ))

        assert start.date().isoformat() == "2025-03-09"

    def test_offset_looks_back(self) -> None:
        start, end = week_bounds(NOW, week_offset=2)

        assert (start.date().isoformat(), end.date().isoformat()) == ("2025-02-23", "2025-03-01")


@pytest.mark.unit
class TestCompletionTime:
    submitted = datetime(2025, 3, 10, 9, 0, tzinfo=UTC)

    def test_rounds_partial_hours_up(self) -> None:
        result = completion_time(self.submitted, datetime(2025, 3, 11, 11, 30, tzinfo=UTC))

        assert result is not None
        assert (result.total_hours, result.display_text) == (27, "1d 3h")

    @pytest.mark.parametrize(
        ("completed", "display"),
        [
            (datetime(2025, 3, 12, 9, 0, tzinfo=UTC), "2d"),
            (datetime(2025, 3, 10, 14, 0, tzinfo=UTC), "5h"),
        ],
    )
    def test_display(self, completed: datetime, display: str) -> None:
        result = completion_time(self.submitted, completed)

        assert result is not None
        assert result.display_text == display

    def test_open_request_has_no_completion_time(self) -> None:
        assert completion_time(self.submitted, None) is None


@pytest.mark.unit
class TestBuildWeeklyReport:
    async def test_current_week(self, seeded: InMemoryRecordStore) -> None:
        report = await build_weekly_report(registry=RequestRegistry(seeded), now=NOW)

        assert (report.week_start, report.week_end) == ("2025-03-09", "2025-03-15")
        assert report.total_requests == 2
        assert report.completed_requests == 1
        assert report.pending_requests == 1
        assert report.avg_completion_time == 1.1
        assert report.requests_by_type["websiteUpdates"].completed == 1
        assert report.requests_by_type["graphicDesign"].pending == 1
        assert report.requests_by_type["flyerReviews"].total == 0
        assert (report.urgent_requests.total, report.urgent_requests.completed) == (1, 1)

    async def test_previous_week(self, seeded: InMemoryRecordStore) -> None:
        report = await build_weekly_report(registry=RequestRegistry(seeded), now=NOW, week_offset=1)

        assert report.week_start == "2025-03-02"
        assert report.total_requests == 1
        flyer = report.requests_by_type["flyerReviews"].requests[0]
        assert flyer.urgent is True
        assert flyer.description == "Youth retreat"
        assert report.avg_completion_time == 0.0

    async def test_empty_week(self, store: InMemoryRecordStore) -> None:
        report = await build_weekly_report(registry=RequestRegistry(store), now=NOW)

        assert report.total_requests == 0
        assert report.urgent_requests.avg_completion_time == 0.0


@pytest.mark.unit
class TestWeeklyReportEndpoint:
    def test_requires_admin(self, client: TestClient) -> None:
        response = client.get("/api/admin/weekly-report")

        assert response.status_code == 403

    async def test_json(self, client: TestClient, seeded: InMemoryRecordStore, admin_headers: dict[str, str]) -> None:
        with patch("portal.interface.admin_router.local_now", return_value=NOW):
            response = client.get("/api/admin/weekly-report", headers=admin_headers)

        assert response.status_code == 200
        assert response.headers["cache-control"] == "no-store"
        body = response.json()
        assert body["totalRequests"] == 2
        assert body["urgentRequests"]["avgCompletionTime"] == 1.1
        website = body["requestsByType"]["websiteUpdates"]["requests"][0]
        assert website["completionTime"]["displayText"] == "1d 3h"

    async def test_csv_download(
        self, client: TestClient, seeded: InMemoryRecordStore, admin_headers: dict[str, str]
    ) -> None:
        with patch("portal.interface.admin_router.local_now", return_value=NOW):
            response = client.get("/api/admin/weekly-report", params={"format": "csv"}, headers=admin_headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert response.headers["content-disposition"] == 'attachment; filename="weekly-report-2025-03-09.csv"'

        rows = list(csv.reader(io.StringIO(response.text)))
        assert rows[0] == ["Weekly Report: 2025-03-09 to 2025-03-15"]
        assert rows[5] == ["Urgent Requests: 1 (1 completed)"]
        assert rows[7][0] == "Request Type"
        assert rows[8] == [
            "Website Update",
            "Pat",
            "pat@example.org",
            "Update Lent schedule",
            "2025-03-10",
            "2025-03-11",
            "Completed",
            "Urgent",
            "1d 3h",
        ]
        assert rows[9][0] == "Graphic Design Request"
        assert rows[9][5:] == ["", "Pending", "Standard", ""]

    def test_negative_offset_is_400(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        response = client.get("/api/admin/weekly-report", params={"weekOffset": -1}, headers=admin_headers)

        assert response.status_code == 400
