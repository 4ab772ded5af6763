"""Tests for staff triage endpoints."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from portal.agents import summary_agent
from portal.core import schema
from portal.core.config import settings
from portal.core.events import EventBus
from tests.unit.mocks import FakeMailer, InMemoryRecordStore


async def _seed_announcements(store: InMemoryRecordStore) -> list[dict]:
    first = await store.create_record(
        collection=schema.ANNOUNCEMENTS,
        data={
            "name": "Jane",
            "email": "jane@example.org",
            "ministry": "Small Groups",
            "announcement_body": "Small group sign-ups open",
            "date_of_event": "2025-03-20",
            "completed": False,
            "requires_approval": True,
            "approval_status": "pending",
        },
    )
    second = await store.create_record(
        collection=schema.ANNOUNCEMENTS,
        data={
            "name": "Tom",
            "email": "tom@example.org",
            "ministry": "Music Ministry",
            "announcement_body": "Choir rehearsal moves to Thursday",
            "completed": True,
            "requires_approval": False,
            "approval_status": "approved",
        },
    )
    return [first, second]


@pytest.mark.unit
class TestAdminGate:
    def test_non_admin_is_forbidden(self, client: TestClient) -> None:
        response = client.get("/api/admin/requests", params={"type": "announcements"})

        assert response.status_code == 403
        assert response.json() == {"error": "Forbidden"}

    def test_anonymous_is_unauthorized(self, client: TestClient) -> None:
        response = client.get(
            "/api/admin/requests", params={"type": "announcements"}, headers={"X-User-Email": ""}
        )

        assert response.status_code == 401

    def test_admin_match_ignores_case(self, client: TestClient) -> None:
        response = client.get(
            "/api/admin/requests",
            params={"type": "announcements"},
            headers={"X-User-Email": "Comms@SaintHelen.org"},
        )

        assert response.status_code == 200


@pytest.mark.unit
class TestListing:
    async def test_newest_first(
        self, client: TestClient, store: InMemoryRecordStore, admin_headers: dict[str, str]
    ) -> None:
        first, second = await _seed_announcements(store)

        response = client.get("/api/admin/requests", params={"type": "announcements"}, headers=admin_headers)

        assert response.status_code == 200
        assert [r["id"] for r in response.json()["records"]] == [second["id"], first["id"]]
        assert response.json()["records"][1]["announcementBody"] == "Small group sign-ups open"

    async def test_hide_completed(
        self, client: TestClient, store: InMemoryRecordStore, admin_headers: dict[str, str]
    ) -> None:
        first, _ = await _seed_announcements(store)

        response = client.get(
            "/api/admin/requests",
            params={"type": "announcements", "hideCompleted": "true"},
            headers=admin_headers,
        )

        assert [r["id"] for r in response.json()["records"]] == [first["id"]]

    def test_unknown_type_is_400(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        response = client.get("/api/admin/requests", params={"type": "parkingPermits"}, headers=admin_headers)

        assert response.status_code == 400

    async def test_pending_approvals(
        self, client: TestClient, store: InMemoryRecordStore, admin_headers: dict[str, str]
    ) -> None:
        first, _ = await _seed_announcements(store)

        response = client.get("/api/admin/approvals", headers=admin_headers)

        assert [r["id"] for r in response.json()["records"]] == [first["id"]]


@pytest.mark.unit
class TestMarkCompleted:
    async def test_set_is_idempotent_and_reopen_clears_date(
        self, client: TestClient, store: InMemoryRecordStore, admin_headers: dict[str, str]
    ) -> None:
        first, _ = await _seed_announcements(store)
        payload = {"table": "announcements", "recordId": first["id"], "completed": True}

        client.post("/api/admin/markCompleted", json=payload, headers=admin_headers)
        response = client.post("/api/admin/markCompleted", json=payload, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["record"]["completed"] is True
        assert response.json()["record"]["completedDate"] is not None

        response = client.post(
            "/api/admin/markCompleted", json={**payload, "completed": False}, headers=admin_headers
        )

        stored = await store.get_record(collection=schema.ANNOUNCEMENTS, record_id=first["id"])
        assert stored["completed"] is False
        assert stored["completed_date"] is None

    async def test_other_table(
        self, client: TestClient, store: InMemoryRecordStore, admin_headers: dict[str, str]
    ) -> None:
        record = await store.create_record(
            collection=schema.SMS_REQUESTS, data={"name": "Jane", "sms_message": "Hi", "completed": False}
        )

        response = client.post(
            "/api/admin/markCompleted",
            json={"table": "smsRequests", "recordId": record["id"], "completed": True},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert store.all(schema.SMS_REQUESTS)[0]["completed"] is True

    def test_missing_record_is_404(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        response = client.post(
            "/api/admin/markCompleted",
            json={"table": "announcements", "recordId": "missing", "completed": True},
            headers=admin_headers,
        )

        assert response.status_code == 404
        assert response.json() == {"error": "Record not found"}

    async def test_publishes_request_updated(
        self, client: TestClient, store: InMemoryRecordStore, admin_headers: dict[str, str], event_bus: EventBus
    ) -> None:
        first, _ = await _seed_announcements(store)
        queue = event_bus.subscribe()

        client.post(
            "/api/admin/markCompleted",
            json={"table": "announcements", "recordId": first["id"], "completed": True},
            headers=admin_headers,
        )

        event = queue.get_nowait()
        assert event.type == "request_updated"
        assert event.data["record"]["id"] == first["id"]


@pytest.mark.unit
class TestStatusUpdates:
    async def test_override_status(
        self, client: TestClient, store: InMemoryRecordStore, admin_headers: dict[str, str]
    ) -> None:
        first, _ = await _seed_announcements(store)

        response = client.post(
            "/api/admin/updateOverrideStatus",
            json={"recordId": first["id"], "overrideStatus": "forceInclude"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["record"]["overrideStatus"] == "forceInclude"

    async def test_invalid_override_status_is_400(
        self, client: TestClient, store: InMemoryRecordStore, admin_headers: dict[str, str]
    ) -> None:
        first, _ = await _seed_announcements(store)

        response = client.post(
            "/api/admin/updateOverrideStatus",
            json={"recordId": first["id"], "overrideStatus": "always"},
            headers=admin_headers,
        )

        assert response.status_code == 400

    async def test_design_completed_sets_completed(
        self, client: TestClient, store: InMemoryRecordStore, admin_headers: dict[str, str]
    ) -> None:
        record = await store.create_record(
            collection=schema.GRAPHIC_DESIGN_REQUESTS,
            data={"name": "Jane", "project_type": "Poster", "status": "Pending", "completed": False},
        )

        client.post(
            "/api/admin/updateDesignStatus",
            json={"recordId": record["id"], "status": "In Design"},
            headers=admin_headers,
        )
        assert store.all(schema.GRAPHIC_DESIGN_REQUESTS)[0]["completed"] is False

        response = client.post(
            "/api/admin/updateDesignStatus",
            json={"recordId": record["id"], "status": "Completed"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        stored = store.all(schema.GRAPHIC_DESIGN_REQUESTS)[0]
        assert stored["status"] == "Completed"
        assert stored["completed"] is True


@pytest.mark.unit
class TestApprovals:
    async def test_approve(
        self,
        client: TestClient,
        store: InMemoryRecordStore,
        mailer: FakeMailer,
        admin_headers: dict[str, str],
    ) -> None:
        first, _ = await _seed_announcements(store)

        response = client.post(
            "/api/admin/approvals", json={"recordId": first["id"], "action": "approve"}, headers=admin_headers
        )

        assert response.status_code == 200
        stored = store.all(schema.ANNOUNCEMENTS)[0]
        assert stored["approval_status"] == "approved"
        assert stored["approved_by"] == "comms@sainthelen.org"
        assert mailer.sent_to("jane@example.org")[0]["subject"] == "Your announcement was approved"

    async def test_reject_with_reason(
        self,
        client: TestClient,
        store: InMemoryRecordStore,
        mailer: FakeMailer,
        admin_headers: dict[str, str],
    ) -> None:
        first, _ = await _seed_announcements(store)

        client.post(
            "/api/admin/approvals",
            json={"recordId": first["id"], "action": "reject", "reason": "Date conflicts with Easter"},
            headers=admin_headers,
        )

        stored = store.all(schema.ANNOUNCEMENTS)[0]
        assert stored["approval_status"] == "rejected"
        assert stored["rejection_reason"] == "Date conflicts with Easter"
        assert "Date conflicts with Easter" in mailer.sent_to("jane@example.org")[0]["html"]

    def test_unknown_action_is_400(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        response = client.post(
            "/api/admin/approvals", json={"recordId": "rec1", "action": "maybe"}, headers=admin_headers
        )

        assert response.status_code == 400


@pytest.mark.unit
class TestSummarize:
    def test_empty_selection_is_400(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        response = client.post("/api/admin/summarizeItems", json={"recordIds": []}, headers=admin_headers)

        assert response.status_code == 400

    def test_no_valid_records(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        with patch("portal.services.summary_service.get_summary_agent") as get_agent:
            response = client.post(
                "/api/admin/summarizeItems", json={"recordIds": ["missing"]}, headers=admin_headers
            )

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "No valid records found for those IDs"}
        get_agent.assert_not_called()

    async def test_summary_is_emailed(
        self,
        client: TestClient,
        store: InMemoryRecordStore,
        mailer: FakeMailer,
        admin_headers: dict[str, str],
    ) -> None:
        first, second = await _seed_announcements(store)
        agent = MagicMock()
        agent.run = AsyncMock(return_value=SimpleNamespace(output="  Bulletin copy for two items.  "))

        with patch("portal.services.summary_service.get_summary_agent", return_value=agent):
            response = client.post(
                "/api/admin/summarizeItems",
                json={"recordIds": [first["id"], "missing", second["id"]]},
                headers=admin_headers,
            )

        assert response.status_code == 200
        assert response.json() == {"success": True, "summary": "Bulletin copy for two items."}
        prompt = agent.run.await_args.args[0]
        assert "Announcement #1:" in prompt
        assert "Announcement #2:" in prompt
        assert "Choir rehearsal moves to Thursday" in prompt

        sent = mailer.sent_to("office@sainthelen.org")
        assert sent[0]["subject"] == "Manual Summarize - Selected Items"
        assert "Bulletin copy for two items." in sent[0]["html"]

    async def test_agent_failure_is_500(
        self, client: TestClient, store: InMemoryRecordStore, admin_headers: dict[str, str]
    ) -> None:
        first, _ = await _seed_announcements(store)
        agent = MagicMock()
        agent.run = AsyncMock(side_effect=RuntimeError("model unavailable"))

        with patch("portal.services.summary_service.get_summary_agent", return_value=agent):
            response = client.post(
                "/api/admin/summarizeItems", json={"recordIds": [first["id"]]}, headers=admin_headers
            )

        assert response.status_code == 500
        assert response.json() == {"error": "AI summary failed: model unavailable"}

    async def test_missing_ai_credentials_is_500(
        self,
        client: TestClient,
        store: InMemoryRecordStore,
        admin_headers: dict[str, str],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        first, _ = await _seed_announcements(store)
        monkeypatch.setattr(settings, "openrouter_api_key", None)
        monkeypatch.setattr(summary_agent._AgentState, "instance", None)

        response = client.post("/api/admin/summarizeItems", json={"recordIds": [first["id"]]}, headers=admin_headers)

        assert response.status_code == 500
        assert response.json()["error"].startswith("AI summary failed: OpenRouter API key credential not configured")
