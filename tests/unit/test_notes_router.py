"""Tests for the command-center note endpoints."""

import pytest
from fastapi.testclient import TestClient

from tests.unit.conftest import OTHER_EMAIL, USER_EMAIL


def _create(client: TestClient, content: str, **fields) -> dict:
    response = client.post("/api/notes", json={"content": content, **fields})
    assert response.status_code == 201
    return response.json()["note"]


@pytest.mark.unit
class TestNoteEndpoints:
    """CRUD, pinning, and ownership behaviour of /api/notes."""

    def test_create_uses_defaults(self, client: TestClient) -> None:
        note = _create(client, "Call the printer")

        assert note["userEmail"] == USER_EMAIL
        assert note["color"] == "yellow"
        assert note["isPinned"] is False

    def test_empty_content_is_400(self, client: TestClient) -> None:
        response = client.post("/api/notes", json={"content": ""})

        assert response.status_code == 400

    def test_pinned_notes_listed_first(self, client: TestClient) -> None:
        first = _create(client, "Bulletin deadline Tuesday")
        second = _create(client, "Order palms")

        pinned = client.post("/api/notes/toggle-pin", json={"id": first["id"]}).json()["note"]
        listed = client.get("/api/notes").json()

        assert pinned["isPinned"] is True
        assert listed["success"] is True
        assert [n["id"] for n in listed["notes"]] == [first["id"], second["id"]]

    def test_toggle_twice_unpins(self, client: TestClient) -> None:
        note = _create(client, "Order palms", isPinned=True)

        toggled = client.post("/api/notes/toggle-pin", json={"id": note["id"]}).json()["note"]

        assert toggled["isPinned"] is False

    def test_pinned_only_filter(self, client: TestClient) -> None:
        _create(client, "Loose note")
        pinned = _create(client, "Pinned note", isPinned=True, color="blue")

        listed = client.get("/api/notes", params={"pinnedOnly": "true"}).json()["notes"]

        assert [n["id"] for n in listed] == [pinned["id"]]
        assert listed[0]["color"] == "blue"

    def test_patch_content(self, client: TestClient) -> None:
        note = _create(client, "Draft")

        updated = client.patch("/api/notes", json={"id": note["id"], "content": "Final"}).json()["note"]

        assert updated["content"] == "Final"
        assert updated["isPinned"] is False

    def test_patch_null_content_is_400(self, client: TestClient) -> None:
        note = _create(client, "Draft")

        response = client.patch("/api/notes", json={"id": note["id"], "content": None})

        assert response.status_code == 400
        assert "content cannot be null" in response.json()["error"]

    def test_foreign_note_looks_missing(self, client: TestClient) -> None:
        note = _create(client, "Mine")
        stranger = {"X-User-Email": OTHER_EMAIL}

        responses = [
            client.patch("/api/notes", json={"id": note["id"], "content": "Yours"}, headers=stranger),
            client.post("/api/notes/toggle-pin", json={"id": note["id"]}, headers=stranger),
            client.delete("/api/notes", params={"id": note["id"]}, headers=stranger),
        ]

        assert [r.status_code for r in responses] == [404, 404, 404]
        assert all(r.json() == {"error": "Note not found"} for r in responses)
        assert client.get("/api/notes", headers=stranger).json()["notes"] == []

    def test_delete(self, client: TestClient) -> None:
        note = _create(client, "Temporary")

        response = client.delete("/api/notes", params={"id": note["id"]})

        assert response.json() == {"success": True}
        assert client.get("/api/notes").json()["notes"] == []
