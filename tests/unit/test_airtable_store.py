"""Tests for the Airtable record store using a mocked HTTP transport."""

import json

import httpx
import pytest

from portal.core.airtable_store import AirtableRecordStore
from portal.core.config import settings
from portal.core.store import DatabaseError, RecordNotFoundError
from portal.services import preference_service, reminder_service


@pytest.fixture(autouse=True)
def airtable_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "airtable_personal_token", "pat-test")
    monkeypatch.setattr(settings, "airtable_base_id", "appParish")
    monkeypatch.setattr(settings, "airtable_api_url", "https://airtable.test/v0")


def _airtable_record(record_id: str, **fields) -> dict:
    return {"id": record_id, "createdTime": "2025-03-01T12:00:00.000Z", "fields": fields}


@pytest.mark.unit
async def test_create_sends_fields_and_flattens_response() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        body = json.loads(request.content)
        return httpx.Response(200, json=_airtable_record("recA1", **body["fields"]))

    store = AirtableRecordStore(transport=httpx.MockTransport(handler))
    record = await store.create_record(collection="tasks", data={"title": "Bulletin", "user_email": "a@b.org"})

    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/v0/appParish/tasks"
    assert request.headers["Authorization"] == "Bearer pat-test"
    assert json.loads(request.content)["typecast"] is True

    assert record["id"] == "recA1"
    assert record["title"] == "Bulletin"
    assert record["created_at"]


@pytest.mark.unit
async def test_get_missing_record_raises_not_found() -> None:
    store = AirtableRecordStore(transport=httpx.MockTransport(lambda _: httpx.Response(404, json={})))

    with pytest.raises(RecordNotFoundError):
        await store.get_record(collection="tasks", record_id="recMissing")


@pytest.mark.unit
async def test_server_error_is_database_error() -> None:
    store = AirtableRecordStore(transport=httpx.MockTransport(lambda _: httpx.Response(500, text="boom")))

    with pytest.raises(DatabaseError, match="Failed to list records"):
        await store.list_all_records(collection="tasks")


@pytest.mark.unit
async def test_list_follows_offset_and_renders_formula() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if "offset" not in request.url.params:
            return httpx.Response(200, json={"records": [_airtable_record("rec1", title="A")], "offset": "itr2"})
        return httpx.Response(200, json={"records": [_airtable_record("rec2", title="B")]})

    store = AirtableRecordStore(transport=httpx.MockTransport(handler))
    records = await store.list_all_records(
        collection="tasks", filter_query='user_email = "a@b.org" && completed = false', sort="-due_date"
    )

    assert [r["id"] for r in records] == ["rec1", "rec2"]
    params = seen[0].url.params
    assert params["filterByFormula"] == "AND({user_email} = 'a@b.org', NOT({completed}))"
    assert params["sort[0][field]"] == "due_date"
    assert params["sort[0][direction]"] == "desc"
    assert seen[1].url.params["offset"] == "itr2"


@pytest.mark.unit
async def test_missing_token_fails_init(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "airtable_personal_token", None)

    with pytest.raises(ValueError, match="AIRTABLE_PERSONAL_TOKEN"):
        await AirtableRecordStore().init()


@pytest.mark.unit
async def test_unchecked_reminder_box_reads_as_inactive() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        paused = _airtable_record(
            "recR1", user_email="a@b.org", title="Paused", category="misc", frequency="daily", priority="normal"
        )
        return httpx.Response(200, json={"records": [paused]})

    store = AirtableRecordStore(transport=httpx.MockTransport(handler))
    reminders = await reminder_service.list_reminders(store=store, user_email="a@b.org", active_only=False)

    assert reminders[0].is_active is False


@pytest.mark.unit
async def test_opted_out_preferences_stay_opted_out() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        row = _airtable_record("recP1", user_email="a@b.org", daily_digest_time="07:30:00", theme="dark")
        return httpx.Response(200, json={"records": [row]})

    store = AirtableRecordStore(transport=httpx.MockTransport(handler))
    prefs = await preference_service.get_preferences(store=store, user_email="a@b.org")

    assert prefs.daily_digest_enabled is False
    assert prefs.email_notifications is False
    assert prefs.theme == "dark"
