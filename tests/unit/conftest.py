"""Pytest configuration and fixtures for unit tests."""

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from portal.core.config import settings
from portal.core.events import EventBus
from portal.core.scheduler_tracker import job_tracker
from portal.core.store import get_record_store
from portal.interface.graph_mailer import get_mailer
from portal.main import app
from tests.unit.mocks import FakeMailer, InMemoryRecordStore


USER_EMAIL = "alice@sainthelen.org"
OTHER_EMAIL = "bob@sainthelen.org"
ADMIN_EMAIL = "comms@sainthelen.org"


@pytest.fixture
def store() -> InMemoryRecordStore:
    """Provides a fresh in-memory record store for each test."""
    return InMemoryRecordStore()


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture(autouse=True)
def portal_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Deterministic settings for every test."""
    monkeypatch.setattr(settings, "admin_emails", ADMIN_EMAIL)
    monkeypatch.setattr(settings, "trust_user_header", True)
    monkeypatch.setattr(settings, "cron_secret", None)
    monkeypatch.setattr(settings, "secret_key", "test-secret")
    monkeypatch.setattr(settings, "portal_base_url", "https://portal.test")
    monkeypatch.setattr(settings, "adult_discipleship_coordinator_email", "discipleship@sainthelen.org")
    monkeypatch.setattr(settings, "summary_recipient_email", "office@sainthelen.org")
    job_tracker.reset()


@pytest.fixture
def client(
    store: InMemoryRecordStore, mailer: FakeMailer, event_bus: EventBus
) -> Generator[TestClient, None, None]:
    """Test client wired to the in-memory store, fake mailer, and a private event bus."""
    app.dependency_overrides[get_record_store] = lambda: store
    app.dependency_overrides[get_mailer] = lambda: mailer
    original_bus = app.state.event_bus
    app.state.event_bus = event_bus
    try:
        yield TestClient(app, headers={"X-User-Email": USER_EMAIL})
    finally:
        app.dependency_overrides.clear()
        app.state.event_bus = original_bus


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-User-Email": ADMIN_EMAIL}
