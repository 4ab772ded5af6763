"""Unit tests for the daily digest job."""

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from portal.core import schema
from portal.services import digest_service
from tests.unit.conftest import OTHER_EMAIL, USER_EMAIL
from tests.unit.mocks import FakeMailer, InMemoryRecordStore


NOW = datetime(2025, 3, 10, 7, 30, tzinfo=ZoneInfo("America/New_York"))


async def _opt_in(store: InMemoryRecordStore, email: str, *, enabled: bool = True) -> None:
    await store.create_record(
        collection=schema.USER_PREFERENCES,
        data={"user_email": email, "daily_digest_enabled": enabled},
    )


async def _task(store: InMemoryRecordStore, email: str, title: str, due_date: str, status: str = "pending") -> None:
    await store.create_record(
        collection=schema.TASKS,
        data={
            "user_email": email,
            "title": title,
            "category": "misc",
            "priority": "urgent",
            "status": status,
            "due_date": due_date,
        },
    )


@pytest.mark.unit
def test_digest_subject_format() -> None:
    assert digest_service.digest_subject(NOW, 2) == "Daily Digest: Monday, Mar 10 - 2 tasks today"


@pytest.mark.unit
class TestSendDailyDigests:
    """Tests for send_daily_digests."""

    async def test_sends_to_users_with_tasks(self, store: InMemoryRecordStore, mailer: FakeMailer) -> None:
        await _opt_in(store, USER_EMAIL)
        await _task(store, USER_EMAIL, "Print Bulletins", "2025-03-10")
        await _task(store, USER_EMAIL, "Late Flyer", "2025-03-07")

        summary = await digest_service.send_daily_digests(store=store, mailer=mailer, now=NOW)

        assert summary.emails_sent == 1
        assert summary.errors == []
        result = summary.results[0]
        assert result.email == USER_EMAIL
        assert result.tasks_today == 1
        # Overdue covers everything open and due on or before today
        assert result.overdue_count == 2

        message = mailer.sent_to(USER_EMAIL)[0]
        assert message["subject"] == "Daily Digest: Monday, Mar 10 - 1 tasks today"
        assert "Print Bulletins" in message["html"]
        assert "Late Flyer" in message["html"]
        assert "Monday, March 10, 2025" in message["html"]
        assert "#ef4444" in message["html"]

    async def test_user_with_nothing_due_is_skipped(self, store: InMemoryRecordStore, mailer: FakeMailer) -> None:
        await _opt_in(store, USER_EMAIL)
        await _task(store, USER_EMAIL, "Next Week", "2025-03-17")
        await _task(store, USER_EMAIL, "Done Already", "2025-03-09", status="completed")

        summary = await digest_service.send_daily_digests(store=store, mailer=mailer, now=NOW)

        assert summary.emails_sent == 0
        assert summary.results == []
        assert summary.errors == []
        assert mailer.sent == []

    async def test_opted_out_users_are_ignored(self, store: InMemoryRecordStore, mailer: FakeMailer) -> None:
        await _opt_in(store, USER_EMAIL, enabled=False)
        await _task(store, USER_EMAIL, "Print Bulletins", "2025-03-10")

        summary = await digest_service.send_daily_digests(store=store, mailer=mailer, now=NOW)

        assert summary.emails_sent == 0
        assert mailer.sent == []

    async def test_delivery_failure_is_recorded_per_user(
        self, store: InMemoryRecordStore, mailer: FakeMailer
    ) -> None:
        await _opt_in(store, USER_EMAIL)
        await _opt_in(store, OTHER_EMAIL)
        await _task(store, USER_EMAIL, "Print Bulletins", "2025-03-10")
        await _task(store, OTHER_EMAIL, "Record Video", "2025-03-10")
        mailer.fail_for.add(USER_EMAIL)

        summary = await digest_service.send_daily_digests(store=store, mailer=mailer, now=NOW)

        assert summary.success is True
        assert summary.emails_sent == 1
        assert [r.email for r in summary.results] == [OTHER_EMAIL]
        assert [e.email for e in summary.errors] == [USER_EMAIL]
        assert "Mailbox unavailable" in summary.errors[0].error

    async def test_unconfigured_mailer_skips_without_errors(self, store: InMemoryRecordStore) -> None:
        mailer = FakeMailer(configured=False)
        await _opt_in(store, USER_EMAIL)
        await _task(store, USER_EMAIL, "Print Bulletins", "2025-03-10")

        summary = await digest_service.send_daily_digests(store=store, mailer=mailer, now=NOW)

        assert summary.emails_sent == 0
        assert summary.errors == []
        assert mailer.sent == []

    async def test_preference_fetch_failure_propagates(self, store: InMemoryRecordStore, mailer: FakeMailer) -> None:
        store.fail_on.add(("list", schema.USER_PREFERENCES))

        with pytest.raises(Exception, match="simulated failure"):
            await digest_service.send_daily_digests(store=store, mailer=mailer, now=NOW)
