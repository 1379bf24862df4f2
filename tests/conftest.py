"""Pytest fixtures for backend tests."""

from __future__ import annotations

import os
from datetime import UTC, datetime, timedelta


def _set_default_env() -> None:
    os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
    os.environ.setdefault("SUPABASE_ANON_KEY", "anon-key")
    os.environ.setdefault("SUPABASE_SERVICE_KEY", "service-key")
    os.environ.setdefault("ENABLE_SCHEDULER", "false")
    os.environ.setdefault("CRON_SECRET", "cron-secret")
    os.environ.setdefault("MEMBERSHIP_CACHE_TTL_SECONDS", "0")


# Settings are read when app modules are first imported by test modules.
_set_default_env()

import pytest  # noqa: E402
from fastapi import Header  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from tests.fakes import FakeSupabase  # noqa: E402

SQUAD_ID = "squad-1"
MEMBERS = ("user-a", "user-b", "user-c")


def iso(value: datetime) -> str:
    return value.isoformat()


@pytest.fixture
def now() -> datetime:
    return datetime.now(tz=UTC).replace(microsecond=0)


@pytest.fixture
def fake_db() -> FakeSupabase:
    """A squad of three members with profiles and no events yet."""
    return FakeSupabase(
        {
            "squads": [{"id": SQUAD_ID, "timezone": "UTC"}],
            "squad_members": [{"squad_id": SQUAD_ID, "user_id": user_id} for user_id in MEMBERS],
            "profiles": [
                {"id": user_id, "expo_push_token": None, "language": None} for user_id in MEMBERS
            ],
        }
    )


@pytest.fixture
def add_event(fake_db: FakeSupabase, now: datetime):
    """Insert a daily event row and return it."""

    def _add(
        event_id: str = "event-1",
        status: str = "open",
        event_type: str = "PRESSURE_TAP",
        opens_at: datetime | None = None,
        closes_at: datetime | None = None,
        squad_id: str = SQUAD_ID,
        day: str = "2026-10-19",
    ) -> dict:
        opens = opens_at or now - timedelta(minutes=10)
        row = {
            "id": event_id,
            "squad_id": squad_id,
            "date": day,
            "event_type": event_type,
            "opens_at": iso(opens),
            "closes_at": iso(closes_at or opens + timedelta(minutes=5)),
            "status": status,
            "judge_id": None,
            "poll_question": None,
            "poll_options": None,
        }
        fake_db.tables.setdefault("daily_events", []).append(row)
        return row

    return _add


@pytest.fixture
def add_submission(fake_db: FakeSupabase, now: datetime):
    """Insert an event submission row."""

    def _add(
        user_id: str,
        score: float | None = None,
        rank: int | None = None,
        event_id: str = "event-1",
        submitted_at: datetime | None = None,
    ) -> dict:
        row = {
            "id": f"{event_id}-{user_id}",
            "event_id": event_id,
            "user_id": user_id,
            "score": score,
            "rank": rank,
            "submitted_at": iso(submitted_at or now - timedelta(minutes=8)),
        }
        fake_db.tables.setdefault("event_submissions", []).append(row)
        return row

    return _add


@pytest.fixture
def add_crown(fake_db: FakeSupabase, now: datetime):
    """Insert a crown row for a user."""

    def _add(
        user_id: str = "user-a",
        crown_id: str = "crown-1",
        expires_at: datetime | None = None,
        squad_id: str = SQUAD_ID,
        source_event_id: str | None = "event-1",
        granted_at: datetime | None = None,
    ) -> dict:
        row = {
            "id": crown_id,
            "user_id": user_id,
            "squad_id": squad_id,
            "source_event_id": source_event_id,
            "granted_at": iso(granted_at or now - timedelta(hours=1)),
            "expires_at": iso(expires_at or now + timedelta(hours=23)),
        }
        fake_db.tables.setdefault("crown_holders", []).append(row)
        return row

    return _add


@pytest.fixture
def client(fake_db: FakeSupabase):
    """FastAPI test client wired to the in-memory database.

    The caller's user id is taken from the ``X-User-Id`` header.
    """
    from app.dependencies import get_current_user_id, get_db_client
    from app.main import app

    def _user_id(x_user_id: str = Header(...)) -> str:
        return x_user_id

    app.dependency_overrides[get_db_client] = lambda: fake_db
    app.dependency_overrides[get_current_user_id] = _user_id
    yield TestClient(app)
    app.dependency_overrides.clear()
