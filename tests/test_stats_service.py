"""User stats, settlement guard and weekly reset tests."""

from __future__ import annotations

from datetime import date

import httpx
import pytest

from app.services.stats_service import StatsService, next_streak
from app.utils.errors import InvalidInputError

SQUAD_ID = "squad-1"
EVENT = {"id": "event-1", "squad_id": SQUAD_ID, "date": "2026-10-19"}


@pytest.mark.parametrize(
    ("last_date", "streak", "expected"),
    [
        (None, 0, 1),
        (date(2026, 10, 18), 4, 5),
        (date(2026, 10, 19), 4, 4),
        (date(2026, 10, 15), 4, 1),
    ],
)
def test_next_streak(last_date: date | None, streak: int, expected: int) -> None:
    """Consecutive days extend the streak, a gap restarts it."""
    assert next_streak(last_date, streak, date(2026, 10, 19)) == expected


def test_award_points_creates_stats_row(fake_db) -> None:
    stats = StatsService(fake_db)
    stats.award_points("user-a", SQUAD_ID, 20, date(2026, 10, 19))

    row = stats.get_stats("user-a", SQUAD_ID)
    assert row["points_weekly"] == 20
    assert row["points_lifetime"] == 20
    assert row["streak_count"] == 1
    assert row["last_participation_date"] == "2026-10-19"


def test_award_points_extends_streak_from_yesterday(fake_db) -> None:
    fake_db.tables["user_stats"] = [
        {
            "user_id": "user-a",
            "squad_id": SQUAD_ID,
            "points_weekly": 5,
            "points_lifetime": 50,
            "streak_count": 3,
            "strikes_14d": 1,
            "last_participation_date": "2026-10-18",
        }
    ]
    StatsService(fake_db).award_points("user-a", SQUAD_ID, 10, date(2026, 10, 19))

    row = fake_db.rows("user_stats", user_id="user-a")[0]
    assert (row["points_weekly"], row["points_lifetime"]) == (15, 60)
    assert row["streak_count"] == 4
    assert row["strikes_14d"] == 1


def test_missed_penalty_floors_at_zero_and_adds_strike(fake_db) -> None:
    """The penalty breaks the streak and never drives points negative."""
    fake_db.tables["user_stats"] = [
        {
            "user_id": "user-c",
            "squad_id": SQUAD_ID,
            "points_weekly": 10,
            "points_lifetime": 100,
            "streak_count": 6,
            "strikes_14d": 0,
            "last_participation_date": "2026-10-18",
        }
    ]
    StatsService(fake_db).apply_missed_penalty("user-c", SQUAD_ID)

    row = fake_db.rows("user_stats", user_id="user-c")[0]
    assert row["points_weekly"] == 0
    assert row["points_lifetime"] == 85
    assert row["streak_count"] == 0
    assert row["strikes_14d"] == 1


def test_missed_penalty_creates_missing_stats_row(fake_db) -> None:
    StatsService(fake_db).apply_missed_penalty("user-c", SQUAD_ID)

    row = fake_db.rows("user_stats", user_id="user-c")[0]
    assert row["points_weekly"] == 0
    assert row["strikes_14d"] == 1


def test_settle_once_applies_points_a_single_time(fake_db) -> None:
    """A second close run must not award the same event twice."""
    stats = StatsService(fake_db)

    assert stats.settle_once(EVENT, "user-a", "points", 20) is True
    assert stats.settle_once(EVENT, "user-a", "points", 20) is False

    assert stats.get_stats("user-a", SQUAD_ID)["points_lifetime"] == 20
    assert len(fake_db.rows("event_settlements", event_id="event-1")) == 1


def test_settle_once_penalizes_a_single_time(fake_db) -> None:
    stats = StatsService(fake_db)

    stats.settle_once(EVENT, "user-c", "penalty", -15)
    stats.settle_once(EVENT, "user-c", "penalty", -15)

    assert stats.get_stats("user-c", SQUAD_ID)["strikes_14d"] == 1


def test_settle_once_releases_claim_when_stats_write_fails(fake_db, monkeypatch) -> None:
    """A failed write leaves the pair unsettled so the next run retries it."""
    stats = StatsService(fake_db)

    def _fail(*_args, **_kwargs):
        raise InvalidInputError("write failed")

    monkeypatch.setattr(stats, "award_points", _fail)
    with pytest.raises(InvalidInputError):
        stats.settle_once(EVENT, "user-a", "points", 20)

    assert fake_db.rows("event_settlements", event_id="event-1") == []


def test_settle_once_retries_after_transport_failure(fake_db, monkeypatch) -> None:
    """A timeout talking to the database must not leave the user settled without points."""
    stats = StatsService(fake_db)

    def _timeout(*_args, **_kwargs):
        raise httpx.ReadTimeout("read timed out")

    with monkeypatch.context() as patch:
        patch.setattr(stats, "award_points", _timeout)
        with pytest.raises(httpx.ReadTimeout):
            stats.settle_once(EVENT, "user-a", "points", 20)

    assert fake_db.rows("event_settlements", event_id="event-1") == []
    assert stats.settle_once(EVENT, "user-a", "points", 20) is True
    assert stats.get_stats("user-a", SQUAD_ID)["points_lifetime"] == 20


def test_weekly_reset_zeroes_points_and_decays_strikes(fake_db) -> None:
    fake_db.tables["user_stats"] = [
        {
            "user_id": "user-a",
            "squad_id": SQUAD_ID,
            "points_weekly": 30,
            "points_lifetime": 120,
            "streak_count": 2,
            "strikes_14d": 2,
        },
        {
            "user_id": "user-b",
            "squad_id": SQUAD_ID,
            "points_weekly": 0,
            "points_lifetime": 40,
            "streak_count": 0,
            "strikes_14d": 0,
        },
    ]

    totals = StatsService(fake_db).weekly_reset()

    assert totals == {"points_reset": 1, "strikes_decayed": 1}
    user_a = fake_db.rows("user_stats", user_id="user-a")[0]
    user_b = fake_db.rows("user_stats", user_id="user-b")[0]
    assert (user_a["points_weekly"], user_a["points_lifetime"], user_a["strikes_14d"]) == (
        0,
        120,
        1,
    )
    assert user_b["strikes_14d"] == 0
