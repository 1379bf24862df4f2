"""Daily event kinds, ranking order and point rules."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

EVENT_TYPES = ("LIVE_SELFIE", "PRESSURE_TAP", "POLL")
EVENT_DURATION = timedelta(minutes=5)

# Local wall-clock hours an event may open in: 08:00 through 21:59.
FIRST_OPEN_HOUR = 8
LAST_OPEN_HOUR = 21

BASE_POINTS = 10
RANK_BONUS = {1: 10, 2: 5}

# Kinds ranked when they close, mapped to "lower score wins".
RANKED_EVENT_TYPES = {"PRESSURE_TAP": True}

STATUS_SCHEDULED = "scheduled"
STATUS_OPEN = "open"
STATUS_CLOSED = "closed"


def is_ranked(event_type: str) -> bool:
    return event_type in RANKED_EVENT_TYPES


def rank_submissions(event_type: str, submissions: list[dict[str, Any]]) -> dict[str, int]:
    """Return ``{submission_id: rank}`` for scored submissions.

    Order is by score (direction per kind), then earliest ``submitted_at``,
    then user id so equal entries always rank the same way. Unscored
    submissions are left unranked.
    """
    lower_wins = RANKED_EVENT_TYPES.get(event_type, True)
    scored = [row for row in submissions if row.get("score") is not None]
    scored.sort(
        key=lambda row: (
            float(row["score"]) if lower_wins else -float(row["score"]),
            str(row.get("submitted_at") or ""),
            str(row["user_id"]),
        )
    )
    return {str(row["id"]): position for position, row in enumerate(scored, start=1)}


def points_for(event_type: str, rank: int | None) -> int:
    """Return participation points plus any rank bonus the kind grants."""
    points = BASE_POINTS
    if is_ranked(event_type) and rank:
        points += RANK_BONUS.get(int(rank), 0)
    return points


def missed_members(member_ids: list[str], submissions: list[dict[str, Any]]) -> list[str]:
    """Return squad members without a submission, in member order."""
    submitted = {str(row["user_id"]) for row in submissions}
    return [user_id for user_id in member_ids if user_id not in submitted]
