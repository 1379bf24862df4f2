"""Event status transitions and close-time settlement."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from app.services.common import SupabaseService
from app.services.crown_service import CrownService
from app.services.event_rules import (
    STATUS_CLOSED,
    STATUS_OPEN,
    STATUS_SCHEDULED,
    is_ranked,
    missed_members,
    points_for,
    rank_submissions,
)
from app.services.push_service import PushService
from app.services.stats_service import MISSED_EVENT_PENALTY, StatsService
from app.utils.time import now_utc
from supabase import Client

EVENT_COLUMNS = "id,squad_id,event_type,date,status"

logger = logging.getLogger(__name__)


class EventTransitionService:
    """Move events through scheduled -> open -> closed and settle results."""

    def __init__(self, client: Client, push: PushService | None = None) -> None:
        self.db = SupabaseService(client)
        self.stats = StatsService(client)
        self.crowns = CrownService(client)
        self._client = client
        self._push = push

    @property
    def push(self) -> PushService:
        """Push dispatcher, built on first use so closing events never needs one."""
        if self._push is None:
            self._push = PushService(self._client)
        return self._push

    def _due(self, status: str, time_column: str, now: datetime | None) -> list[dict[str, Any]]:
        return self.db.execute(
            self.db.client.table("daily_events")
            .select(EVENT_COLUMNS)
            .eq("status", status)
            .lte(time_column, (now or now_utc()).isoformat()),
            default=[],
        )

    def due_to_open(self, now: datetime | None = None) -> list[dict[str, Any]]:
        """Return scheduled events whose opening time has passed."""
        return self._due(STATUS_SCHEDULED, "opens_at", now)

    def due_to_close(self, now: datetime | None = None) -> list[dict[str, Any]]:
        """Return open events whose closing time has passed."""
        return self._due(STATUS_OPEN, "closes_at", now)

    def mark_open(self, event_ids: Iterable[str]) -> list[dict[str, Any]]:
        """Flip scheduled events to open in one update; returns the rows flipped."""
        return self.db.update_in(
            "daily_events",
            "id",
            event_ids,
            {"status": STATUS_OPEN},
            filters={"status": STATUS_SCHEDULED},
        )

    def mark_closed(self, event_ids: Iterable[str]) -> list[dict[str, Any]]:
        """Flip open events to closed in one update; returns the rows flipped."""
        return self.db.update_in(
            "daily_events",
            "id",
            event_ids,
            {"status": STATUS_CLOSED},
            filters={"status": STATUS_OPEN},
        )

    def submissions(self, event_id: str) -> list[dict[str, Any]]:
        return self.db.select_many(
            "event_submissions",
            filters={"event_id": event_id},
            columns="id,user_id,score,rank,submitted_at",
        )

    def rank_event(self, event: dict[str, Any]) -> dict[str, int]:
        """Write ranks onto the event's scored submissions."""
        submissions = self.submissions(str(event["id"]))
        ranks = rank_submissions(str(event["event_type"]), submissions)
        for submission in submissions:
            rank = ranks.get(str(submission["id"]))
            if rank is not None and submission.get("rank") != rank:
                self.db.update("event_submissions", {"id": str(submission["id"])}, {"rank": rank})
        return ranks

    def settle_event(self, event: dict[str, Any]) -> dict[str, Any]:
        """Rank, award points, penalize absentees and crown the winner of one event."""
        event_id = str(event["id"])
        event_type = str(event["event_type"])

        if is_ranked(event_type):
            self.rank_event(event)

        submissions = self.submissions(event_id)
        awarded = 0
        for submission in submissions:
            points = points_for(event_type, submission.get("rank"))
            if self.stats.settle_once(event, str(submission["user_id"]), "points", points):
                awarded += 1

        penalized = 0
        absent = missed_members(self.db.squad_member_ids(str(event["squad_id"])), submissions)
        for user_id in absent:
            if self.stats.settle_once(event, user_id, "penalty", -MISSED_EVENT_PENALTY):
                penalized += 1
                logger.info("Applied missed penalty to user %s for event %s", user_id, event_id)

        crown_id = self.crowns.award_crown(event_id)
        return {
            "event_id": event_id,
            "awarded": awarded,
            "penalized": penalized,
            "crown_id": crown_id,
        }
