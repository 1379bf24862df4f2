"""Per-squad player stats: points, streaks, strikes and the weekly reset."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any

from app.services.common import SupabaseService
from app.utils.time import now_utc, parse_iso_date
from supabase import Client

MISSED_EVENT_PENALTY = 15
STATS_KEY = "user_id,squad_id"
SETTLEMENT_KEY = "event_id,user_id"

logger = logging.getLogger(__name__)


def next_streak(last_date: date | None, streak: int, today: date) -> int:
    """Return the participation streak after taking part on ``today``."""
    if last_date is None or last_date < today - timedelta(days=1):
        return 1
    if last_date == today - timedelta(days=1):
        return streak + 1
    return streak


class StatsService:
    """Read-modify-write helpers for the ``user_stats`` table."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def get_stats(self, user_id: str, squad_id: str) -> dict[str, Any] | None:
        """Return the stats row for a user/squad pair, if any."""
        rows = self.db.select_many(
            "user_stats",
            filters={"user_id": user_id, "squad_id": squad_id},
            limit=1,
        )
        return rows[0] if rows else None

    def award_points(
        self, user_id: str, squad_id: str, points: int, played_on: date
    ) -> dict[str, Any]:
        """Add points to weekly and lifetime totals and advance the streak."""
        current = self.get_stats(user_id, squad_id) or {}
        last_date = current.get("last_participation_date")
        streak = next_streak(
            parse_iso_date(last_date) if last_date else None,
            int(current.get("streak_count") or 0),
            played_on,
        )
        return self.db.upsert_one(
            "user_stats",
            {
                "user_id": user_id,
                "squad_id": squad_id,
                "points_weekly": int(current.get("points_weekly") or 0) + points,
                "points_lifetime": int(current.get("points_lifetime") or 0) + points,
                "streak_count": streak,
                "strikes_14d": int(current.get("strikes_14d") or 0),
                "last_participation_date": played_on.isoformat(),
                "updated_at": now_utc().isoformat(),
            },
            on_conflict=STATS_KEY,
        )

    def apply_missed_penalty(self, user_id: str, squad_id: str) -> dict[str, Any]:
        """Deduct the missed-event penalty, break the streak and add a strike."""
        current = self.get_stats(user_id, squad_id) or {}
        return self.db.upsert_one(
            "user_stats",
            {
                "user_id": user_id,
                "squad_id": squad_id,
                "points_weekly": max(
                    0, int(current.get("points_weekly") or 0) - MISSED_EVENT_PENALTY
                ),
                "points_lifetime": max(
                    0, int(current.get("points_lifetime") or 0) - MISSED_EVENT_PENALTY
                ),
                "streak_count": 0,
                "strikes_14d": int(current.get("strikes_14d") or 0) + 1,
                "last_participation_date": current.get("last_participation_date"),
                "updated_at": now_utc().isoformat(),
            },
            on_conflict=STATS_KEY,
        )

    def settle_once(
        self,
        event: dict[str, Any],
        user_id: str,
        kind: str,
        amount: int,
    ) -> bool:
        """Apply points or a penalty for one (event, user) exactly once.

        A row in ``event_settlements`` claims the pair first. Returns False
        when an earlier run already settled it. The claim is released if the
        stats write fails so the next close run can retry.
        """
        event_id = str(event["id"])
        squad_id = str(event["squad_id"])
        claim = self.db.insert_ignoring_duplicates(
            "event_settlements",
            {
                "event_id": event_id,
                "user_id": user_id,
                "squad_id": squad_id,
                "kind": kind,
                "amount": amount,
                "created_at": now_utc().isoformat(),
            },
            on_conflict=SETTLEMENT_KEY,
        )
        if claim is None:
            logger.info("Event %s already settled for user %s", event_id, user_id)
            return False

        try:
            if kind == "penalty":
                self.apply_missed_penalty(user_id, squad_id)
            else:
                self.award_points(user_id, squad_id, amount, parse_iso_date(event["date"]))
        except Exception:
            self.db.delete("event_settlements", {"event_id": event_id, "user_id": user_id})
            raise
        return True

    def weekly_reset(self) -> dict[str, int]:
        """Zero weekly points for everyone and decay positive strike counters by one."""
        reset_rows = self.db.execute(
            self.db.client.table("user_stats")
            .update({"points_weekly": 0, "updated_at": now_utc().isoformat()})
            .gt("points_weekly", 0),
            default=[],
        )

        struck = self.db.execute(
            self.db.client.table("user_stats").select("*").gt("strikes_14d", 0),
            default=[],
        )
        for row in struck:
            self.db.update(
                "user_stats",
                {"user_id": str(row["user_id"]), "squad_id": str(row["squad_id"])},
                {
                    "strikes_14d": max(0, int(row["strikes_14d"]) - 1),
                    "updated_at": now_utc().isoformat(),
                },
            )

        return {"points_reset": len(reset_rows), "strikes_decayed": len(struck)}
