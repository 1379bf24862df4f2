"""Daily event generation for every squad."""

from __future__ import annotations

import logging
import random
from datetime import date, datetime, time
from typing import Any
from zoneinfo import ZoneInfo

from app.services.common import SupabaseService
from app.services.event_rules import (
    EVENT_DURATION,
    EVENT_TYPES,
    FIRST_OPEN_HOUR,
    LAST_OPEN_HOUR,
    STATUS_SCHEDULED,
)
from app.utils.errors import ConflictError
from app.utils.time import local_to_utc, local_today, now_utc, resolve_timezone
from supabase import Client

# Members with this many recent strikes are skipped when picking a judge.
JUDGE_STRIKE_LIMIT = 3

logger = logging.getLogger(__name__)


class EventSchedulerService:
    """Create one scheduled event per squad per local calendar day."""

    def __init__(self, client: Client, rng: random.Random | None = None) -> None:
        self.db = SupabaseService(client)
        self.rng = rng or random.Random()

    def list_squads(self) -> list[dict[str, Any]]:
        """Return every squad with its timezone."""
        return self.db.select_many("squads", columns="id,timezone")

    def pick_open_time(self, day: date, zone: ZoneInfo) -> datetime:
        """Pick a uniformly random local opening minute on ``day``, returned in UTC."""
        clock = time(
            hour=self.rng.randint(FIRST_OPEN_HOUR, LAST_OPEN_HOUR),
            minute=self.rng.randint(0, 59),
        )
        return local_to_utc(day, clock, zone)

    def select_judge(self, squad_id: str) -> str | None:
        """Pick a random member in good standing, or any member if nobody is."""
        members = self.db.squad_member_ids(squad_id)
        if not members:
            return None

        strikes = {
            str(row["user_id"]): int(row.get("strikes_14d") or 0)
            for row in self.db.select_many(
                "user_stats",
                filters={"squad_id": squad_id},
                columns="user_id,strikes_14d",
            )
        }
        eligible = [user_id for user_id in members if strikes.get(user_id, 0) < JUDGE_STRIKE_LIMIT]
        return self.rng.choice(eligible or members)

    def draw_poll(self) -> dict[str, Any] | None:
        """Return one random active poll question, if the bank has any."""
        polls = self.db.select_many(
            "poll_bank",
            filters={"active": True},
            columns="question,options",
        )
        if not polls:
            return None
        return self.rng.choice(polls)

    def existing_event(self, squad_id: str, day: date) -> dict[str, Any] | None:
        rows = self.db.select_many(
            "daily_events",
            filters={"squad_id": squad_id, "date": day.isoformat()},
            columns="id",
            limit=1,
        )
        return rows[0] if rows else None

    def generate_for_squad(
        self, squad: dict[str, Any], now: datetime | None = None
    ) -> dict[str, Any] | None:
        """Create today's event for one squad; return None if it already exists."""
        squad_id = str(squad["id"])
        zone = resolve_timezone(squad.get("timezone"))
        today = local_today(zone, now)

        if self.existing_event(squad_id, today):
            logger.info("Event already exists for squad %s on %s", squad_id, today)
            return None

        event_type = self.rng.choice(EVENT_TYPES)
        opens_at = self.pick_open_time(today, zone)
        closes_at = opens_at + EVENT_DURATION

        poll_question = None
        poll_options = None
        if event_type == "POLL":
            poll = self.draw_poll()
            if poll:
                poll_question = poll["question"]
                poll_options = list(poll["options"])

        payload = {
            "squad_id": squad_id,
            "date": today.isoformat(),
            "event_type": event_type,
            "opens_at": opens_at.isoformat(),
            "closes_at": closes_at.isoformat(),
            "judge_id": self.select_judge(squad_id),
            "status": STATUS_SCHEDULED,
            "poll_question": poll_question,
            "poll_options": poll_options,
            "created_at": (now or now_utc()).isoformat(),
        }
        try:
            event = self.db.insert_one("daily_events", payload)
        except ConflictError:
            logger.info("Concurrent run already created squad %s event for %s", squad_id, today)
            return None

        logger.info(
            "Created %s event for squad %s at %s", event_type, squad_id, opens_at.isoformat()
        )
        return event
