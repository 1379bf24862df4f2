"""Crown ledger: first-place crowns, headlines and rivalries."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any

from app.services.common import SupabaseService
from app.utils.errors import (
    ConflictError,
    CrownExpiredError,
    CrownNotFoundError,
    DeclarerIsRivalError,
    HeadlineEmptyError,
    HeadlineTooLongError,
    NotCrownOwnerError,
    RivalNotInSquadError,
    RivalsNotDistinctError,
)
from app.utils.time import is_expired, now_utc
from supabase import Client

CROWN_LIFETIME = timedelta(hours=24)
MAX_HEADLINE_LENGTH = 50

logger = logging.getLogger(__name__)


class CrownService:
    """Grant crowns to event winners and validate crown-holder actions."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def _crown_for_event(self, squad_id: str, event_id: str) -> dict[str, Any] | None:
        rows = self.db.select_many(
            "crown_holders",
            filters={"squad_id": squad_id, "source_event_id": event_id},
            limit=1,
        )
        return rows[0] if rows else None

    def award_crown(self, event_id: str, now: datetime | None = None) -> str | None:
        """Crown the rank-1 finisher of an event and return the crown id.

        Returns None when the event has no rank-1 submission. Calling it again
        for the same event returns the crown created the first time.
        """
        event = self.db.select_one(
            "daily_events",
            {"id": event_id},
            columns="id,squad_id",
            not_found_label="Event",
        )
        squad_id = str(event["squad_id"])

        winners = self.db.select_many(
            "event_submissions",
            filters={"event_id": event_id, "rank": 1},
            columns="user_id",
            limit=1,
        )
        if not winners:
            return None

        existing = self._crown_for_event(squad_id, event_id)
        if existing:
            return str(existing["id"])

        granted_at = now or now_utc()
        try:
            crown = self.db.insert_one(
                "crown_holders",
                {
                    "user_id": str(winners[0]["user_id"]),
                    "squad_id": squad_id,
                    "source_event_id": event_id,
                    "granted_at": granted_at.isoformat(),
                    "expires_at": (granted_at + CROWN_LIFETIME).isoformat(),
                },
            )
        except ConflictError:
            existing = self._crown_for_event(squad_id, event_id)
            if existing is None:
                raise
            return str(existing["id"])

        logger.info("Crown %s awarded to %s in squad %s", crown["id"], crown["user_id"], squad_id)
        return str(crown["id"])

    def _valid_crown(self, actor_id: str, crown_id: str, now: datetime) -> dict[str, Any]:
        rows = self.db.select_many("crown_holders", filters={"id": crown_id}, limit=1)
        if not rows:
            raise CrownNotFoundError(crown_id)
        crown = rows[0]
        if str(crown["user_id"]) != str(actor_id):
            raise NotCrownOwnerError()
        if is_expired(crown["expires_at"], now):
            raise CrownExpiredError()
        return crown

    def create_headline(
        self,
        actor_id: str,
        crown_id: str,
        content: str,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Set (or replace) the headline attached to the caller's crown."""
        crown = self._valid_crown(actor_id, crown_id, now or now_utc())

        trimmed = content.strip()
        if len(trimmed) > MAX_HEADLINE_LENGTH:
            raise HeadlineTooLongError(MAX_HEADLINE_LENGTH)
        if not trimmed:
            raise HeadlineEmptyError()

        return self.db.upsert_one(
            "headlines",
            {
                "user_id": str(crown["user_id"]),
                "squad_id": str(crown["squad_id"]),
                "crown_id": crown_id,
                "content": trimmed,
                "created_at": (now or now_utc()).isoformat(),
                "expires_at": crown["expires_at"],
            },
            on_conflict="crown_id",
        )

    def declare_rivalry(
        self,
        actor_id: str,
        crown_id: str,
        rival1_id: str,
        rival2_id: str,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Declare (or replace) the rivalry attached to the caller's crown."""
        crown = self._valid_crown(actor_id, crown_id, now or now_utc())
        holder_id = str(crown["user_id"])
        squad_id = str(crown["squad_id"])

        if rival1_id == rival2_id:
            raise RivalsNotDistinctError()
        if holder_id in {rival1_id, rival2_id}:
            raise DeclarerIsRivalError()

        members = set(self.db.squad_member_ids(squad_id))
        for position, rival_id in enumerate((rival1_id, rival2_id), start=1):
            if rival_id not in members:
                raise RivalNotInSquadError(position)

        return self.db.upsert_one(
            "active_rivalries",
            {
                "declarer_id": holder_id,
                "rival1_id": rival1_id,
                "rival2_id": rival2_id,
                "squad_id": squad_id,
                "crown_id": crown_id,
                "created_at": (now or now_utc()).isoformat(),
                "expires_at": crown["expires_at"],
            },
            on_conflict="crown_id",
        )

    def _latest_active(
        self,
        table: str,
        squad_id: str,
        order_by: str,
        now: datetime | None,
    ) -> dict[str, Any] | None:
        rows = self.db.execute(
            self.db.client.table(table)
            .select("*")
            .eq("squad_id", squad_id)
            .gt("expires_at", (now or now_utc()).isoformat())
            .order(order_by, desc=True)
            .limit(1),
            default=[],
        )
        return rows[0] if rows else None

    def active_crown(self, squad_id: str, now: datetime | None = None) -> dict[str, Any] | None:
        """Return the most recently granted crown that has not expired."""
        return self._latest_active("crown_holders", squad_id, "granted_at", now)

    def active_headline(self, squad_id: str, now: datetime | None = None) -> dict[str, Any] | None:
        """Return the newest unexpired headline in a squad."""
        return self._latest_active("headlines", squad_id, "created_at", now)

    def active_rivalry(self, squad_id: str, now: datetime | None = None) -> dict[str, Any] | None:
        """Return the newest unexpired rivalry in a squad."""
        return self._latest_active("active_rivalries", squad_id, "created_at", now)

    def is_crown_holder(self, user_id: str, squad_id: str, now: datetime | None = None) -> bool:
        """Return True when ``user_id`` holds the squad's active crown."""
        crown = self.active_crown(squad_id, now)
        return crown is not None and str(crown["user_id"]) == str(user_id)

    def are_rivals(
        self,
        user_a: str,
        user_b: str,
        squad_id: str,
        now: datetime | None = None,
    ) -> bool:
        """Return True when the two users are declared rivals, in either order."""
        rows = self.db.execute(
            self.db.client.table("active_rivalries")
            .select("rival1_id,rival2_id")
            .eq("squad_id", squad_id)
            .gt("expires_at", (now or now_utc()).isoformat()),
            default=[],
        )
        pair = {str(user_a), str(user_b)}
        return any({str(row["rival1_id"]), str(row["rival2_id"])} == pair for row in rows)
