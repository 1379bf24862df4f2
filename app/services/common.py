"""Shared Supabase data access helpers."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from typing import Any

from postgrest import APIError

from app.config import settings
from app.utils.errors import ConflictError, ForbiddenError, InvalidInputError, NotFoundError
from app.utils.ttl_cache import TTLCache
from supabase import Client

UNIQUE_VIOLATION = "23505"
logger = logging.getLogger(__name__)
_membership_cache = TTLCache(settings.data_cache_max_entries)


def is_unique_violation(exc: APIError) -> bool:
    """Return True when PostgREST rejected a write on a unique constraint."""
    message = str(getattr(exc, "message", "")).lower()
    code = str(getattr(exc, "code", ""))
    return code == UNIQUE_VIOLATION or "duplicate key value" in message


class SupabaseService:
    """Thin helper wrapper around a Supabase client."""

    def __init__(self, client: Client) -> None:
        self.client = client

    def execute(self, query, default: Any = None) -> Any:
        """Execute a Supabase query and normalize API errors."""
        started = time.perf_counter()
        try:
            response = query.execute()
        except APIError as exc:
            message = str(getattr(exc, "message", None) or "Database request failed")
            if is_unique_violation(exc):
                raise ConflictError(message, code="DUPLICATE") from exc
            raise InvalidInputError(message) from exc

        elapsed_ms = (time.perf_counter() - started) * 1000
        threshold_ms = settings.slow_query_log_threshold_ms
        if threshold_ms > 0 and elapsed_ms >= threshold_ms:
            logger.warning("Slow Supabase query %.1fms", elapsed_ms)
        data = response.data
        return default if data is None and default is not None else data

    def select_one(
        self,
        table: str,
        filters: dict[str, Any],
        columns: str = "*",
        not_found_label: str | None = None,
    ) -> dict[str, Any]:
        """Select a single row and raise NotFoundError when missing."""
        query = self.client.table(table).select(columns)
        for key, value in filters.items():
            query = query.eq(key, value)
        rows = self.execute(query.limit(1), default=[])
        if not rows:
            label = not_found_label or table
            raise NotFoundError(label)
        return rows[0]

    def select_many(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        columns: str = "*",
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Select many rows from a table with optional equality filters."""
        query = self.client.table(table).select(columns)
        if filters:
            for key, value in filters.items():
                query = query.eq(key, value)
        if order_by:
            query = query.order(order_by, desc=descending)
        if limit:
            query = query.limit(limit)
        return self.execute(query, default=[])

    def insert_one(self, table: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Insert one row and return the created object."""
        rows = self.execute(self.client.table(table).insert(payload), default=[])
        if not rows:
            raise InvalidInputError(f"Failed to insert into {table}")
        return rows[0]

    def upsert_one(
        self,
        table: str,
        payload: dict[str, Any],
        on_conflict: str,
    ) -> dict[str, Any]:
        """Insert a row or replace the one sharing the ``on_conflict`` key."""
        rows = self.execute(
            self.client.table(table).upsert(payload, on_conflict=on_conflict),
            default=[],
        )
        if not rows:
            raise InvalidInputError(f"Failed to upsert into {table}")
        return rows[0]

    def insert_ignoring_duplicates(
        self,
        table: str,
        payload: dict[str, Any],
        on_conflict: str,
    ) -> dict[str, Any] | None:
        """Insert a guard row; return None when the ``on_conflict`` key already exists."""
        rows = self.execute(
            self.client.table(table).upsert(
                payload,
                on_conflict=on_conflict,
                ignore_duplicates=True,
            ),
            default=[],
        )
        return rows[0] if rows else None

    def update(
        self,
        table: str,
        filters: dict[str, Any],
        payload: dict[str, Any],
    ) -> list[dict[str, Any]]:
        """Update rows by equality filters and return the updated rows."""
        query = self.client.table(table).update(payload)
        for key, value in filters.items():
            query = query.eq(key, value)
        return self.execute(query, default=[])

    def update_in(
        self,
        table: str,
        column: str,
        values: Iterable[str],
        payload: dict[str, Any],
        filters: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Batch-update rows whose ``column`` is in ``values``."""
        ids = list(values)
        if not ids:
            return []
        query = self.client.table(table).update(payload).in_(column, ids)
        for key, value in (filters or {}).items():
            query = query.eq(key, value)
        return self.execute(query, default=[])

    def delete(self, table: str, filters: dict[str, Any]) -> list[dict[str, Any]]:
        """Delete rows by equality filters and return removed rows."""
        query = self.client.table(table).delete()
        for key, value in filters.items():
            query = query.eq(key, value)
        return self.execute(query, default=[])

    def squad_member_ids(self, squad_id: str) -> list[str]:
        """Return the user ids of every member of a squad."""
        rows = self.select_many("squad_members", filters={"squad_id": squad_id}, columns="user_id")
        return sorted({str(row["user_id"]) for row in rows})

    def is_squad_member(self, user_id: str, squad_id: str) -> bool:
        """Check if a user belongs to a squad."""
        membership_key = (str(user_id), str(squad_id))
        cached_member = _membership_cache.get(membership_key)
        if cached_member is not None:
            return bool(cached_member)

        rows = self.execute(
            self.client.table("squad_members")
            .select("user_id")
            .eq("user_id", user_id)
            .eq("squad_id", squad_id)
            .limit(1),
            default=[],
        )
        is_member = bool(rows)
        _membership_cache.set(membership_key, is_member, settings.membership_cache_ttl_seconds)
        return is_member

    def ensure_squad_member(self, user_id: str, squad_id: str) -> None:
        """Raise ForbiddenError when the user is not in the squad."""
        if not self.is_squad_member(user_id, squad_id):
            raise ForbiddenError("You are not a member of this squad")

