"""Time utility helpers."""

from __future__ import annotations

import logging
from datetime import UTC, date, datetime, time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


def now_utc() -> datetime:
    """Return current timezone-aware UTC datetime."""
    return datetime.now(tz=UTC)


def resolve_timezone(name: str | None) -> ZoneInfo:
    """Return the IANA zone for ``name``, falling back to UTC when unknown."""
    if not name:
        return ZoneInfo("UTC")
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, falling back to UTC", name)
        return ZoneInfo("UTC")


def local_today(zone: ZoneInfo, now: datetime | None = None) -> date:
    """Return the calendar date at ``now`` as seen in ``zone``."""
    return (now or now_utc()).astimezone(zone).date()


def local_to_utc(day: date, clock: time, zone: ZoneInfo) -> datetime:
    """Combine a local wall-clock time with ``zone`` and convert it to UTC.

    Ambiguous times during a DST fall-back resolve to the first occurrence.
    """
    return datetime.combine(day, clock, tzinfo=zone).astimezone(UTC)


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse a PostgREST timestamp into an aware UTC datetime."""
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def parse_iso_date(value: str | date | None, default: date | None = None) -> date:
    """Parse an ISO date string with an optional fallback default."""
    if isinstance(value, date):
        return value
    if not value:
        if default is None:
            raise ValueError("Missing required date value")
        return default
    return date.fromisoformat(value[:10])


def is_expired(expires_at: str | datetime, now: datetime | None = None) -> bool:
    """Return True once ``expires_at`` is no longer in the future."""
    return parse_timestamp(expires_at) <= (now or now_utc())
