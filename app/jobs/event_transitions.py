"""Minute-by-minute open and close jobs for daily events."""

from __future__ import annotations

import logging
from typing import Any

from app.services.event_service import EventTransitionService
from app.utils.fanout import settle_all
from app.utils.supabase_client import get_service_client
from app.utils.time import now_utc
from supabase import Client

logger = logging.getLogger(__name__)


def _service(
    client: Client | None, service: EventTransitionService | None
) -> EventTransitionService:
    return service or EventTransitionService(client or get_service_client())


async def open_events(
    client: Client | None = None,
    service: EventTransitionService | None = None,
) -> dict[str, Any]:
    """Open scheduled events that reached their start time and notify their squads."""
    engine = _service(client, service)
    now = now_utc()
    timestamp = now.isoformat()

    due = engine.due_to_open(now)
    if not due:
        return {"message": "No events to open", "timestamp": timestamp}

    opened = engine.mark_open([str(event["id"]) for event in due])
    opened_ids = {str(row["id"]) for row in opened}
    # Another run may have flipped some of them first; only notify for ours.
    to_notify = [event for event in due if str(event["id"]) in opened_ids]

    reports = await settle_all(to_notify, engine.push.notify_event_opened, label="push")
    for outcome in reports:
        if not outcome.ok:
            logger.warning("Notifications for event %s failed", outcome.item["id"])

    event_ids = [str(event["id"]) for event in to_notify]
    logger.info("open_events completed for %s events", len(event_ids))
    return {
        "message": f"Opened {len(event_ids)} events",
        "eventIds": event_ids,
        "timestamp": timestamp,
    }


async def close_events(
    client: Client | None = None,
    service: EventTransitionService | None = None,
) -> dict[str, Any]:
    """Settle and close open events that reached their end time."""
    engine = _service(client, service)
    now = now_utc()
    timestamp = now.isoformat()

    due = engine.due_to_close(now)
    if not due:
        return {"message": "No events to close", "timestamp": timestamp}

    outcomes = await settle_all(due, engine.settle_event, label="event")
    settled_ids = [str(outcome.item["id"]) for outcome in outcomes if outcome.ok]
    failed_ids = [str(outcome.item["id"]) for outcome in outcomes if not outcome.ok]

    closed = engine.mark_closed(settled_ids)
    event_ids = [str(row["id"]) for row in closed]

    logger.info(
        "close_events completed: %s closed, %s failed", len(event_ids), len(failed_ids)
    )
    payload: dict[str, Any] = {
        "message": f"Closed {len(event_ids)} events",
        "eventIds": event_ids,
        "timestamp": timestamp,
    }
    if failed_ids:
        payload["failedIds"] = failed_ids
    return payload
