"""Daily event generation scheduled job."""

from __future__ import annotations

import logging
from typing import Any

from app.services.scheduler_service import EventSchedulerService
from app.utils.fanout import count_outcomes, settle_all
from app.utils.supabase_client import get_service_client
from app.utils.time import now_utc
from supabase import Client

logger = logging.getLogger(__name__)


async def generate_daily_events(
    client: Client | None = None,
    service: EventSchedulerService | None = None,
) -> dict[str, Any]:
    """Ensure every squad has an event for its local today."""
    scheduler = service or EventSchedulerService(client or get_service_client())
    now = now_utc()

    squads = scheduler.list_squads()
    outcomes = await settle_all(
        squads,
        lambda squad: scheduler.generate_for_squad(squad, now=now),
        label="squad",
    )
    succeeded, failed = count_outcomes(outcomes)
    created = sum(1 for outcome in outcomes if outcome.ok and outcome.result)

    logger.info(
        "generate_daily_events completed: %s created, %s ok, %s failed",
        created,
        succeeded,
        failed,
    )
    return {
        "message": f"Generated events for {succeeded} squads, {failed} failed",
        "timestamp": now.isoformat(),
    }
