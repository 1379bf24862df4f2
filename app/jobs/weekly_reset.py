"""Weekly points reset scheduled job."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from app.services.stats_service import StatsService
from app.utils.supabase_client import get_service_client
from app.utils.time import now_utc
from supabase import Client

logger = logging.getLogger(__name__)


async def weekly_reset(client: Client | None = None) -> dict[str, Any]:
    """Zero weekly points and decay strike counters."""
    stats = StatsService(client or get_service_client())
    totals = await asyncio.to_thread(stats.weekly_reset)

    logger.info(
        "weekly_reset completed: %s point rows reset, %s strike rows decayed",
        totals["points_reset"],
        totals["strikes_decayed"],
    )
    return {"message": "Weekly reset completed", "timestamp": now_utc().isoformat()}
