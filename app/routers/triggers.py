"""Cron trigger endpoints for the daily event lifecycle."""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.dependencies import get_db_client, verify_trigger
from app.jobs.daily_events import generate_daily_events
from app.jobs.event_transitions import close_events, open_events
from app.jobs.weekly_reset import weekly_reset
from supabase import Client

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(verify_trigger)])


async def _run(name: str, job: Awaitable[dict[str, Any]]) -> Any:
    """Await a job and turn any failure into a 500 carrying its message."""
    try:
        return await job
    except Exception as exc:
        logger.exception("Error in %s", name)
        return JSONResponse(status_code=500, content={"error": str(exc)})


@router.post("/generate-daily-events")
async def trigger_generate_daily_events(client: Client = Depends(get_db_client)) -> Any:
    """Create today's event for every squad."""
    return await _run("generate-daily-events", generate_daily_events(client))


@router.post("/open-events")
async def trigger_open_events(client: Client = Depends(get_db_client)) -> Any:
    """Open due events and notify squads."""
    return await _run("open-events", open_events(client))


@router.post("/close-events")
async def trigger_close_events(client: Client = Depends(get_db_client)) -> Any:
    """Settle and close due events."""
    return await _run("close-events", close_events(client))


@router.post("/weekly-reset")
async def trigger_weekly_reset(client: Client = Depends(get_db_client)) -> Any:
    """Reset weekly points and decay strikes."""
    return await _run("weekly-reset", weekly_reset(client))
