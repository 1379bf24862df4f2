"""APScheduler setup for the daily event lifecycle."""

from __future__ import annotations

from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from app.config import settings
from app.jobs.daily_events import generate_daily_events
from app.jobs.event_transitions import close_events, open_events
from app.jobs.weekly_reset import weekly_reset

scheduler = AsyncIOScheduler(timezone=settings.timezone)

JOBS = (
    # Hourly so every squad timezone reaches its new local day; runs are idempotent.
    ("generate_daily_events", generate_daily_events, {"minute": 0}),
    ("open_events", open_events, {"minute": "*"}),
    ("close_events", close_events, {"minute": "*"}),
    (
        "weekly_reset",
        weekly_reset,
        {
            "day_of_week": settings.weekly_reset_day,
            "hour": settings.weekly_reset_hour,
            "minute": 0,
        },
    ),
)


def register_jobs() -> list[str]:
    """Register lifecycle jobs not already present; return the ids added."""
    added: list[str] = []
    for job_id, func, schedule in JOBS:
        if scheduler.get_job(job_id) is not None:
            continue
        scheduler.add_job(
            func,
            CronTrigger(timezone=settings.timezone, **schedule),
            id=job_id,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        added.append(job_id)
    return added


def job_summary() -> dict[str, Any]:
    """Scheduler state and each job's next run time, for health reporting."""
    if not scheduler.running:
        return {"state": "disabled" if not settings.enable_scheduler else "stopped"}

    jobs = {}
    for job in scheduler.get_jobs():
        next_run = getattr(job, "next_run_time", None)
        jobs[job.id] = next_run.isoformat() if next_run else None
    return {"state": "running", "timezone": settings.timezone, "jobs": jobs}
