"""Background job modules for the daily event lifecycle."""

from app.jobs.daily_events import generate_daily_events
from app.jobs.event_transitions import close_events, open_events
from app.jobs.weekly_reset import weekly_reset

__all__ = [
    "close_events",
    "generate_daily_events",
    "open_events",
    "weekly_reset",
]
