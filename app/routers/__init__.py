"""API router package."""

from app.routers import crowns, triggers

__all__ = [
    "crowns",
    "triggers",
]
