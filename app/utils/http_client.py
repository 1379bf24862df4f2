"""Shared outbound HTTP client for the Expo push gateway."""

from functools import lru_cache

import httpx

from app.config import settings


@lru_cache(maxsize=1)
def get_push_http_client() -> httpx.Client:
    """Return the process-wide pooled client used for push batches."""
    return httpx.Client(
        timeout=httpx.Timeout(max(1, settings.push_timeout_seconds)),
        limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
    )
