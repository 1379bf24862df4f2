"""FastAPI dependency injection helpers.

Two kinds of callers reach the API: players, who present a Supabase JWT,
and the cron runner, which presents the cron secret or the service-role key.
"""

from __future__ import annotations

import logging
import secrets
from typing import Any

from fastapi import Depends, Header

from app.config import settings
from app.utils.errors import TriggerUnauthorizedError, UnauthorizedError
from app.utils.supabase_client import get_service_client, get_supabase_client
from app.utils.ttl_cache import TTLCache
from supabase import Client

logger = logging.getLogger(__name__)
_token_cache = TTLCache(settings.auth_token_cache_max_entries)


def _bearer_token(authorization: str | None) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise UnauthorizedError("Missing authorization header")
    return authorization.split(" ", 1)[1]


def get_authenticated_user(authorization: str = Header(None)) -> Any:
    """Resolve the Supabase user behind a player's bearer JWT.

    Validated users are cached briefly by token so a burst of crown reads
    costs one auth round-trip.

    Raises:
        UnauthorizedError: 401 if the header is missing, malformed, or
            the token cannot be validated.
    """
    token = _bearer_token(authorization)
    cached_user = _token_cache.get(token)
    if cached_user is not None:
        return cached_user

    try:
        response = get_supabase_client().auth.get_user(token)
    except Exception as exc:
        raise UnauthorizedError("Invalid or expired token") from exc
    if not response or not response.user:
        raise UnauthorizedError("Invalid token")

    _token_cache.set(token, response.user, settings.auth_token_cache_ttl_seconds)
    return response.user


def get_current_user_id(user: Any = Depends(get_authenticated_user)) -> str:
    """Return the authenticated player's id."""
    return str(user.id)


def is_trigger_authorized(authorization: str | None) -> bool:
    """Accept the cron bearer secret, or any header carrying the service-role key."""
    if not authorization:
        return False
    if settings.cron_secret and secrets.compare_digest(
        authorization, f"Bearer {settings.cron_secret}"
    ):
        return True
    return bool(settings.supabase_service_key) and settings.supabase_service_key in authorization


def verify_trigger(authorization: str = Header(None)) -> None:
    """Reject cron trigger calls without valid credentials."""
    if not is_trigger_authorized(authorization):
        logger.warning("Rejected cron trigger call without valid credentials")
        raise TriggerUnauthorizedError()


def get_db_client() -> Client:
    """Return the service-role client used by event and crown services."""
    return get_service_client()
