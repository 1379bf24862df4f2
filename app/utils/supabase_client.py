"""Supabase client singletons (anon + service-role)."""

from functools import lru_cache

import httpx
from supabase.lib.client_options import SyncClientOptions

from app.config import settings
from supabase import Client, create_client


def _pooled_http_client() -> httpx.Client:
    # Jobs fan out over worker threads, so the pool must cover their concurrency.
    max_connections = max(10, settings.supabase_http_max_connections)
    return httpx.Client(
        timeout=httpx.Timeout(max(1, settings.supabase_postgrest_timeout_seconds)),
        limits=httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max(
                5, min(max_connections, settings.supabase_http_max_keepalive_connections)
            ),
        ),
    )


@lru_cache(maxsize=2)
def _client_for(key: str) -> Client:
    timeout_seconds = max(1, settings.supabase_postgrest_timeout_seconds)
    options = SyncClientOptions(
        auto_refresh_token=False,
        persist_session=False,
        postgrest_client_timeout=timeout_seconds,
        storage_client_timeout=timeout_seconds,
        function_client_timeout=min(timeout_seconds, 30),
        httpx_client=_pooled_http_client(),
    )
    return create_client(settings.supabase_url, key, options=options)


def get_supabase_client() -> Client:
    """Return the anon-key client; only used to validate player JWTs."""
    return _client_for(settings.supabase_anon_key)


def get_service_client() -> Client:
    """Return the service-role client (bypasses RLS).

    Lifecycle jobs and crown writes go through this client; crown ownership
    and squad membership are checked in the services before any write.
    """
    return _client_for(settings.supabase_service_key)
