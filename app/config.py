"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Squad Game events service configuration.

    Values are read from environment variables (or a `.env` file). Game
    rules live next to the services that apply them; only deployment knobs
    belong here.
    """

    # Supabase
    supabase_url: str
    supabase_anon_key: str
    supabase_service_key: str
    supabase_http_max_connections: int = 100
    supabase_http_max_keepalive_connections: int = 50
    supabase_postgrest_timeout_seconds: int = 30

    # Service
    app_name: str = "Squad Game Events API"
    app_version: str = "1.0.0"
    environment: str = "development"
    log_level: str = "INFO"
    allowed_origins: str = "http://localhost:8081"

    # Event scheduler and cron triggers
    enable_scheduler: bool = True
    timezone: str = "UTC"
    cron_secret: str = ""
    weekly_reset_day: str = "mon"
    weekly_reset_hour: int = 0

    # Expo push gateway
    expo_push_url: str = "https://exp.host/--/api/v2/push/send"
    expo_access_token: str = ""
    push_timeout_seconds: int = 10
    push_batch_size: int = 100

    # Caches and slow-call logging
    auth_token_cache_ttl_seconds: int = 15
    auth_token_cache_max_entries: int = 1024
    membership_cache_ttl_seconds: int = 20
    data_cache_max_entries: int = 5000
    slow_request_log_threshold_ms: int = 0
    slow_query_log_threshold_ms: int = 0

    @property
    def origins_list(self) -> list[str]:
        """Parse comma-separated ALLOWED_ORIGINS into a list."""
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()  # type: ignore[call-arg]
