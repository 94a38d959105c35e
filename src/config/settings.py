"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ─────────────────────────────────────────────────
#
# This class uses pydantic-settings to read configuration from TWO sources
# (in priority order):
#
#   1. **Environment variables** - e.g., SPOTIFY_REFRESH_TOKEN=AQB...
#      (highest priority - always wins)
#   2. **.env file** - key=value lines in the project root .env file
#      (lower priority - used for local development)
#
# Field name `goodreads_user_id` maps to env var `GOODREADS_USER_ID`.
#
# Credentials default to "" which means "not configured": a source whose
# credentials are empty is simply not wired up (see get_enabled_sources).
#
# Per-source timing (freshness windows, poll intervals, store TTLs) lives
# in config/config.yaml, not here; see src/config/loader.py.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """nowfeed application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Reading list (Goodreads RSS) ===
    goodreads_user_id: str = ""
    goodreads_shelf: str = "currently-reading"

    # === Playback (Spotify Web API) ===
    spotify_client_id: str = ""
    spotify_client_secret: str = ""
    spotify_refresh_token: str = ""

    # === Cache store ===
    cache_backend: str = "sqlite"  # "sqlite" (durable) or "memory"
    cache_db_path: str = "data/cache.db"

    # === Scheduler ===
    scheduler_enabled: bool = True
    scheduler_tick_seconds: float = 60.0

    # === Upstream HTTP ===
    http_timeout_seconds: float = 10.0

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"
    cors_allowed_origins: str = "*"  # Comma-separated list

    def get_enabled_sources(self) -> list[str]:
        """Return the source names whose credentials are configured."""
        sources: list[str] = []
        if self.goodreads_user_id:
            sources.append("reading_list")
        if self.spotify_client_id and self.spotify_client_secret and self.spotify_refresh_token:
            sources.append("playback")
        return sources

    def get_cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_allowed_origins.split(",") if origin.strip()]
