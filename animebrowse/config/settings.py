"""Application settings loaded from environment variables via pydantic-settings.

# --- HOW SETTINGS WORK -----------------------------------------------------
#
# Values are read from two sources, in priority order:
#
#   1. Environment variables, e.g. CACHE_BACKEND=memory   (always wins)
#   2. The .env file in the working directory             (local development)
#
# Field `cache_db_path` maps to env var `CACHE_DB_PATH` automatically.
# Defaults apply when neither source sets a field.  Static tuning values
# (capacities, TTL, page size) live in config/config.yaml instead; see
# animebrowse/config/loader.py.
# ---------------------------------------------------------------------------
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """animeBrowse deploy-time settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Catalog API ===
    jikan_base_url: str = "https://api.jikan.moe/v4"
    http_timeout_seconds: float = 15.0

    # === Cache medium ===
    # "sqlite" persists across restarts; "memory" is per-process.
    cache_backend: Literal["sqlite", "memory"] = "sqlite"
    cache_db_path: str = "data/anime_cache.db"

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"
