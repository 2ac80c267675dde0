"""
Centralised settings loader.

Every field can be overridden by an environment variable of the same
name (case-insensitive) or by a line in `.env`.
"""

from __future__ import annotations
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# ------------------------------------------------------------------ #
#  Master settings model
# ------------------------------------------------------------------ #
class _Settings(BaseSettings):
    # ─── runtime / DB / auth ─────────────────────────────────────────
    env_name: str = "local"
    database_url: str = "sqlite+aiosqlite:///./whattoeat.db"
    jwt_secret: str = "changeme"
    jwt_ttl_minutes: int = 60 * 24 * 7
    log_level: str = "INFO"

    # ─── selection engine knobs ─────────────────────────────────────
    default_exclude_recent_days: int = Field(7, ge=0, le=365)
    candidate_limit: int = Field(1000, ge=1)
    history_retention_days: int = Field(365, ge=1)

    # allow other teammates’ env-vars without crashing
    model_config = SettingsConfigDict(
        extra="ignore", env_file=".env", env_file_encoding="utf-8"
    )


# ------------------------------------------------------------------ #
#  Cached singleton accessor
# ------------------------------------------------------------------ #
@lru_cache
def _cached() -> _Settings:  # pragma: no cover
    return _Settings()  # type: ignore[call-arg]


settings: _Settings = _cached()
