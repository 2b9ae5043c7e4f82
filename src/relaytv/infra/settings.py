"""
Application settings for RelayTV.

This module defines all process-level configuration using Pydantic BaseSettings.
Settings are read once at startup and never re-read.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Main application settings using Pydantic BaseSettings."""

    # HTTP / WebSocket transport
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=4000, alias="PORT")

    # Timers
    poll_interval_sec: float = Field(default=60.0, gt=0, alias="POLL_INTERVAL_SEC")
    tick_interval_sec: float = Field(default=1.0, gt=0, alias="TICK_INTERVAL_SEC")
    probe_timeout_sec: float = Field(default=15.0, gt=0, alias="PROBE_TIMEOUT_SEC")

    # Live detection
    feed_url_template: str = Field(
        default="http://rssgen.xyz/rumble/{name}",
        alias="FEED_URL_TEMPLATE",
    )

    # Channel file (JSON or YAML); empty means the built-in default channel
    channel_config: str = Field(default="", alias="CHANNEL_CONFIG")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")  # json|console
    env: str = Field(default="dev", alias="ENV")  # dev|prod|test

    model_config: SettingsConfigDict = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )


def _resolve_env_file() -> str | None:
    # 1) Explicit override
    explicit = os.getenv("RELAYTV_ENV_FILE")
    if explicit and Path(explicit).is_file():
        return explicit

    # 2) CWD .env
    cwd_env = Path.cwd() / ".env"
    if cwd_env.is_file():
        return str(cwd_env)

    # 3) Walk up from this file to find nearest .env
    here = Path(__file__).resolve()
    for parent in here.parents:
        candidate = parent / ".env"
        if candidate.is_file():
            return str(candidate)
    return None


# Global settings instance (load from best-effort .env discovery)
_env_file = _resolve_env_file()
settings = Settings(_env_file=_env_file) if _env_file else Settings()  # type: ignore[call-arg]
