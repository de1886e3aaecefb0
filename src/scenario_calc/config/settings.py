"""Runtime settings — loaded from ``SCENARIO_CALC_*`` env vars or ``.env``."""

from __future__ import annotations

from datetime import date
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process-level settings for the CLI, API and batch runner."""

    log_level: str = Field(default="INFO", description="Root log level")
    max_workers: int = Field(
        default=4,
        ge=1,
        le=64,
        description="Thread-pool size when calculating several periods at once. "
                    "1 = sequential.",
    )
    default_period_start: date = Field(
        default=date(2025, 1, 1),
        description="Start bound used when a time-series scenario has no start_date",
    )
    default_period_end: date = Field(
        default=date(2031, 12, 31),
        description="End bound used when a time-series scenario has no end_date",
    )
    result_precision: int | None = Field(
        default=None,
        ge=0,
        le=12,
        description="Round stored values to this many decimals. None = full float precision.",
    )
    api_host: str = Field(default="127.0.0.1", description="Bind host for the RPC server")
    api_port: int = Field(default=8000, ge=1, le=65535, description="Bind port for the RPC server")

    model_config = SettingsConfigDict(
        env_prefix="SCENARIO_CALC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Shared settings instance."""
    return Settings()
