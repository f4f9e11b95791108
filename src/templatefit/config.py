"""Settings for the fitting workflow, its reasoning backend and the run log.

Values come from `TEMPLATEFIT_*` environment variables, optionally read from a `.env` file
(`TEMPLATEFIT_ENV_FILE`, else `./.env`).
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings (prefix `TEMPLATEFIT_`)."""

    model_config = SettingsConfigDict(
        env_prefix="TEMPLATEFIT_",
        env_file=None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Core
    log_level: str = Field(default="INFO")

    # LLM
    openai_api_key: str | None = Field(default=None)
    openai_base_url: str | None = Field(default=None)
    openai_model: str = Field(default="gpt-4o-mini")
    openai_timeout_s: float = Field(default=120.0)
    analysis_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    validation_temperature: float = Field(default=0.2, ge=0.0, le=2.0)

    # Reasoning service
    # "llm" calls the model in-process, "http" talks to a deployed /analyze + /validate API.
    reasoning_backend: Literal["llm", "http"] = Field(default="llm")
    reasoning_base_url: str = Field(default="http://localhost:8000")
    reasoning_timeout_s: float = Field(default=120.0, ge=1.0, le=600.0)

    # Workflow
    max_iterations: int = Field(default=3, ge=1, le=10)
    report_success_on_exhaustion: bool = Field(default=True)
    missing_block_heuristic: bool = Field(default=True)
    default_line_height: float = Field(default=1.5, gt=0.0)

    # Run log (optional)
    runlog_backend: Literal["none", "file", "redis"] = Field(default="none")
    runlog_dir: Path = Field(default=Path("artifacts"))
    redis_url: str = Field(default="redis://localhost:6379/0")
    redis_key_prefix: str = Field(default="templatefit")
    redis_ttl_seconds: int = Field(default=60 * 60 * 24 * 7, ge=60)


def _env_file() -> Path | None:
    override = os.getenv("TEMPLATEFIT_ENV_FILE")
    if override:
        return Path(override)
    local = Path.cwd() / ".env"
    return local if local.exists() else None


def load_settings() -> Settings:
    """Load settings; an explicit `TEMPLATEFIT_ENV_FILE` wins over `./.env`."""

    env_file = _env_file()
    if env_file is None:
        return Settings()
    return Settings(_env_file=env_file)
