"""Engine settings read from the environment and an optional .env file."""

from datetime import time
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Runtime settings. Every field can be overridden by an environment variable."""

    # Application
    app_name: str = "Visitor Scheduling Engine"
    app_version: str = "0.1.0"
    app_env: str = Field(default="development")
    log_level: str = Field(default="INFO")

    # Storage (libSQL file or Turso remote)
    turso_database_url: str | None = Field(default=None)
    turso_auth_token: str | None = Field(default=None)
    db_write_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for a transactional write batch on transient errors",
    )

    # Facility calendar
    facility_timezone: str = Field(
        default="UTC",
        description="IANA timezone all stored meeting times are expressed in",
    )
    workday_start: time | None = Field(
        default=time(9, 0),
        description="Default working-hours start when a principal has none",
    )
    workday_end: time | None = Field(
        default=time(18, 0),
        description="Default working-hours end when a principal has none",
    )
    slot_granularity_minutes: int = Field(default=30, ge=5, le=240)

    # Scheduling policy
    delegation_conflict_policy: Literal["replace", "reject"] = Field(
        default="replace",
        description=(
            "What assign_delegate does when the employee already has an active "
            "secretary: deactivate the prior assignment or reject the request"
        ),
    )
    advisory_block_categories: list[str] = Field(
        default_factory=list,
        description="Availability block categories that never count as conflicts",
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Settings are read once per process."""
    return Settings()


settings = get_settings()
