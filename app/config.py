"""Application configuration using pydantic-settings."""

from __future__ import annotations

from datetime import date

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from ``FESTIVAL_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FESTIVAL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_title: str = "Festival Schedule Service"
    log_level: str = "INFO"

    # Programme
    festival_start: date = Field(default_factory=date.today)
    festival_days: int = Field(default=3, gt=0)
    timezone: str = "Europe/Paris"

    # Reminders, in minutes before a screening starts
    reminder_offsets_minutes: list[int] = Field(default_factory=lambda: [60, 30])
