"""
BÆKON Core — Centralized configuration.

Loads all settings from .env and validates them.
Every module that needs the local timezone or scheduling defaults reads
them from here.
"""

from __future__ import annotations

import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from src/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Local calendar; "today" is computed in this zone
    TIMEZONE: str = "UTC"

    # Logging
    LOG_LEVEL: str = "INFO"

    # Event creation defaults
    DEFAULT_EVENT_HOUR: int = 9
    DEFAULT_EVENT_DURATION_MINUTES: int = 60

    @field_validator("TIMEZONE")
    @classmethod
    def check_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown TIMEZONE {v!r}") from exc
        return v

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return str(v).strip().upper() or "INFO"

    @field_validator("DEFAULT_EVENT_HOUR", mode="before")
    @classmethod
    def parse_hour(cls, v: str | int) -> int:
        hour = int(v)
        if not 0 <= hour <= 23:
            raise ValueError(f"DEFAULT_EVENT_HOUR out of range: {hour}")
        return hour

    @field_validator("DEFAULT_EVENT_DURATION_MINUTES", mode="before")
    @classmethod
    def parse_duration(cls, v: str | int) -> int:
        minutes = int(v)
        if minutes <= 0:
            raise ValueError(f"DEFAULT_EVENT_DURATION_MINUTES must be positive: {minutes}")
        return minutes


def _load_settings() -> Settings:
    """Load settings from environment."""
    return Settings(
        TIMEZONE=os.getenv("TIMEZONE", "UTC"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
        DEFAULT_EVENT_HOUR=os.getenv("DEFAULT_EVENT_HOUR", "9"),
        DEFAULT_EVENT_DURATION_MINUTES=os.getenv("DEFAULT_EVENT_DURATION_MINUTES", "60"),
    )


# Singleton, imported by all other modules as:
#   from src.config import settings
settings = _load_settings()
