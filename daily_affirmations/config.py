"""
Daily Affirmations — Centralized configuration.

Loads all settings from .env and validates them.
This module is the foundation for every other module in the project.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError, field_validator

# Load .env from project root (two levels up from daily_affirmations/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # SQLite
    DATABASE_PATH: str = "data/affirmations.db"

    # Timezone used for reminder triggers
    TIMEZONE: str = "UTC"

    LOG_LEVEL: str = "INFO"

    # "Remind me later" from a single affirmation
    CUSTOM_REMINDER_DELAY_MINUTES: int = 60

    # Insert the starter affirmations when the store is empty
    SEED_SAMPLE_AFFIRMATIONS: bool = True

    # How often the running app checks the store for new settings
    SYNC_INTERVAL_SECONDS: int = 30

    @field_validator("TIMEZONE")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {v!r}") from exc
        return v

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return str(v).strip().upper()

    @field_validator("CUSTOM_REMINDER_DELAY_MINUTES", "SYNC_INTERVAL_SECONDS")
    @classmethod
    def positive_int(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v

    @field_validator("SEED_SAMPLE_AFFIRMATIONS", mode="before")
    @classmethod
    def parse_bool(cls, v: str | bool) -> bool:
        if isinstance(v, bool):
            return v
        return str(v).strip().lower() in ("1", "true", "yes", "on")


def _load_settings() -> Settings:
    """Load settings from environment, exiting on invalid values."""
    try:
        return Settings(
            DATABASE_PATH=os.getenv("DATABASE_PATH", "data/affirmations.db"),
            TIMEZONE=os.getenv("TIMEZONE", "UTC"),
            LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
            CUSTOM_REMINDER_DELAY_MINUTES=os.getenv("CUSTOM_REMINDER_DELAY_MINUTES", "60"),
            SEED_SAMPLE_AFFIRMATIONS=os.getenv("SEED_SAMPLE_AFFIRMATIONS", "true"),
            SYNC_INTERVAL_SECONDS=os.getenv("SYNC_INTERVAL_SECONDS", "30"),
        )
    except ValidationError as exc:
        print(f"ERROR: invalid configuration in .env:\n{exc}", file=sys.stderr)
        sys.exit(1)


# Singleton — imported by all other modules as:
#   from daily_affirmations.config import settings
settings = _load_settings()
