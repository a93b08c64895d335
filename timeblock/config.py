"""
Time-Blocking Engine — Centralized configuration.

Loads all settings from .env. Every key has a default, so the engine runs
with no .env at all (SQLite under data/, no external calendar).
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator, model_validator

from timeblock.core.constants import (
    FREE_SLOT_DAY_END_HOUR,
    FREE_SLOT_DAY_START_HOUR,
    TREND_DEAD_BAND,
    WORKDAY_BUDGET_HOURS,
)

# Load .env from project root (one level up from timeblock/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Engine settings loaded from environment variables."""

    # SQLite
    DATABASE_PATH: str = "data/timeblocks.db"

    # External calendar provider: "none" | "caldav"
    CALENDAR_PROVIDER: str = "none"

    # CalDAV (only needed when CALENDAR_PROVIDER=caldav)
    CALDAV_URL: str = ""
    CALDAV_USERNAME: str = ""
    CALDAV_PASSWORD: str = ""
    CALDAV_CALENDAR_NAME: str = ""

    # Workload
    WORKDAY_BUDGET_HOURS: float = WORKDAY_BUDGET_HOURS
    TREND_DEAD_BAND: float = TREND_DEAD_BAND

    # Free-slot search window when the caller passes none
    FREE_SLOT_DAY_START_HOUR: int = FREE_SLOT_DAY_START_HOUR
    FREE_SLOT_DAY_END_HOUR: int = FREE_SLOT_DAY_END_HOUR

    # Batch auto-scheduling puts the unused tail of a slot back in the pool
    REUSE_SLOT_REMAINDER: bool = True

    @field_validator("WORKDAY_BUDGET_HOURS", mode="before")
    @classmethod
    def parse_budget(cls, v: str | float) -> float:
        hours = float(v)
        if hours <= 0:
            raise ValueError("WORKDAY_BUDGET_HOURS must be positive")
        return hours

    @field_validator("TREND_DEAD_BAND", mode="before")
    @classmethod
    def parse_dead_band(cls, v: str | float) -> float:
        band = float(v)
        if not 0 <= band < 1:
            raise ValueError("TREND_DEAD_BAND must be in [0, 1)")
        return band

    @field_validator("FREE_SLOT_DAY_START_HOUR", "FREE_SLOT_DAY_END_HOUR", mode="before")
    @classmethod
    def parse_hour(cls, v: str | int) -> int:
        hour = int(v)
        if not 0 <= hour <= 24:
            raise ValueError(f"Hour out of range: {hour}")
        return hour

    @field_validator("REUSE_SLOT_REMAINDER", mode="before")
    @classmethod
    def parse_flag(cls, v: str | bool) -> bool:
        if isinstance(v, bool):
            return v
        return str(v).strip().lower() in ("1", "true", "yes", "on")

    @model_validator(mode="after")
    def check_window(self) -> Settings:
        if self.FREE_SLOT_DAY_END_HOUR <= self.FREE_SLOT_DAY_START_HOUR:
            raise ValueError("FREE_SLOT_DAY_END_HOUR must be after FREE_SLOT_DAY_START_HOUR")
        return self


def _load_settings() -> Settings:
    """Load settings from environment."""
    return Settings(
        DATABASE_PATH=os.getenv("DATABASE_PATH", "data/timeblocks.db"),
        CALENDAR_PROVIDER=os.getenv("CALENDAR_PROVIDER", "none"),
        CALDAV_URL=os.getenv("CALDAV_URL", ""),
        CALDAV_USERNAME=os.getenv("CALDAV_USERNAME", ""),
        CALDAV_PASSWORD=os.getenv("CALDAV_PASSWORD", ""),
        CALDAV_CALENDAR_NAME=os.getenv("CALDAV_CALENDAR_NAME", ""),
        WORKDAY_BUDGET_HOURS=os.getenv("WORKDAY_BUDGET_HOURS", str(WORKDAY_BUDGET_HOURS)),
        TREND_DEAD_BAND=os.getenv("TREND_DEAD_BAND", str(TREND_DEAD_BAND)),
        FREE_SLOT_DAY_START_HOUR=os.getenv("FREE_SLOT_DAY_START_HOUR", str(FREE_SLOT_DAY_START_HOUR)),
        FREE_SLOT_DAY_END_HOUR=os.getenv("FREE_SLOT_DAY_END_HOUR", str(FREE_SLOT_DAY_END_HOUR)),
        REUSE_SLOT_REMAINDER=os.getenv("REUSE_SLOT_REMAINDER", "true"),
    )


# Singleton, imported by other modules as:
#   from timeblock.config import settings
settings = _load_settings()
