"""Shared test fixtures and configuration.

Pins environment variables so timeblock.config loads predictable settings,
and provides common fixtures like a temp DB and an in-memory calendar.
"""

import os

# Patch env vars BEFORE any timeblock imports
os.environ.setdefault("DATABASE_PATH", ":memory:")
os.environ.setdefault("CALENDAR_PROVIDER", "none")
os.environ.setdefault("WORKDAY_BUDGET_HOURS", "8")
os.environ.setdefault("TREND_DEAD_BAND", "0.10")
os.environ.setdefault("FREE_SLOT_DAY_START_HOUR", "8")
os.environ.setdefault("FREE_SLOT_DAY_END_HOUR", "18")
os.environ.setdefault("REUSE_SLOT_REMAINDER", "true")

import pytest


class FakeCalendar:
    """CalendarPort returning canned busy intervals per date."""

    def __init__(self, busy=None, error=None):
        self.busy = busy or {}
        self.error = error
        self.calls = []

    async def get_busy_intervals(self, target_date):
        self.calls.append(target_date)
        if self.error is not None:
            raise self.error
        return list(self.busy.get(target_date, []))


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_timeblocks.db")


@pytest.fixture
def work_unit_db(tmp_db_path):
    """Return a WorkUnitDB instance backed by a temp file."""
    from timeblock.data.db import WorkUnitDB
    return WorkUnitDB(db_path=tmp_db_path)


@pytest.fixture
def fake_calendar():
    return FakeCalendar()


@pytest.fixture
def service(work_unit_db, fake_calendar):
    """TimeBlockingService over a temp DB and an initially empty calendar."""
    from timeblock.core.time_blocking_service import TimeBlockingService
    return TimeBlockingService(work_unit_db, fake_calendar)
