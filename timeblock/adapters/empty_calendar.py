"""Empty calendar adapter — implements CalendarPort with no external events.

Used when no calendar provider is configured, and as the documented
fallback for callers that choose to proceed without their calendar.
"""

from __future__ import annotations

from datetime import date

from timeblock.data.models import BusyInterval


class EmptyCalendarAdapter:
    """CalendarPort that reports every day as free of external events."""

    async def get_busy_intervals(self, target_date: date) -> list[BusyInterval]:
        return []
