"""Calendar adapter factory — creates the right adapter based on config."""

from __future__ import annotations

from timeblock.config import settings
from timeblock.ports.calendar_port import CalendarPort


def create_calendar_adapter() -> CalendarPort:
    """Return the calendar adapter matching the CALENDAR_PROVIDER setting."""
    provider = settings.CALENDAR_PROVIDER.lower()

    if provider in ("", "none"):
        from timeblock.adapters.empty_calendar import EmptyCalendarAdapter

        return EmptyCalendarAdapter()

    if provider == "caldav":
        from timeblock.adapters.caldav_calendar import CalDAVCalendarAdapter

        return CalDAVCalendarAdapter()

    raise ValueError(f"Unknown CALENDAR_PROVIDER: {provider!r}")
