"""CalDAV calendar adapter — implements CalendarPort for CalDAV servers.

Supports iCloud, Nextcloud, Fastmail, and any CalDAV-compliant server.
Uses the caldav library (sync) wrapped with asyncio.to_thread for async
compatibility. Read-only: events become BusyIntervals.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, time, timedelta

import caldav
from icalendar import Calendar as iCalendar

from timeblock.config import settings
from timeblock.data.models import BusyInterval
from timeblock.ports.calendar_port import CalendarError

logger = logging.getLogger(__name__)


def _to_naive_local(dt: datetime) -> datetime:
    """The engine works in naive local time; convert aware datetimes."""
    if dt.tzinfo is not None:
        return dt.astimezone().replace(tzinfo=None)
    return dt


def _parse_vevent(event_data: str) -> list[BusyInterval]:
    """Parse iCalendar text into busy intervals.

    All-day events (DTSTART is a date, not a datetime) and events without an
    end are skipped: they don't block a specific time.
    """
    try:
        cal = iCalendar.from_ical(event_data)
    except ValueError as exc:
        logger.warning("Skipping unparseable CalDAV event: %s", exc)
        return []

    busy: list[BusyInterval] = []
    for component in cal.walk():
        if component.name != "VEVENT":
            continue

        dtstart = component.get("dtstart")
        dtend = component.get("dtend")
        if dtstart is None or dtend is None:
            continue
        if not isinstance(dtstart.dt, datetime) or not isinstance(dtend.dt, datetime):
            continue

        start = _to_naive_local(dtstart.dt)
        end = _to_naive_local(dtend.dt)
        if end <= start:
            continue

        busy.append(BusyInterval(
            id=str(component.get("uid", "")),
            summary=str(component.get("summary", "(no title)")),
            start=start,
            end=end,
        ))
    return busy


class CalDAVCalendarAdapter:
    """CalDAV implementation of CalendarPort."""

    def __init__(
        self,
        url: str | None = None,
        username: str | None = None,
        password: str | None = None,
        calendar_name: str | None = None,
    ) -> None:
        self._url = url if url is not None else settings.CALDAV_URL
        self._username = username if username is not None else settings.CALDAV_USERNAME
        self._password = password if password is not None else settings.CALDAV_PASSWORD
        self._calendar_name = (
            calendar_name if calendar_name is not None else settings.CALDAV_CALENDAR_NAME
        )

    def _get_calendar(self) -> caldav.Calendar:
        """Connect to the CalDAV server and return the configured calendar."""
        client = caldav.DAVClient(
            url=self._url,
            username=self._username,
            password=self._password,
        )
        calendars = client.principal().calendars()

        if not calendars:
            raise CalendarError("No calendars found on the CalDAV server.")

        if self._calendar_name:
            for cal in calendars:
                if cal.name == self._calendar_name:
                    return cal
            raise CalendarError(
                f"Calendar '{self._calendar_name}' not found. "
                f"Available: {[c.name for c in calendars]}"
            )

        return calendars[0]

    async def get_busy_intervals(self, target_date: date) -> list[BusyInterval]:
        start = datetime.combine(target_date, time.min)
        end = start + timedelta(days=1)

        try:
            cal = await asyncio.to_thread(self._get_calendar)
            results = await asyncio.to_thread(
                cal.search, start=start, end=end, event=True, expand=True
            )
        except CalendarError:
            raise
        except Exception as exc:
            logger.error("CalDAV error (get_busy_intervals): %s", exc)
            raise CalendarError(f"Failed to fetch busy intervals: {exc}") from exc

        busy: list[BusyInterval] = []
        for ev in results:
            busy.extend(_parse_vevent(ev.data))

        logger.info("Found %d CalDAV busy interval(s) on %s", len(busy), target_date.isoformat())
        return busy
