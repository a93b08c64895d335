"""
Time-Blocking Engine — Conflict Checker.

Detects time conflicts before creating or rescheduling work units, and picks
the nearest free slot as an alternative.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Iterable, Protocol, TypeVar

from timeblock.config import settings
from timeblock.core.free_slots import find_free_slots, working_window
from timeblock.core.interval import Interval, overlaps

if TYPE_CHECKING:
    from timeblock.data.models import BusyInterval, TimeSlot, WorkUnit
    from timeblock.ports.calendar_port import CalendarPort
    from timeblock.ports.store_port import WorkUnitStore

logger = logging.getLogger(__name__)


class Timed(Protocol):
    start: datetime
    end: datetime


T = TypeVar("T", bound=Timed)


def find_conflicts(
    proposed: Interval,
    existing: Iterable[T],
    exclude_id: str | None = None,
) -> list[T]:
    """Return every existing item that overlaps the proposed interval.

    Args:
        proposed: The interval being placed.
        existing: Work units, busy intervals or plain Intervals.
        exclude_id: Identity to skip (a work unit checked against itself
            during reschedule). Items without an ``id`` are never skipped.
    """
    conflicts: list[T] = []
    for item in existing:
        if exclude_id is not None and getattr(item, "id", None) == exclude_id:
            continue
        if overlaps(proposed.start, proposed.end, item.start, item.end):
            conflicts.append(item)
    return conflicts


def has_conflict(
    proposed: Interval,
    existing: Iterable[Timed],
    exclude_id: str | None = None,
) -> bool:
    return bool(find_conflicts(proposed, existing, exclude_id))


def find_nearest_free_slot(
    free_slots: list[TimeSlot],
    preferred_start: datetime,
) -> TimeSlot | None:
    """Pick the slot whose start is closest to preferred_start (earlier wins ties)."""
    if not free_slots:
        return None
    return min(
        free_slots,
        key=lambda slot: (abs(slot.start - preferred_start), slot.start),
    )


@dataclass
class ConflictResult:
    """Result of a conflict check against a day's commitments."""

    has_conflict: bool
    conflicting_units: list[WorkUnit] = field(default_factory=list)
    conflicting_events: list[BusyInterval] = field(default_factory=list)
    suggested_start: datetime | None = None


# Longest work unit assumed to spill over from the previous day.
CARRYOVER = timedelta(days=1)


async def units_touching_day(
    store: WorkUnitStore,
    day: date,
    events: Iterable[BusyInterval] = (),
) -> list[WorkUnit]:
    """Stored work units that overlap ``day``, ordered by start.

    Includes units that started earlier and run past midnight. The lookback
    reaches the earliest event start so an imported multi-day event is found.
    """
    bounds = Interval.for_day(day)
    since = min([bounds.start - CARRYOVER, *(e.start for e in events)])
    units = await store.fetch_range(since, bounds.end)
    return [u for u in units if u.end > bounds.start]


def drop_imported(
    events: Iterable[BusyInterval],
    units: Iterable[WorkUnit],
) -> list[BusyInterval]:
    """Calendar events not already copied into one of ``units``."""
    imported = {u.calendar_event_id for u in units if u.calendar_event_id}
    return [e for e in events if e.id not in imported]


async def check_conflict(
    store: WorkUnitStore,
    calendar: CalendarPort,
    proposed: Interval,
    exclude_id: str | None = None,
    day_start_hour: int | None = None,
    day_end_hour: int | None = None,
) -> ConflictResult:
    """Check whether a proposed interval conflicts with the day's commitments.

    Work units come from the store, busy intervals from the calendar. A
    calendar event that was imported as a work unit counts once, as the
    unit. Errors from either collaborator propagate; the check never
    pretends a day is free because it couldn't be read.

    The alternative is searched inside FREE_SLOT_DAY_START_HOUR to
    FREE_SLOT_DAY_END_HOUR unless other hours are given.

    Returns:
        ConflictResult with the clashing items and, on conflict, the start of
        the nearest free slot of the same duration (or None).
    """
    day = proposed.start.date()
    events = await calendar.get_busy_intervals(day)
    units = await units_touching_day(store, day, events)
    events = drop_imported(events, units)

    conflicting_units = find_conflicts(proposed, units, exclude_id)
    conflicting_events = find_conflicts(proposed, events)

    if not conflicting_units and not conflicting_events:
        return ConflictResult(has_conflict=False)

    occupied = [u.interval for u in units if u.id != exclude_id]
    occupied += [e.interval for e in events]
    window = working_window(
        day,
        settings.FREE_SLOT_DAY_START_HOUR if day_start_hour is None else day_start_hour,
        settings.FREE_SLOT_DAY_END_HOUR if day_end_hour is None else day_end_hour,
    )
    duration: timedelta = proposed.duration
    nearest = find_nearest_free_slot(
        find_free_slots(day, duration, window, occupied), proposed.start,
    )

    logger.info(
        "Conflict at %s: %d work unit(s), %d calendar event(s)",
        proposed.start.isoformat(), len(conflicting_units), len(conflicting_events),
    )
    return ConflictResult(
        has_conflict=True,
        conflicting_units=conflicting_units,
        conflicting_events=conflicting_events,
        suggested_start=nearest.start if nearest else None,
    )
