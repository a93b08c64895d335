"""Free-slot finder — pure business logic.

Sweeps a day's occupied intervals (work units and external busy intervals)
inside a working window and returns the free capacity between them.

No I/O: this module only transforms data.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import TYPE_CHECKING, Iterable, Iterator

from timeblock.core.constants import (
    FREE_SLOT_DAY_END_HOUR,
    FREE_SLOT_DAY_START_HOUR,
    NEUTRAL_SLOT_SCORE,
)
from timeblock.core.interval import Interval, require_positive
from timeblock.data.models import TimeSlot

if TYPE_CHECKING:
    from timeblock.core.conflict_checker import Timed

logger = logging.getLogger(__name__)


def working_window(
    day: date,
    start_hour: int = FREE_SLOT_DAY_START_HOUR,
    end_hour: int = FREE_SLOT_DAY_END_HOUR,
) -> Interval:
    """Return [day start_hour:00, day end_hour:00). end_hour=24 means midnight."""
    start = datetime.combine(day, time(start_hour))
    end = datetime.combine(day, time.min) + timedelta(hours=end_hour)
    return Interval(start, end)


def _iter_gaps(window: Interval, occupied: Iterable[Timed]) -> Iterator[Interval]:
    """Yield the free gaps of window not covered by any occupied interval.

    Occupied intervals may overlap each other or stick out of the window;
    the cursor only ever moves forward, so nothing is counted twice.
    """
    cursor = window.start
    for busy in sorted(occupied, key=lambda b: (b.start, b.end)):
        if busy.start >= window.end:
            break
        if cursor < busy.start:
            yield Interval(cursor, busy.start)
        cursor = max(cursor, busy.end)

    if cursor < window.end:
        yield Interval(cursor, window.end)


def find_free_slots(
    day: date,
    duration: timedelta,
    window: Interval | None = None,
    occupied: Iterable[Timed] = (),
) -> list[TimeSlot]:
    """Find one slot of exactly ``duration`` at the start of every gap that fits.

    Callers wanting several options inside the same gap re-invoke with the
    returned slot added to ``occupied``.

    Args:
        day: The day being searched (used for the default window).
        duration: Required slot length; must be positive.
        window: Working window; defaults to 08:00-18:00 on ``day``.
        occupied: Anything with ``start``/``end`` that blocks time.

    Returns:
        Slots in chronological order, each with the neutral score 1.0.
    """
    require_positive(duration)
    if window is None:
        window = working_window(day)

    slots = [
        TimeSlot(gap.start, gap.start + duration, NEUTRAL_SLOT_SCORE)
        for gap in _iter_gaps(window, occupied)
        if gap.duration >= duration
    ]
    logger.debug(
        "Found %d free slot(s) of %s on %s", len(slots), duration, day.isoformat(),
    )
    return slots


def find_free_gaps(
    window: Interval,
    occupied: Iterable[Timed] = (),
    min_duration: timedelta = timedelta(minutes=1),
) -> list[TimeSlot]:
    """Return every whole free gap at least ``min_duration`` long."""
    require_positive(min_duration)
    return [
        TimeSlot(gap.start, gap.end, NEUTRAL_SLOT_SCORE)
        for gap in _iter_gaps(window, occupied)
        if gap.duration >= min_duration
    ]
