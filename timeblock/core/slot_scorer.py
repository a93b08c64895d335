"""Slot scorer — ranks candidate start times against user preferences.

Scores are additive from a base of 1.0 so each factor can be explained on
its own:

    +0.5  start hour inside the preferred working hours
    +0.3  nominal energy at that hour meets the required energy level
    +0.2  start hour falls in the requested time-of-day bucket

Absent preferences add nothing; no factor ever subtracts.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Iterable

from timeblock.core.conflict_checker import Timed, has_conflict
from timeblock.core.constants import NEUTRAL_SLOT_SCORE
from timeblock.core.interval import Interval, require_positive
from timeblock.data.models import (
    EnergyLevel,
    SchedulingPreferences,
    TimeOfDay,
    TimeSlot,
)

logger = logging.getLogger(__name__)

WORKING_HOURS_BONUS = 0.5
ENERGY_BONUS = 0.3
TIME_OF_DAY_BONUS = 0.2


def score_slot(
    candidate_start: datetime,
    energy_level: EnergyLevel | None = None,
    time_of_day: TimeOfDay | None = None,
    preferences: SchedulingPreferences | None = None,
) -> float:
    """Return the desirability score of starting work at candidate_start."""
    if preferences is None:
        preferences = SchedulingPreferences.default()

    score = NEUTRAL_SLOT_SCORE
    hour = candidate_start.hour

    if preferences.in_working_hours(hour):
        score += WORKING_HOURS_BONUS

    if (
        energy_level is not None
        and preferences.energy_optimization
        and EnergyLevel.at_hour(hour) >= energy_level
    ):
        score += ENERGY_BONUS

    if time_of_day is not None and time_of_day.contains_hour(hour):
        score += TIME_OF_DAY_BONUS

    return score


def rank_slots(slots: Iterable[TimeSlot]) -> list[TimeSlot]:
    """Sort by score descending, earliest start first on ties."""
    return sorted(slots, key=lambda s: (-s.score, s.start))


def rescore(
    slots: Iterable[TimeSlot],
    energy_level: EnergyLevel | None = None,
    time_of_day: TimeOfDay | None = None,
    preferences: SchedulingPreferences | None = None,
) -> list[TimeSlot]:
    """Score free-slot finder output and return it ranked."""
    scored = [
        TimeSlot(
            s.start, s.end,
            score_slot(s.start, energy_level, time_of_day, preferences),
        )
        for s in slots
    ]
    return rank_slots(scored)


def suggest_slots(
    day: date,
    duration: timedelta,
    window: Interval,
    occupied: Iterable[Timed],
    energy_level: EnergyLevel | None = None,
    time_of_day: TimeOfDay | None = None,
    preferences: SchedulingPreferences | None = None,
    step: timedelta = timedelta(hours=1),
) -> list[TimeSlot]:
    """Suggest conflict-free slots starting on every ``step`` inside the window.

    Unlike the free-slot finder, which only offers the start of each gap,
    this walks the whole window so the user can pick among many start times.

    Returns:
        Ranked TimeSlots, best first.
    """
    require_positive(duration)
    require_positive(step)
    busy = list(occupied)
    suggestions: list[TimeSlot] = []

    start = window.start
    while start + duration <= window.end:
        candidate = Interval(start, start + duration)
        if not has_conflict(candidate, busy):
            suggestions.append(TimeSlot(
                candidate.start,
                candidate.end,
                score_slot(start, energy_level, time_of_day, preferences),
            ))
        start += step

    logger.debug(
        "Suggested %d slot(s) of %s on %s", len(suggestions), duration, day.isoformat(),
    )
    return rank_slots(suggestions)
