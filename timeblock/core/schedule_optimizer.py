"""Schedule optimizer — flags blocks that break the user's rhythm preferences.

Produces suggestions only; nothing is moved.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from timeblock.data.models import SchedulingPreferences, WorkUnit


class OptimizationType(str, Enum):
    SPLIT_LONG_BLOCK = "split_long_block"
    ADD_BUFFER = "add_buffer"


@dataclass
class ScheduleOptimization:
    type: OptimizationType
    work_unit: WorkUnit
    description: str
    potential_benefit: str


def optimize_schedule(
    units: Iterable[WorkUnit],
    preferences: SchedulingPreferences | None = None,
) -> list[ScheduleOptimization]:
    if preferences is None:
        preferences = SchedulingPreferences.default()

    ordered = sorted(units, key=lambda u: u.start)
    optimizations: list[ScheduleOptimization] = []

    for unit in ordered:
        if unit.duration > preferences.max_continuous_work:
            optimizations.append(ScheduleOptimization(
                type=OptimizationType.SPLIT_LONG_BLOCK,
                work_unit=unit,
                description=f"Split '{unit.title}' into shorter blocks",
                potential_benefit="Better focus and productivity",
            ))

    for previous, current in zip(ordered, ordered[1:]):
        gap = current.start - previous.end
        # Overlapping units are a conflict, not a missing break
        if gap < preferences.break_duration and gap.total_seconds() >= 0:
            optimizations.append(ScheduleOptimization(
                type=OptimizationType.ADD_BUFFER,
                work_unit=current,
                description=f"Leave a break before '{current.title}'",
                potential_benefit="Time to recover between blocks",
            ))

    return optimizations
