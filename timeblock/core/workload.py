"""Workload calculator — daily utilization against a working-hours budget.

Recommendations are threshold-driven:

    utilization > 1.2        heavily overloaded, move tasks
    1.0 < utilization <= 1.2 overloaded, risk of delay
    utilization < 0.4        underloaded, room for more work
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Iterable

from timeblock.core.constants import (
    HEAVY_OVERLOAD_THRESHOLD,
    OVERLOAD_THRESHOLD,
    REDISTRIBUTION_TARGET_THRESHOLD,
    UNDERLOAD_THRESHOLD,
    WORKDAY_BUDGET_HOURS,
)

if TYPE_CHECKING:
    from timeblock.data.models import BusyInterval, WorkUnit

logger = logging.getLogger(__name__)

DEFAULT_BUDGET = timedelta(hours=WORKDAY_BUDGET_HOURS)

HEAVILY_OVERLOADED_MSG = "Day is heavily overloaded. Consider moving some tasks to another day."
OVERLOADED_MSG = "Day is overloaded. Expect delays."
UNDERLOADED_MSG = "Day is underloaded. You can take on more work."


@dataclass
class WorkloadInfo:
    """Derived per-day workload. Recomputed on demand, never persisted."""

    date: date
    scheduled_time: timedelta
    available_time: timedelta
    utilization: float
    overbooked: bool
    recommendations: list[str] = field(default_factory=list)


class SuggestionType(str, Enum):
    REDISTRIBUTE_TASKS = "redistribute_tasks"


@dataclass
class WorkloadSuggestion:
    type: SuggestionType
    description: str
    affected_dates: list[date]


def _total(items: Iterable[WorkUnit | BusyInterval]) -> timedelta:
    return sum((item.end - item.start for item in items), timedelta(0))


def workload_recommendations(utilization: float) -> list[str]:
    if utilization > HEAVY_OVERLOAD_THRESHOLD:
        return [HEAVILY_OVERLOADED_MSG]
    if utilization > OVERLOAD_THRESHOLD:
        return [OVERLOADED_MSG]
    if utilization < UNDERLOAD_THRESHOLD:
        return [UNDERLOADED_MSG]
    return []


def calculate_workload(
    day: date,
    work_units: Iterable[WorkUnit],
    external_busy: Iterable[BusyInterval] = (),
    budget: timedelta = DEFAULT_BUDGET,
) -> WorkloadInfo:
    """Aggregate a day's committed time against the working-hours budget.

    Utilization may exceed 1.0; a day is overbooked only when it does.
    """
    if budget <= timedelta(0):
        raise ValueError(f"Workday budget must be positive, got {budget}")

    scheduled = _total(work_units)
    external = _total(external_busy)
    utilization = (scheduled + external) / budget

    return WorkloadInfo(
        date=day,
        scheduled_time=scheduled,
        available_time=budget - scheduled - external,
        utilization=utilization,
        overbooked=utilization > OVERLOAD_THRESHOLD,
        recommendations=workload_recommendations(utilization),
    )


def week_days(day: date) -> list[date]:
    """The 7 days, Monday first, of the ISO week containing ``day``."""
    monday = day - timedelta(days=day.weekday())
    return [monday + timedelta(days=offset) for offset in range(7)]


def suggest_distribution(workloads: list[WorkloadInfo]) -> list[WorkloadSuggestion]:
    """Suggest moving work from overbooked days to lightly loaded ones.

    Emits at most one suggestion, naming the overbooked days followed by the
    days under 60% utilization. Which tasks to move is left to a new
    auto-schedule run.
    """
    overloaded = [w.date for w in workloads if w.overbooked]
    underloaded = [w.date for w in workloads if w.utilization < REDISTRIBUTION_TARGET_THRESHOLD]

    if not overloaded or not underloaded:
        return []

    logger.info(
        "Workload imbalance: %d overbooked day(s), %d light day(s)",
        len(overloaded), len(underloaded),
    )
    return [WorkloadSuggestion(
        type=SuggestionType.REDISTRIBUTE_TASKS,
        description="Move tasks from overloaded days to less busy ones.",
        affected_dates=overloaded + underloaded,
    )]
