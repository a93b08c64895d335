"""Schedule-level conflict classification.

Systemic conflicts (not a single interval clash) are labelled with a
resolution strategy and an impact tier from a static table. Nothing is
resolved automatically; a person or a higher-level planner applies the
strategy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)


class ScheduleConflictKind(str, Enum):
    OVERLAPPING_DEADLINES = "overlapping_deadlines"
    RESOURCE_OVERALLOCATION = "resource_overallocation"
    DEPENDENCY_VIOLATION = "dependency_violation"


class ResolutionStrategy(str, Enum):
    ADJUST_PRIORITIES = "adjust_priorities"
    REDISTRIBUTE_RESOURCES = "redistribute_resources"
    ADJUST_DEPENDENCIES = "adjust_dependencies"


class Impact(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class ScheduleConflict:
    kind: ScheduleConflictKind
    description: str
    affected_ids: list[str] = field(default_factory=list)   # task / project ids


@dataclass
class ScheduleResolution:
    conflict: ScheduleConflict
    strategy: ResolutionStrategy
    description: str
    estimated_impact: Impact


# Every ScheduleConflictKind must have an entry; tests enforce it.
RESOLUTION_TABLE: dict[ScheduleConflictKind, tuple[ResolutionStrategy, str, Impact]] = {
    ScheduleConflictKind.OVERLAPPING_DEADLINES: (
        ResolutionStrategy.ADJUST_PRIORITIES,
        "Change task priorities to resolve the conflict",
        Impact.LOW,
    ),
    ScheduleConflictKind.RESOURCE_OVERALLOCATION: (
        ResolutionStrategy.REDISTRIBUTE_RESOURCES,
        "Redistribute resources between projects",
        Impact.MEDIUM,
    ),
    ScheduleConflictKind.DEPENDENCY_VIOLATION: (
        ResolutionStrategy.ADJUST_DEPENDENCIES,
        "Review the project's dependencies",
        Impact.HIGH,
    ),
}


def classify_conflict(conflict: ScheduleConflict) -> ScheduleResolution:
    try:
        strategy, description, impact = RESOLUTION_TABLE[conflict.kind]
    except KeyError:
        raise ValueError(f"No resolution strategy for conflict kind {conflict.kind!r}") from None
    return ScheduleResolution(
        conflict=conflict,
        strategy=strategy,
        description=description,
        estimated_impact=impact,
    )


def resolve_schedule_conflicts(conflicts: list[ScheduleConflict]) -> list[ScheduleResolution]:
    """Label each conflict with its resolution strategy, in input order."""
    resolutions = [classify_conflict(c) for c in conflicts]
    if resolutions:
        logger.info("Classified %d schedule conflict(s)", len(resolutions))
    return resolutions
