"""
Time-Blocking Engine — Data Models.

Work units are the only entities the engine owns. Tasks and projects live
elsewhere; a work unit points at them by id only and never assumes they are
loaded. External calendar events are read-only BusyIntervals.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum, IntEnum

from timeblock.core.errors import InvalidIntervalError, InvalidLinkError
from timeblock.core.interval import Interval, overlaps


class Priority(IntEnum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    URGENT = 4


class EnergyLevel(IntEnum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3

    @classmethod
    def at_hour(cls, hour: int) -> EnergyLevel:
        """Nominal energy level for an hour of the day."""
        if 6 <= hour <= 9 or 14 <= hour <= 16:
            return cls.HIGH
        if 10 <= hour <= 13 or 17 <= hour <= 19:
            return cls.MEDIUM
        return cls.LOW


class TimeOfDay(str, Enum):
    MORNING = "morning"      # 06-11
    AFTERNOON = "afternoon"  # 12-17
    EVENING = "evening"      # 18-21
    NIGHT = "night"          # 22-05

    def contains_hour(self, hour: int) -> bool:
        if self is TimeOfDay.NIGHT:
            return hour >= 22 or hour <= 5
        first, last = _TIME_OF_DAY_HOURS[self]
        return first <= hour <= last

    @classmethod
    def for_hour(cls, hour: int) -> TimeOfDay:
        for bucket in cls:
            if bucket.contains_hour(hour):
                return bucket
        return cls.MORNING


_TIME_OF_DAY_HOURS = {
    TimeOfDay.MORNING: (6, 11),
    TimeOfDay.AFTERNOON: (12, 17),
    TimeOfDay.EVENING: (18, 21),
}


class ProductivityLevel(IntEnum):
    VERY_LOW = 1
    LOW = 2
    MEDIUM = 3
    HIGH = 4
    VERY_HIGH = 5


@dataclass
class WorkUnit:
    """A concrete scheduled span of time, optionally linked to a task or project.

    The task/project link is a weak reference: only the foreign id is stored,
    and at most one of the two may be set.
    """

    title: str
    start: datetime
    end: datetime
    task_id: str | None = None
    project_id: str | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    is_auto_scheduled: bool = False
    calendar_event_id: str | None = None   # set when imported from / mirrored to a calendar
    is_completed: bool = False
    productivity: ProductivityLevel | None = None
    can_be_moved: bool = True
    needs_sync: bool = True
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if self.end <= self.start:
            raise InvalidIntervalError(
                f"Work unit '{self.title}' ends at or before its start"
            )
        if self.task_id is not None and self.project_id is not None:
            raise InvalidLinkError(
                f"Work unit '{self.title}' cannot be linked to both a task and a project"
            )

    @property
    def interval(self) -> Interval:
        return Interval(self.start, self.end)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def day(self) -> date:
        return self.start.date()

    @property
    def link_id(self) -> str | None:
        return self.task_id or self.project_id

    @property
    def can_be_rescheduled(self) -> bool:
        return self.can_be_moved and not self.is_completed

    def conflicts_with(self, other: WorkUnit) -> bool:
        if other.id == self.id:
            return False
        return overlaps(self.start, self.end, other.start, other.end)

    def reschedule(self, new_start: datetime) -> None:
        """Move to a new start, keeping the duration."""
        duration = self.duration
        self.start = new_start
        self.end = new_start + duration
        self._touch()

    def mark_completed(self, productivity: ProductivityLevel | None = None) -> None:
        self.is_completed = True
        if productivity is not None:
            self.productivity = productivity
        self._touch()

    def update_productivity(self, productivity: ProductivityLevel) -> None:
        self.productivity = productivity
        self._touch()

    def mark_synced(self) -> None:
        self.needs_sync = False

    def _touch(self) -> None:
        self.updated_at = datetime.now()
        self.needs_sync = True


@dataclass(frozen=True)
class BusyInterval:
    """A read-only occupied interval owned by an external calendar."""

    id: str
    summary: str
    start: datetime
    end: datetime

    @property
    def interval(self) -> Interval:
        return Interval(self.start, self.end)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


@dataclass(frozen=True)
class TimeSlot:
    """A candidate interval plus its desirability score. Never persisted."""

    start: datetime
    end: datetime
    score: float = 1.0

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise InvalidIntervalError("Time slot must end after it starts")

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def interval(self) -> Interval:
        return Interval(self.start, self.end)


@dataclass
class PendingWorkItem:
    """The slice of a task the auto-scheduler needs. Not owned by the engine."""

    id: str
    title: str
    duration: timedelta
    priority: Priority = Priority.MEDIUM
    energy_level: EnergyLevel | None = None
    time_of_day: TimeOfDay | None = None
    task_id: str | None = None
    project_id: str | None = None


@dataclass
class SchedulingPreferences:
    """Per-request scheduling preferences supplied by the caller."""

    working_hours: tuple[int, int] = (9, 17)   # inclusive hour range
    energy_optimization: bool = True
    break_duration: timedelta = timedelta(minutes=15)
    max_continuous_work: timedelta = timedelta(hours=2)
    preferred_focus_blocks: list[TimeOfDay] = field(
        default_factory=lambda: [TimeOfDay.MORNING, TimeOfDay.AFTERNOON]
    )
    workday_budget: timedelta | None = None    # None -> settings.WORKDAY_BUDGET_HOURS

    @classmethod
    def default(cls) -> SchedulingPreferences:
        return cls()

    def in_working_hours(self, hour: int) -> bool:
        first, last = self.working_hours
        return first <= hour <= last

    def focus_block_for(self, hour: int) -> TimeOfDay | None:
        for bucket in self.preferred_focus_blocks:
            if bucket.contains_hour(hour):
                return bucket
        return None
