"""Interval model — the shared (start, end) value every component works on.

Intervals are half-open: a span ending at 10:00 does not overlap one that
starts at 10:00.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from timeblock.core.errors import InvalidIntervalError


@dataclass(frozen=True, order=True)
class Interval:
    """An immutable time span [start, end)."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise InvalidIntervalError(
                f"Interval end {self.end.isoformat()} must be after start {self.start.isoformat()}"
            )

    @classmethod
    def from_duration(cls, start: datetime, duration: timedelta) -> Interval:
        require_positive(duration)
        return cls(start, start + duration)

    @classmethod
    def for_day(cls, day: date) -> Interval:
        """The full calendar day [00:00, next 00:00)."""
        start = datetime.combine(day, time.min)
        return cls(start, start + timedelta(days=1))

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def overlaps(self, other: Interval) -> bool:
        return overlaps(self.start, self.end, other.start, other.end)

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end


def overlaps(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    """Check if [start_a, end_a) overlaps [start_b, end_b)."""
    return start_a < end_b and end_a > start_b


def require_positive(duration: timedelta) -> None:
    """Fail fast on zero or negative durations."""
    if duration <= timedelta(0):
        raise InvalidIntervalError(f"Duration must be positive, got {duration}")
