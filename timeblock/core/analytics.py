"""Time-block analytics — historical summaries over a period.

No I/O: this module only transforms data. The service fetches the work
units and hands them in.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from statistics import mean
from typing import Iterable, Mapping

from timeblock.core.constants import TREND_DEAD_BAND, UNCATEGORIZED
from timeblock.data.models import TimeOfDay, WorkUnit

logger = logging.getLogger(__name__)


class TrendDirection(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


@dataclass
class CategoryTimeBreakdown:
    category: str
    total_time: timedelta


@dataclass
class TimeBlockAnalytics:
    period_start: datetime
    period_end: datetime
    total_time_blocks: int
    total_scheduled_time: timedelta
    completion_rate: float
    average_productivity: float
    most_productive_time: TimeOfDay | None
    category_breakdown: list[CategoryTimeBreakdown] = field(default_factory=list)


@dataclass
class WorkloadTrends:
    period_start: datetime
    period_end: datetime
    average_workload: timedelta
    peak_workload_day: date | None
    trend_direction: TrendDirection
    daily_totals: list[tuple[date, timedelta]] = field(default_factory=list)


class InsightType(str, Enum):
    TIME_OF_DAY = "time_of_day"


@dataclass
class ProductivityInsight:
    type: InsightType
    title: str
    description: str
    recommendation: str


@dataclass
class TimeReport:
    analytics: TimeBlockAnalytics
    trends: WorkloadTrends
    generated_at: datetime = field(default_factory=datetime.now)


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------


def completion_rate(units: list[WorkUnit]) -> float:
    if not units:
        return 0.0
    return sum(1 for u in units if u.is_completed) / len(units)


def average_productivity(units: Iterable[WorkUnit]) -> float:
    """Mean rating over rated units only; 0.0 when nothing is rated."""
    ratings = [int(u.productivity) for u in units if u.productivity is not None]
    return mean(ratings) if ratings else 0.0


def most_productive_time(units: Iterable[WorkUnit]) -> TimeOfDay | None:
    """The time-of-day bucket with the highest mean rating (earlier bucket on ties)."""
    ratings: dict[TimeOfDay, list[int]] = defaultdict(list)
    for unit in units:
        if unit.productivity is None:
            continue
        ratings[TimeOfDay.for_hour(unit.start.hour)].append(int(unit.productivity))

    best: TimeOfDay | None = None
    best_mean = float("-inf")
    for bucket in TimeOfDay:
        if bucket in ratings and mean(ratings[bucket]) > best_mean:
            best, best_mean = bucket, mean(ratings[bucket])
    return best


def category_breakdown(
    units: Iterable[WorkUnit],
    categories: Mapping[str, str] | None = None,
) -> list[CategoryTimeBreakdown]:
    """Total time per category label, largest first.

    Args:
        units: Work units to group.
        categories: Maps a task or project id to its category label. Units
            with no link, or a link missing from the map, group under
            "Uncategorized".
    """
    categories = categories or {}
    totals: dict[str, timedelta] = defaultdict(timedelta)
    for unit in units:
        label = categories.get(unit.link_id) if unit.link_id else None
        totals[label or UNCATEGORIZED] += unit.duration

    return [
        CategoryTimeBreakdown(category=name, total_time=total)
        for name, total in sorted(totals.items(), key=lambda kv: (-kv[1], kv[0]))
    ]


def trend_direction(values: list[float], dead_band: float = TREND_DEAD_BAND) -> TrendDirection:
    """Compare the mean of the first half against the second half.

    With an odd count the middle value belongs to neither half. Changes
    inside ±dead_band are reported as stable.
    """
    if len(values) < 2:
        return TrendDirection.STABLE

    half = len(values) // 2
    first_avg = mean(values[:half])
    second_avg = mean(values[-half:])

    if first_avg == 0:
        return TrendDirection.INCREASING if second_avg > 0 else TrendDirection.STABLE

    change = (second_avg - first_avg) / first_avg
    if change > dead_band:
        return TrendDirection.INCREASING
    if change < -dead_band:
        return TrendDirection.DECREASING
    return TrendDirection.STABLE


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


def generate_analytics(
    units: list[WorkUnit],
    period_start: datetime,
    period_end: datetime,
    categories: Mapping[str, str] | None = None,
) -> TimeBlockAnalytics:
    return TimeBlockAnalytics(
        period_start=period_start,
        period_end=period_end,
        total_time_blocks=len(units),
        total_scheduled_time=sum((u.duration for u in units), timedelta(0)),
        completion_rate=completion_rate(units),
        average_productivity=average_productivity(units),
        most_productive_time=most_productive_time(units),
        category_breakdown=category_breakdown(units, categories),
    )


def calculate_trends(
    units: Iterable[WorkUnit],
    period_start: datetime,
    period_end: datetime,
    dead_band: float = TREND_DEAD_BAND,
) -> WorkloadTrends:
    """Day-by-day scheduled totals and their overall direction.

    Only days with at least one work unit enter the series.
    """
    per_day: dict[date, timedelta] = defaultdict(timedelta)
    for unit in units:
        per_day[unit.day] += unit.duration

    daily = sorted(per_day.items())
    seconds = [total.total_seconds() for _, total in daily]
    average = timedelta(seconds=mean(seconds)) if seconds else timedelta(0)
    peak = max(daily, key=lambda kv: kv[1])[0] if daily else None

    return WorkloadTrends(
        period_start=period_start,
        period_end=period_end,
        average_workload=average,
        peak_workload_day=peak,
        trend_direction=trend_direction(seconds, dead_band),
        daily_totals=daily,
    )


def productivity_insights(units: list[WorkUnit]) -> list[ProductivityInsight]:
    """Compare morning (before noon) and afternoon productivity."""
    morning = [u for u in units if u.start.hour < 12]
    afternoon = [u for u in units if u.start.hour >= 12]

    if average_productivity(morning) > average_productivity(afternoon):
        return [ProductivityInsight(
            type=InsightType.TIME_OF_DAY,
            title="Morning productivity",
            description="You are more productive in the morning.",
            recommendation="Plan demanding tasks for the morning hours.",
        )]
    return []
