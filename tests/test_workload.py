"""Tests for timeblock.core.workload — utilization, recommendations, distribution."""

import pytest
from datetime import date, datetime, timedelta

from timeblock.core.workload import (
    HEAVILY_OVERLOADED_MSG,
    OVERLOADED_MSG,
    UNDERLOADED_MSG,
    SuggestionType,
    WorkloadInfo,
    calculate_workload,
    suggest_distribution,
    week_days,
    workload_recommendations,
)
from timeblock.data.models import BusyInterval, WorkUnit

DAY = date(2026, 3, 2)


def _at(hour, minute=0):
    return datetime(2026, 3, 2, hour, minute)


def _info(day, utilization):
    return WorkloadInfo(
        date=day,
        scheduled_time=timedelta(0),
        available_time=timedelta(0),
        utilization=utilization,
        overbooked=utilization > 1.0,
    )


class TestCalculateWorkload:
    def test_empty_day(self):
        info = calculate_workload(DAY, [])
        assert info.scheduled_time == timedelta(0)
        assert info.available_time == timedelta(hours=8)
        assert info.utilization == 0
        assert info.overbooked is False
        assert info.recommendations == [UNDERLOADED_MSG]

    def test_exactly_full_day_is_not_overbooked(self):
        info = calculate_workload(DAY, [WorkUnit("Full", _at(9), _at(17))])
        assert info.utilization == pytest.approx(1.0)
        assert info.overbooked is False
        assert info.recommendations == []

    def test_one_minute_over_is_overbooked(self):
        info = calculate_workload(DAY, [WorkUnit("Full", _at(9), _at(17, 1))])
        assert info.overbooked is True
        assert info.recommendations == [OVERLOADED_MSG]

    def test_heavily_overloaded(self):
        info = calculate_workload(DAY, [WorkUnit("Long", _at(7), _at(17))])
        assert info.utilization == pytest.approx(1.25)
        assert info.recommendations == [HEAVILY_OVERLOADED_MSG]

    def test_external_busy_counts_toward_utilization(self):
        units = [WorkUnit("A", _at(9), _at(13))]
        busy = [BusyInterval("ev", "Offsite", _at(13), _at(17))]
        info = calculate_workload(DAY, units, busy)
        assert info.scheduled_time == timedelta(hours=4)
        assert info.available_time == timedelta(0)
        assert info.utilization == pytest.approx(1.0)

    def test_custom_budget(self):
        info = calculate_workload(DAY, [WorkUnit("A", _at(9), _at(12))], budget=timedelta(hours=4))
        assert info.utilization == pytest.approx(0.75)

    def test_available_time_goes_negative_when_overbooked(self):
        info = calculate_workload(DAY, [WorkUnit("Long", _at(7), _at(17))])
        assert info.available_time == timedelta(hours=-2)

    def test_non_positive_budget_rejected(self):
        with pytest.raises(ValueError):
            calculate_workload(DAY, [], budget=timedelta(0))


class TestRecommendations:
    @pytest.mark.parametrize("utilization,expected", [
        (0.0, [UNDERLOADED_MSG]),
        (0.39, [UNDERLOADED_MSG]),
        (0.4, []),
        (1.0, []),
        (1.1, [OVERLOADED_MSG]),
        (1.2, [OVERLOADED_MSG]),
        (1.21, [HEAVILY_OVERLOADED_MSG]),
    ])
    def test_thresholds(self, utilization, expected):
        assert workload_recommendations(utilization) == expected


class TestWeekDays:
    def test_monday_first(self):
        days = week_days(date(2026, 3, 4))  # Wednesday
        assert days[0] == date(2026, 3, 2)
        assert days[-1] == date(2026, 3, 8)
        assert len(days) == 7


class TestSuggestDistribution:
    def test_overloaded_and_light_days_produce_suggestion(self):
        days = week_days(DAY)
        workloads = [_info(days[0], 1.3), _info(days[1], 0.2), _info(days[2], 0.8)]
        suggestions = suggest_distribution(workloads)
        assert len(suggestions) == 1
        assert suggestions[0].type is SuggestionType.REDISTRIBUTE_TASKS
        assert suggestions[0].affected_dates == [days[0], days[1]]

    def test_no_overloaded_day(self):
        days = week_days(DAY)
        assert suggest_distribution([_info(days[0], 1.0), _info(days[1], 0.1)]) == []

    def test_no_light_day(self):
        days = week_days(DAY)
        assert suggest_distribution([_info(days[0], 1.5), _info(days[1], 0.6)]) == []
