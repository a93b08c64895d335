"""Tests for timeblock.core.schedule_optimizer — long blocks and missing breaks."""

from datetime import datetime, timedelta

from timeblock.core.schedule_optimizer import OptimizationType, optimize_schedule
from timeblock.data.models import SchedulingPreferences, WorkUnit


def _at(hour, minute=0):
    return datetime(2026, 3, 2, hour, minute)


class TestOptimizeSchedule:
    def test_relaxed_day_has_no_suggestions(self):
        units = [WorkUnit("A", _at(9), _at(10)), WorkUnit("B", _at(11), _at(12))]
        assert optimize_schedule(units) == []

    def test_long_block_flagged(self):
        long_block = WorkUnit("Marathon", _at(9), _at(12))
        result = optimize_schedule([long_block])
        assert [(o.type, o.work_unit) for o in result] == [
            (OptimizationType.SPLIT_LONG_BLOCK, long_block),
        ]

    def test_exactly_max_continuous_is_fine(self):
        assert optimize_schedule([WorkUnit("Two hours", _at(9), _at(11))]) == []

    def test_back_to_back_blocks_need_buffer(self):
        first = WorkUnit("A", _at(9), _at(10))
        second = WorkUnit("B", _at(10, 5), _at(11))
        result = optimize_schedule([second, first])
        assert [(o.type, o.work_unit) for o in result] == [
            (OptimizationType.ADD_BUFFER, second),
        ]

    def test_overlapping_blocks_are_not_buffer_issues(self):
        units = [WorkUnit("A", _at(9), _at(10)), WorkUnit("B", _at(9, 30), _at(10, 30))]
        assert optimize_schedule(units) == []

    def test_custom_preferences(self):
        prefs = SchedulingPreferences(
            max_continuous_work=timedelta(minutes=30),
            break_duration=timedelta(hours=1),
        )
        units = [WorkUnit("A", _at(9), _at(10)), WorkUnit("B", _at(10, 30), _at(10, 45))]
        types = [o.type for o in optimize_schedule(units, prefs)]
        assert types == [OptimizationType.SPLIT_LONG_BLOCK, OptimizationType.ADD_BUFFER]
