"""Tests for timeblock.data.models — work units, slots and preferences."""

import pytest
from datetime import date, datetime, timedelta

from timeblock.core.errors import InvalidIntervalError, InvalidLinkError, SchedulingError
from timeblock.data.models import (
    BusyInterval,
    EnergyLevel,
    ProductivityLevel,
    SchedulingPreferences,
    TimeOfDay,
    TimeSlot,
    WorkUnit,
)


def _at(hour, minute=0):
    return datetime(2026, 3, 2, hour, minute)


def _unit(start=None, end=None, **kwargs):
    return WorkUnit(title="Deep work", start=start or _at(9), end=end or _at(10), **kwargs)


# ---------------------------------------------------------------------------
# WorkUnit
# ---------------------------------------------------------------------------


class TestWorkUnitValidation:
    def test_defaults(self):
        unit = _unit()
        assert unit.id
        assert unit.is_auto_scheduled is False
        assert unit.is_completed is False
        assert unit.can_be_moved is True
        assert unit.needs_sync is True
        assert unit.productivity is None

    def test_unique_ids(self):
        assert _unit().id != _unit().id

    def test_end_not_after_start_rejected(self):
        with pytest.raises(InvalidIntervalError):
            _unit(start=_at(10), end=_at(10))

    def test_task_and_project_both_set_rejected(self):
        with pytest.raises(ValueError, match="both a task and a project"):
            _unit(task_id="t1", project_id="p1")

    def test_link_violation_is_a_scheduling_error(self):
        with pytest.raises(SchedulingError):
            _unit(task_id="t1", project_id="p1")
        with pytest.raises(InvalidLinkError):
            _unit(task_id="t1", project_id="p1")

    def test_link_id_prefers_whichever_is_set(self):
        assert _unit(task_id="t1").link_id == "t1"
        assert _unit(project_id="p1").link_id == "p1"
        assert _unit().link_id is None

    def test_duration_and_day(self):
        unit = _unit(end=_at(10, 30))
        assert unit.duration == timedelta(minutes=90)
        assert unit.day == date(2026, 3, 2)


class TestWorkUnitBehaviour:
    def test_reschedule_keeps_duration(self):
        unit = _unit(end=_at(10, 30))
        unit.needs_sync = False
        unit.reschedule(_at(14))
        assert unit.start == _at(14)
        assert unit.end == _at(15, 30)
        assert unit.needs_sync is True

    def test_mark_completed_with_rating(self):
        unit = _unit()
        unit.mark_completed(ProductivityLevel.HIGH)
        assert unit.is_completed is True
        assert unit.productivity is ProductivityLevel.HIGH
        assert unit.can_be_rescheduled is False

    def test_mark_completed_keeps_existing_rating(self):
        unit = _unit(productivity=ProductivityLevel.LOW)
        unit.mark_completed()
        assert unit.productivity is ProductivityLevel.LOW

    def test_locked_unit_cannot_be_rescheduled(self):
        assert _unit(can_be_moved=False).can_be_rescheduled is False

    def test_conflicts_with_ignores_itself(self):
        unit = _unit()
        assert unit.conflicts_with(unit) is False

    def test_conflicts_with_overlapping_unit(self):
        assert _unit().conflicts_with(_unit(start=_at(9, 30), end=_at(11)))

    def test_mark_synced(self):
        unit = _unit()
        unit.mark_synced()
        assert unit.needs_sync is False
        unit.update_productivity(ProductivityLevel.MEDIUM)
        assert unit.needs_sync is True


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------


class TestTimeSlotAndBusyInterval:
    def test_time_slot_default_score(self):
        assert TimeSlot(_at(9), _at(10)).score == 1.0

    def test_time_slot_rejects_empty(self):
        with pytest.raises(InvalidIntervalError):
            TimeSlot(_at(9), _at(9))

    def test_busy_interval_duration(self):
        busy = BusyInterval("ev1", "Standup", _at(9), _at(9, 15))
        assert busy.duration == timedelta(minutes=15)
        assert busy.interval.end == _at(9, 15)


class TestEnergyAndTimeOfDay:
    @pytest.mark.parametrize("hour,level", [
        (6, EnergyLevel.HIGH),
        (9, EnergyLevel.HIGH),
        (10, EnergyLevel.MEDIUM),
        (13, EnergyLevel.MEDIUM),
        (14, EnergyLevel.HIGH),
        (17, EnergyLevel.MEDIUM),
        (20, EnergyLevel.LOW),
        (3, EnergyLevel.LOW),
    ])
    def test_energy_at_hour(self, hour, level):
        assert EnergyLevel.at_hour(hour) is level

    @pytest.mark.parametrize("hour,bucket", [
        (6, TimeOfDay.MORNING),
        (11, TimeOfDay.MORNING),
        (12, TimeOfDay.AFTERNOON),
        (17, TimeOfDay.AFTERNOON),
        (18, TimeOfDay.EVENING),
        (22, TimeOfDay.NIGHT),
        (2, TimeOfDay.NIGHT),
    ])
    def test_time_of_day_for_hour(self, hour, bucket):
        assert TimeOfDay.for_hour(hour) is bucket


class TestSchedulingPreferences:
    def test_working_hours_inclusive(self):
        prefs = SchedulingPreferences.default()
        assert prefs.in_working_hours(9)
        assert prefs.in_working_hours(17)
        assert not prefs.in_working_hours(18)

    def test_focus_block_for(self):
        prefs = SchedulingPreferences.default()
        assert prefs.focus_block_for(10) is TimeOfDay.MORNING
        assert prefs.focus_block_for(19) is None
