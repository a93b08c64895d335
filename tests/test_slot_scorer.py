"""Tests for timeblock.core.slot_scorer — additive slot scoring and suggestions."""

import pytest
from datetime import date, datetime, timedelta

from timeblock.core.errors import InvalidIntervalError
from timeblock.core.free_slots import working_window
from timeblock.core.slot_scorer import rank_slots, rescore, score_slot, suggest_slots
from timeblock.data.models import (
    BusyInterval,
    EnergyLevel,
    SchedulingPreferences,
    TimeOfDay,
    TimeSlot,
)

DAY = date(2026, 3, 2)


def _at(hour, minute=0):
    return datetime(2026, 3, 2, hour, minute)


class TestScoreSlot:
    def test_outside_everything_is_neutral(self):
        assert score_slot(_at(22)) == pytest.approx(1.0)

    def test_working_hours_bonus(self):
        assert score_slot(_at(10)) == pytest.approx(1.5)

    def test_working_hours_end_is_inclusive(self):
        assert score_slot(_at(17)) == pytest.approx(1.5)

    def test_energy_bonus_when_nominal_energy_meets_requirement(self):
        # 14:00 is a high-energy hour
        assert score_slot(_at(14), energy_level=EnergyLevel.HIGH) == pytest.approx(1.8)

    def test_no_energy_bonus_when_energy_too_low(self):
        # 11:00 is medium energy
        assert score_slot(_at(11), energy_level=EnergyLevel.HIGH) == pytest.approx(1.5)

    def test_energy_bonus_disabled_by_preferences(self):
        prefs = SchedulingPreferences(energy_optimization=False)
        assert score_slot(_at(14), EnergyLevel.HIGH, preferences=prefs) == pytest.approx(1.5)

    def test_time_of_day_bonus(self):
        assert score_slot(_at(9), time_of_day=TimeOfDay.MORNING) == pytest.approx(1.7)

    def test_all_bonuses(self):
        score = score_slot(_at(9), EnergyLevel.HIGH, TimeOfDay.MORNING)
        assert score == pytest.approx(2.0)

    def test_entering_working_hours_adds_exactly_half(self):
        prefs = SchedulingPreferences(working_hours=(9, 17))
        outside = score_slot(_at(8), preferences=prefs)
        inside = score_slot(_at(9), preferences=prefs)
        assert inside - outside == pytest.approx(0.5)

    def test_custom_working_hours(self):
        prefs = SchedulingPreferences(working_hours=(20, 23))
        assert score_slot(_at(21), preferences=prefs) == pytest.approx(1.5)
        assert score_slot(_at(10), preferences=prefs) == pytest.approx(1.0)


class TestRankSlots:
    def test_higher_score_first(self):
        slots = [TimeSlot(_at(8), _at(9), 1.0), TimeSlot(_at(10), _at(11), 1.5)]
        assert [s.start for s in rank_slots(slots)] == [_at(10), _at(8)]

    def test_ties_broken_by_earliest_start(self):
        slots = [TimeSlot(_at(15), _at(16), 1.5), TimeSlot(_at(10), _at(11), 1.5)]
        assert [s.start for s in rank_slots(slots)] == [_at(10), _at(15)]

    def test_rescore_applies_preferences(self):
        slots = [TimeSlot(_at(7), _at(8)), TimeSlot(_at(12), _at(13))]
        ranked = rescore(slots, time_of_day=TimeOfDay.AFTERNOON)
        assert ranked[0].start == _at(12)
        assert ranked[0].score == pytest.approx(1.7)


class TestSuggestSlots:
    def test_hourly_candidates_skip_conflicts(self):
        window = working_window(DAY, 9, 13)
        busy = [BusyInterval("ev1", "Meeting", _at(10), _at(11))]
        slots = suggest_slots(DAY, timedelta(hours=1), window, busy)
        assert sorted(s.start for s in slots) == [_at(9), _at(11), _at(12)]

    def test_candidates_must_fit_inside_window(self):
        window = working_window(DAY, 9, 12)
        slots = suggest_slots(DAY, timedelta(hours=2), window, [])
        assert sorted(s.start for s in slots) == [_at(9), _at(10)]

    def test_ranked_best_first(self):
        window = working_window(DAY, 8, 18)
        slots = suggest_slots(
            DAY, timedelta(hours=1), window, [], time_of_day=TimeOfDay.AFTERNOON,
        )
        assert slots[0].start == _at(12)
        scores = [s.score for s in slots]
        assert scores == sorted(scores, reverse=True)

    @pytest.mark.parametrize("step", [timedelta(0), timedelta(minutes=-30)])
    def test_non_positive_step_rejected(self, step):
        window = working_window(DAY, 9, 12)
        with pytest.raises(InvalidIntervalError):
            suggest_slots(DAY, timedelta(hours=1), window, [], step=step)
