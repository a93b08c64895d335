"""Tests for timeblock.core.conflict_resolver — strategy table lookup."""

import pytest

from timeblock.core.conflict_resolver import (
    RESOLUTION_TABLE,
    Impact,
    ResolutionStrategy,
    ScheduleConflict,
    ScheduleConflictKind,
    classify_conflict,
    resolve_schedule_conflicts,
)


class TestResolutionTable:
    def test_every_kind_has_a_strategy(self):
        assert set(RESOLUTION_TABLE) == set(ScheduleConflictKind)

    @pytest.mark.parametrize("kind,strategy,impact", [
        (ScheduleConflictKind.OVERLAPPING_DEADLINES, ResolutionStrategy.ADJUST_PRIORITIES, Impact.LOW),
        (ScheduleConflictKind.RESOURCE_OVERALLOCATION, ResolutionStrategy.REDISTRIBUTE_RESOURCES, Impact.MEDIUM),
        (ScheduleConflictKind.DEPENDENCY_VIOLATION, ResolutionStrategy.ADJUST_DEPENDENCIES, Impact.HIGH),
    ])
    def test_classify(self, kind, strategy, impact):
        resolution = classify_conflict(ScheduleConflict(kind, "clash", ["t1"]))
        assert resolution.strategy is strategy
        assert resolution.estimated_impact is impact
        assert resolution.description


class TestResolveScheduleConflicts:
    def test_preserves_input_order(self):
        conflicts = [
            ScheduleConflict(ScheduleConflictKind.DEPENDENCY_VIOLATION, "a"),
            ScheduleConflict(ScheduleConflictKind.OVERLAPPING_DEADLINES, "b"),
        ]
        resolutions = resolve_schedule_conflicts(conflicts)
        assert [r.conflict for r in resolutions] == conflicts

    def test_empty(self):
        assert resolve_schedule_conflicts([]) == []

    def test_unknown_kind_raises(self):
        conflict = ScheduleConflict(ScheduleConflictKind.OVERLAPPING_DEADLINES, "x")
        conflict.kind = "made_up"
        with pytest.raises(ValueError, match="No resolution strategy"):
            classify_conflict(conflict)
