"""
Time-Blocking Engine — Time Blocking Service.

The library API over the store and calendar ports: create, move and delete
work units, search and rank free capacity, auto-schedule pending work, and
report workload and analytics.

Every algorithm it calls is pure; this layer only fetches the day's data,
holds the per-date lock while doing so, and drops cached results for every
date a mutation touches.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, AsyncIterator, Mapping

from timeblock.config import settings
from timeblock.core import analytics, workload
from timeblock.core.auto_scheduler import (
    CancellationToken,
    ScheduleResult,
    auto_schedule,
)
from timeblock.core.cache import DateKeyedCache, DateLocks
from timeblock.core.conflict_checker import (
    drop_imported,
    find_conflicts,
    find_nearest_free_slot,
    units_touching_day,
)
from timeblock.core.conflict_resolver import (
    ScheduleConflict,
    ScheduleResolution,
    resolve_schedule_conflicts,
)
from timeblock.core.errors import (
    ConflictError,
    NoCapacityError,
    NotReschedulableError,
    WorkUnitNotFoundError,
)
from timeblock.core.free_slots import find_free_gaps, find_free_slots, working_window
from timeblock.core.interval import Interval, require_positive
from timeblock.core.schedule_optimizer import ScheduleOptimization, optimize_schedule
from timeblock.core.slot_scorer import score_slot, suggest_slots
from timeblock.data.models import (
    BusyInterval,
    EnergyLevel,
    PendingWorkItem,
    ProductivityLevel,
    SchedulingPreferences,
    TimeOfDay,
    TimeSlot,
    WorkUnit,
)
from timeblock.ports.calendar_port import CalendarError

if TYPE_CHECKING:
    from timeblock.core.analytics import (
        ProductivityInsight,
        TimeBlockAnalytics,
        TimeReport,
        WorkloadTrends,
    )
    from timeblock.core.workload import WorkloadInfo, WorkloadSuggestion
    from timeblock.ports.calendar_port import CalendarPort
    from timeblock.ports.store_port import WorkUnitStore

logger = logging.getLogger(__name__)

DEFAULT_TASK_TITLE = "Work block"
DEFAULT_PROJECT_TITLE = "Project work"


def _days_between(first: date, last: date) -> list[date]:
    """Every date from first to last, inclusive."""
    return [first + timedelta(days=n) for n in range((last - first).days + 1)]


class TimeBlockingService:
    """Scheduling engine bound to one store and one external calendar.

    Args:
        store: Work-unit persistence.
        calendar: External busy-interval source. None means no calendar.
        ignore_calendar_errors: When True, a failing calendar is logged and
            treated as "no external events" instead of raising CalendarError.
    """

    def __init__(
        self,
        store: WorkUnitStore,
        calendar: CalendarPort | None = None,
        *,
        ignore_calendar_errors: bool = False,
    ) -> None:
        if calendar is None:
            from timeblock.adapters.empty_calendar import EmptyCalendarAdapter

            calendar = EmptyCalendarAdapter()

        self._store = store
        self._calendar = calendar
        self._ignore_calendar_errors = ignore_calendar_errors

        self._budget = timedelta(hours=settings.WORKDAY_BUDGET_HOURS)
        self._dead_band = settings.TREND_DEAD_BAND
        self._day_start_hour = settings.FREE_SLOT_DAY_START_HOUR
        self._day_end_hour = settings.FREE_SLOT_DAY_END_HOUR
        self._reuse_remainder = settings.REUSE_SLOT_REMAINDER

        self._locks = DateLocks()
        self._workload_cache: DateKeyedCache[WorkloadInfo] = DateKeyedCache()
        self._suggestion_cache: DateKeyedCache[list[TimeSlot]] = DateKeyedCache()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _invalidate(self, *days: date) -> None:
        for day in set(days):
            self._workload_cache.invalidate(day)
            self._suggestion_cache.invalidate(day)

    def clear_caches(self) -> None:
        self._workload_cache.clear()
        self._suggestion_cache.clear()

    def _default_window(self, day: date) -> Interval:
        return working_window(day, self._day_start_hour, self._day_end_hour)

    async def _busy(self, day: date) -> list[BusyInterval]:
        try:
            return await self._calendar.get_busy_intervals(day)
        except CalendarError as exc:
            if not self._ignore_calendar_errors:
                raise
            logger.warning("Calendar unavailable for %s, treating as empty: %s", day, exc)
            return []

    async def _snapshot(self, day: date) -> tuple[list[WorkUnit], list[BusyInterval]]:
        """Work units overlapping a day and its external busy intervals.

        Caller holds the lock. Units carried over from the previous evening
        are included. External events already imported as work units are
        dropped so they aren't counted twice.
        """
        busy = await self._busy(day)
        units = await units_touching_day(self._store, day, busy)
        return units, drop_imported(busy, units)

    @staticmethod
    def _pool_score(start: datetime, preferences: SchedulingPreferences) -> float:
        return score_slot(
            start,
            time_of_day=preferences.focus_block_for(start.hour),
            preferences=preferences,
        )

    # ------------------------------------------------------------------
    # Work unit management
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _hold_stored(self, unit_id: str, *days: date) -> AsyncIterator[WorkUnit]:
        """Lock the stored unit's day plus ``days`` and yield the stored copy.

        The unit is re-read under the lock. If another writer moved it to a
        different day in the meantime, the locks are taken again.
        """
        stored = await self._store.fetch_by_id(unit_id)
        while True:
            if stored is None:
                raise WorkUnitNotFoundError(f"Work unit {unit_id} not found")
            locked_day = stored.day
            async with self._locks.hold(locked_day, *days):
                stored = await self._store.fetch_by_id(unit_id)
                if stored is not None and stored.day == locked_day:
                    yield stored
                    return
            logger.debug("Work unit %s moved while waiting for its lock, retrying", unit_id)

    async def create_work_unit(
        self,
        start: datetime,
        duration: timedelta,
        title: str | None = None,
        *,
        task_id: str | None = None,
        project_id: str | None = None,
        allow_alternative: bool = True,
    ) -> WorkUnit:
        """Create and persist a work unit, optionally for a task or project.

        If the requested time is taken, the unit moves to the free slot of
        the same day nearest to ``start``. With ``allow_alternative=False``
        the conflict is raised instead.

        Raises:
            InvalidIntervalError: non-positive duration.
            ConflictError: requested time taken and alternatives disallowed.
            NoCapacityError: requested time taken and no slot of that
                duration is free that day.
        """
        proposed = Interval.from_duration(start, duration)
        if title is None:
            title = DEFAULT_PROJECT_TITLE if project_id else DEFAULT_TASK_TITLE
        day = start.date()

        async with self._locks.hold(day):
            units, busy = await self._snapshot(day)
            conflicts = find_conflicts(proposed, [*units, *busy])

            if conflicts:
                if not allow_alternative:
                    raise ConflictError(
                        f"'{title}' at {start.isoformat()} overlaps {len(conflicts)} commitment(s)",
                        conflicts,
                    )
                free = find_free_slots(day, duration, self._default_window(day), [*units, *busy])
                nearest = find_nearest_free_slot(free, start)
                if nearest is None:
                    raise NoCapacityError(f"No free {duration} slot on {day.isoformat()}")
                logger.info(
                    "'%s' moved from %s to nearest free slot %s",
                    title, start.isoformat(), nearest.start.isoformat(),
                )
                start = nearest.start

            unit = WorkUnit(
                title=title,
                start=start,
                end=start + duration,
                task_id=task_id,
                project_id=project_id,
            )
            await self._store.save(unit)
            self._invalidate(day)

        return unit

    async def get_work_unit(self, unit_id: str) -> WorkUnit | None:
        return await self._store.fetch_by_id(unit_id)

    async def get_work_units(self, day: date) -> list[WorkUnit]:
        bounds = Interval.for_day(day)
        async with self._locks.hold(day):
            return await self._store.fetch_range(bounds.start, bounds.end)

    async def get_work_units_between(self, start: datetime, end: datetime) -> list[WorkUnit]:
        """Work units starting in [start, end)."""
        return await self._store.fetch_range(start, end)

    async def update_work_unit(self, unit: WorkUnit, *, force: bool = False) -> None:
        """Persist changes to a work unit.

        If the unit's time changed, the new interval must be free (excluding
        the unit itself) unless ``force`` is set.
        """
        unit.validate()
        async with self._hold_stored(unit.id, unit.day) as stored:
            if (stored.start, stored.end) != (unit.start, unit.end):
                await self._check_free(unit, unit.interval, force)
            unit.updated_at = datetime.now()
            unit.needs_sync = True
            await self._store.update(unit)
            self._invalidate(stored.day, unit.day)

    async def delete_work_unit(self, unit: WorkUnit) -> bool:
        try:
            async with self._hold_stored(unit.id) as stored:
                deleted = await self._store.delete(unit.id)
                self._invalidate(stored.day)
        except WorkUnitNotFoundError:
            return False
        return deleted

    async def complete_work_unit(
        self,
        unit_id: str,
        productivity: ProductivityLevel | None = None,
    ) -> WorkUnit:
        async with self._hold_stored(unit_id) as unit:
            unit.mark_completed(productivity)
            await self._store.update(unit)
            self._invalidate(unit.day)
        return unit

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    async def _check_free(self, unit: WorkUnit, proposed: Interval, force: bool) -> None:
        """Raise ConflictError if proposed overlaps anything but the unit itself."""
        units, busy = await self._snapshot(proposed.start.date())
        busy = [b for b in busy if b.id != unit.calendar_event_id]
        conflicts = find_conflicts(proposed, units, exclude_id=unit.id)
        conflicts += find_conflicts(proposed, busy)
        if not conflicts:
            return
        if not force:
            raise ConflictError(
                f"'{unit.title}' at {proposed.start.isoformat()} overlaps "
                f"{len(conflicts)} commitment(s)",
                conflicts,
            )
        logger.warning(
            "Forcing '%s' over %d conflicting commitment(s)", unit.title, len(conflicts),
        )

    async def reschedule_work_unit(
        self,
        unit: WorkUnit,
        new_start: datetime,
        *,
        force: bool = False,
    ) -> WorkUnit:
        """Move a work unit to new_start, keeping its duration.

        Moving a unit onto its own current time always succeeds.

        Raises:
            NotReschedulableError: the unit is completed or locked in place.
            WorkUnitNotFoundError: the store no longer has the unit.
            ConflictError: the new time overlaps another commitment and
                ``force`` is not set.
        """
        if not unit.can_be_rescheduled:
            raise NotReschedulableError(f"Work unit '{unit.title}' cannot be rescheduled")

        proposed = Interval.from_duration(new_start, unit.duration)
        new_day = new_start.date()

        async with self._hold_stored(unit.id, new_day) as stored:
            if not stored.can_be_rescheduled:
                raise NotReschedulableError(f"Work unit '{stored.title}' cannot be rescheduled")
            await self._check_free(unit, proposed, force)
            unit.reschedule(new_start)
            await self._store.update(unit)
            self._invalidate(stored.day, new_day)

        logger.info("Work unit %s rescheduled to %s", unit.id, new_start.isoformat())
        return unit

    async def find_free_slots(
        self,
        day: date,
        duration: timedelta,
        window: Interval | None = None,
    ) -> list[TimeSlot]:
        """Free slots of exactly ``duration``, one per gap, on ``day``."""
        require_positive(duration)
        async with self._locks.hold(day):
            units, busy = await self._snapshot(day)
        return find_free_slots(day, duration, window or self._default_window(day), [*units, *busy])

    async def suggest_optimal_slots(
        self,
        day: date,
        duration: timedelta,
        energy_level: EnergyLevel | None = None,
        time_of_day: TimeOfDay | None = None,
        preferences: SchedulingPreferences | None = None,
    ) -> list[TimeSlot]:
        """Hourly conflict-free start times inside working hours, best first."""
        require_positive(duration)
        preferences = preferences or SchedulingPreferences.default()
        key = (
            duration, energy_level, time_of_day,
            preferences.working_hours, preferences.energy_optimization,
        )

        async with self._locks.hold(day):
            cached = self._suggestion_cache.get(day, key)
            if cached is not None:
                return list(cached)
            units, busy = await self._snapshot(day)

            first_hour, last_hour = preferences.working_hours
            suggestions = suggest_slots(
                day,
                duration,
                working_window(day, first_hour, last_hour),
                [*units, *busy],
                energy_level=energy_level,
                time_of_day=time_of_day,
                preferences=preferences,
            )
            self._suggestion_cache.put(day, suggestions, key)
        return list(suggestions)

    async def suggest_slots_for_item(
        self,
        item: PendingWorkItem,
        day: date,
        preferences: SchedulingPreferences | None = None,
    ) -> list[TimeSlot]:
        return await self.suggest_optimal_slots(
            day, item.duration, item.energy_level, item.time_of_day, preferences,
        )

    async def auto_schedule_tasks(
        self,
        items: list[PendingWorkItem],
        first_day: date,
        last_day: date,
        preferences: SchedulingPreferences | None = None,
        *,
        cancel: CancellationToken | None = None,
        persist: bool = False,
    ) -> ScheduleResult:
        """Place pending work into the free capacity of first_day..last_day.

        The pool is every free gap inside working hours on each day, scored
        by working hours and preferred focus blocks. With ``persist=True``
        the placed units are saved; otherwise saving is up to the caller.
        """
        for item in items:
            require_positive(item.duration)
        if not items:
            return ScheduleResult()

        preferences = preferences or SchedulingPreferences.default()
        first_hour, last_hour = preferences.working_hours
        shortest = min(item.duration for item in items)
        days = _days_between(first_day, last_day)

        async with self._locks.hold(*days):
            pool: list[TimeSlot] = []
            for day in days:
                units, busy = await self._snapshot(day)
                gaps = find_free_gaps(
                    working_window(day, first_hour, last_hour), [*units, *busy], shortest,
                )
                pool.extend(
                    TimeSlot(g.start, g.end, self._pool_score(g.start, preferences))
                    for g in gaps
                )

            result = auto_schedule(
                items,
                pool,
                preferences,
                reuse_remainder=self._reuse_remainder,
                rescore=lambda start: self._pool_score(start, preferences),
                cancel=cancel,
            )

            if persist:
                for unit in result.placed:
                    await self._store.save(unit)
                self._invalidate(*(unit.day for unit in result.placed))

        if result.unplaced:
            logger.info(
                "%d item(s) not placed: %s", len(result.unplaced), result.unplaced_ids,
            )
        return result

    async def optimize_schedule(
        self,
        day: date,
        preferences: SchedulingPreferences | None = None,
    ) -> list[ScheduleOptimization]:
        return optimize_schedule(await self.get_work_units(day), preferences)

    def resolve_schedule_conflicts(
        self, conflicts: list[ScheduleConflict],
    ) -> list[ScheduleResolution]:
        return resolve_schedule_conflicts(conflicts)

    # ------------------------------------------------------------------
    # Calendar import
    # ------------------------------------------------------------------

    async def import_calendar_events(self, first_day: date, last_day: date) -> list[WorkUnit]:
        """Copy external events into work units (one-way, no live binding).

        Events already imported (matched by calendar event id) are skipped,
        including an overnight event the calendar reports on both days it
        touches. Calendar failures always propagate here.
        """
        imported: list[WorkUnit] = []
        for day in _days_between(first_day, last_day):
            events = await self._calendar.get_busy_intervals(day)
            # an overnight event is saved on the day it starts
            async with self._locks.hold(day, *(e.start.date() for e in events)):
                existing = await units_touching_day(self._store, day, events)
                known = {u.calendar_event_id for u in existing if u.calendar_event_id}
                known.update(u.calendar_event_id for u in imported)

                new_units = [
                    WorkUnit(
                        title=event.summary,
                        start=event.start,
                        end=event.end,
                        calendar_event_id=event.id,
                    )
                    for event in events
                    if event.id not in known
                ]
                for unit in new_units:
                    await self._store.save(unit)
                self._invalidate(*{unit.day for unit in new_units})
                imported.extend(new_units)

        logger.info("Imported %d calendar event(s) as work units", len(imported))
        return imported

    # ------------------------------------------------------------------
    # Workload
    # ------------------------------------------------------------------

    async def calculate_workload(
        self,
        day: date,
        preferences: SchedulingPreferences | None = None,
    ) -> WorkloadInfo:
        budget = self._budget
        if preferences is not None and preferences.workday_budget is not None:
            budget = preferences.workday_budget

        async with self._locks.hold(day):
            cached = self._workload_cache.get(day, budget)
            if cached is not None:
                return cached
            units, busy = await self._snapshot(day)
            # a unit counts toward the day it starts on
            units = [u for u in units if u.day == day]
            info = workload.calculate_workload(day, units, busy, budget)
            self._workload_cache.put(day, info, budget)

        if info.overbooked:
            logger.info("%s is overbooked (%.0f%%)", day.isoformat(), info.utilization * 100)
        return info

    async def calculate_week_workload(
        self,
        day: date,
        preferences: SchedulingPreferences | None = None,
    ) -> list[WorkloadInfo]:
        """Workload for each day, Monday first, of the week containing ``day``."""
        return [
            await self.calculate_workload(d, preferences) for d in workload.week_days(day)
        ]

    async def suggest_workload_distribution(
        self,
        day: date,
        preferences: SchedulingPreferences | None = None,
    ) -> list[WorkloadSuggestion]:
        return workload.suggest_distribution(await self.calculate_week_workload(day, preferences))

    async def get_workload_trends(self, start: datetime, end: datetime) -> WorkloadTrends:
        units = await self.get_work_units_between(start, end)
        return analytics.calculate_trends(units, start, end, self._dead_band)

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------

    async def get_analytics(
        self,
        start: datetime,
        end: datetime,
        categories: Mapping[str, str] | None = None,
    ) -> TimeBlockAnalytics:
        """Completion, productivity and category breakdown over [start, end).

        Args:
            categories: Maps linked task/project ids to category labels. The
                engine never loads tasks or projects itself.
        """
        units = await self.get_work_units_between(start, end)
        return analytics.generate_analytics(units, start, end, categories)

    async def get_productivity_insights(
        self, start: datetime, end: datetime,
    ) -> list[ProductivityInsight]:
        return analytics.productivity_insights(await self.get_work_units_between(start, end))

    async def generate_time_report(
        self,
        start: datetime,
        end: datetime,
        categories: Mapping[str, str] | None = None,
    ) -> TimeReport:
        return analytics.TimeReport(
            analytics=await self.get_analytics(start, end, categories),
            trends=await self.get_workload_trends(start, end),
        )
