"""Auto-scheduler — greedy priority placement of pending work into free slots.

Items are placed highest priority first; each takes the best-scored slot
still in the pool that is long enough. Nothing is persisted here: the caller
decides whether to save the returned work units.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Protocol

from timeblock.core.interval import require_positive
from timeblock.core.slot_scorer import rank_slots, score_slot
from timeblock.data.models import (
    PendingWorkItem,
    SchedulingPreferences,
    TimeSlot,
    WorkUnit,
)

logger = logging.getLogger(__name__)


class CancellationToken(Protocol):
    """Anything with is_set(): threading.Event, asyncio.Event, ..."""

    def is_set(self) -> bool: ...


class UnplacedReason(str, Enum):
    NO_CAPACITY = "no_capacity"
    CANCELLED = "cancelled"


@dataclass
class UnplacedItem:
    item_id: str
    reason: UnplacedReason


@dataclass
class ScheduleResult:
    """Placed work units plus every input item that produced none."""

    placed: list[WorkUnit] = field(default_factory=list)
    unplaced: list[UnplacedItem] = field(default_factory=list)

    @property
    def unplaced_ids(self) -> list[str]:
        return [u.item_id for u in self.unplaced]


def sort_by_priority(items: list[PendingWorkItem]) -> list[PendingWorkItem]:
    """Highest priority first; equal priorities keep their input order."""
    return sorted(items, key=lambda item: item.priority, reverse=True)


def auto_schedule(
    items: list[PendingWorkItem],
    available_slots: list[TimeSlot],
    preferences: SchedulingPreferences | None = None,
    *,
    reuse_remainder: bool = False,
    rescore: Callable[[datetime], float] | None = None,
    cancel: CancellationToken | None = None,
) -> ScheduleResult:
    """Assign each pending item to the best remaining slot that fits it.

    A slot is single-use: once an item lands in it, the rest of the slot is
    discarded, even when it was much longer than the item. Pass
    ``reuse_remainder=True`` to put the unused tail back into the pool
    instead, scored by ``rescore`` (defaults to score_slot with the given
    preferences).

    Args:
        items: Pending work; every duration must be positive.
        available_slots: Candidate slots, possibly spanning many days.
        preferences: Used only to score reinserted remainders.
        reuse_remainder: Split consumed slots and keep the leftover.
        rescore: Score function for leftover slots.
        cancel: Checked before each placement; once set, the remaining
            items are reported as CANCELLED and the placements made so far
            are returned.

    Raises:
        InvalidIntervalError: if any item has a non-positive duration. This
            is checked before anything is placed.
    """
    for item in items:
        require_positive(item.duration)

    score_leftover = rescore or (lambda start: score_slot(start, preferences=preferences))

    pool = rank_slots(available_slots)
    result = ScheduleResult()
    ordered = sort_by_priority(items)

    for index, item in enumerate(ordered):
        if cancel is not None and cancel.is_set():
            logger.info(
                "Auto-schedule cancelled with %d item(s) left", len(ordered) - index,
            )
            result.unplaced.extend(
                UnplacedItem(rest.id, UnplacedReason.CANCELLED) for rest in ordered[index:]
            )
            break

        slot = next((s for s in pool if s.duration >= item.duration), None)
        if slot is None:
            logger.info("No slot fits '%s' (%s)", item.title, item.duration)
            result.unplaced.append(UnplacedItem(item.id, UnplacedReason.NO_CAPACITY))
            continue

        unit = WorkUnit(
            title=item.title,
            start=slot.start,
            end=slot.start + item.duration,
            task_id=item.task_id,
            project_id=item.project_id,
            is_auto_scheduled=True,
        )
        result.placed.append(unit)
        pool.remove(slot)

        if reuse_remainder and unit.end < slot.end:
            pool = rank_slots([*pool, TimeSlot(unit.end, slot.end, score_leftover(unit.end))])

        logger.debug(
            "Placed '%s' at %s-%s", item.title,
            unit.start.isoformat(), unit.end.isoformat(),
        )

    logger.info(
        "Auto-scheduled %d of %d item(s)", len(result.placed), len(items),
    )
    return result
