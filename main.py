"""
Time-Blocking Engine — Entry Point.

`python main.py [YYYY-MM-DD]` prints the day's work units, the free one-hour
slots and the workload, using the store and calendar configured in .env.
"""

import asyncio
import logging
import sys
from datetime import date, timedelta

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

from timeblock.adapters.calendar_factory import create_calendar_adapter
from timeblock.core.time_blocking_service import TimeBlockingService
from timeblock.data.db import WorkUnitDB


async def show_day(day: date) -> None:
    service = TimeBlockingService(WorkUnitDB(), create_calendar_adapter())

    units = await service.get_work_units(day)
    print(f"Work units on {day.isoformat()}:")
    for unit in units:
        done = " (done)" if unit.is_completed else ""
        print(f"  {unit.start:%H:%M}-{unit.end:%H:%M}  {unit.title}{done}")
    if not units:
        print("  none")

    print("Free one-hour slots:")
    for slot in await service.find_free_slots(day, timedelta(hours=1)):
        print(f"  {slot.start:%H:%M}-{slot.end:%H:%M}")

    info = await service.calculate_workload(day)
    print(
        f"Workload: {info.scheduled_time} of {info.available_time} "
        f"({info.utilization:.0%}){' OVERBOOKED' if info.overbooked else ''}"
    )
    for line in info.recommendations:
        print(f"  - {line}")


def main() -> None:
    day = date.fromisoformat(sys.argv[1]) if len(sys.argv) > 1 else date.today()
    asyncio.run(show_day(day))


if __name__ == "__main__":
    main()
