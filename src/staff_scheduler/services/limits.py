"""Consecutive working day limits."""

from __future__ import annotations

import logging
from typing import Sequence

from staff_scheduler.services.types import DaySchedule
from staff_scheduler.services.week_calendar import WEEKDAYS

logger = logging.getLogger(__name__)


def consecutive_overflow(worked: Sequence[bool], max_consecutive_days: int) -> set[int]:
    """
    Return the indexes of days that break a run longer than *max_consecutive_days*.

    Single forward pass: the day that would exceed the limit is dropped and the run
    restarts from zero, earlier days are never reconsidered.
    """
    dropped: set[int] = set()
    consecutive = 0
    for index, is_working in enumerate(worked):
        if not is_working:
            consecutive = 0
            continue
        consecutive += 1
        if consecutive > max_consecutive_days:
            dropped.add(index)
            consecutive = 0
    return dropped


def trim_consecutive_days(days: Sequence[str], max_consecutive_days: int) -> list[str]:
    """Drop from *days* (weekday names) those the consecutive-day limit would wipe."""
    selected = set(days)
    dropped = consecutive_overflow([day in selected for day in WEEKDAYS], max_consecutive_days)
    return [day for day in days if WEEKDAYS.index(day) not in dropped]


def limit_consecutive_days(schedule: DaySchedule, max_consecutive_days: int) -> DaySchedule:
    """Return a copy of *schedule* where days beyond the consecutive limit are emptied."""
    adjusted: DaySchedule = {day: list(schedule.get(day, [])) for day in WEEKDAYS}
    dropped = consecutive_overflow([bool(adjusted[day]) for day in WEEKDAYS], max_consecutive_days)
    for index in sorted(dropped):
        logger.debug("Clearing %s, more than %d consecutive days", WEEKDAYS[index], max_consecutive_days)
        adjusted[WEEKDAYS[index]] = []
    return adjusted
