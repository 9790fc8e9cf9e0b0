"""
Availability checking utilities.
Determines on which days of the week an employee can be scheduled at all.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Sequence

from staff_scheduler.services.rules import CompanyConstraints
from staff_scheduler.services.types import EmployeeException, SchedulingEmployee
from staff_scheduler.services.week_calendar import WEEKDAYS, normalize_weekday

logger = logging.getLogger(__name__)

# training and reduced are recorded on the employee but never block a day.
BLOCKING_EXCEPTION_TYPES = frozenset({"vacation", "sick", "unavailable"})


def blocking_exception_on(employee: SchedulingEmployee, day: date) -> EmployeeException | None:
    """Return the first blocking exception dated on *day*, if any."""
    for exception in employee.exceptions:
        if exception.date == day and exception.exception_type in BLOCKING_EXCEPTION_TYPES:
            return exception
    return None


def is_day_available(
    employee: SchedulingEmployee,
    weekday: str,
    day: date,
    constraints: CompanyConstraints,
) -> bool:
    """
    Check whether *employee* may work on *weekday* (calendar date *day*).

    Rules are evaluated in order and the first match wins:
    company closed, mandatory rest day, blocking exception, otherwise available.
    """
    if constraints.open_days is not None and weekday not in constraints.open_days:
        logger.debug("Company closed on %s", weekday)
        return False

    if employee.rest_day and normalize_weekday(employee.rest_day) == weekday:
        logger.debug("Employee %s rests on %s", employee.id, weekday)
        return False

    exception = blocking_exception_on(employee, day)
    if exception is not None:
        logger.debug(
            "Employee %s has a %s exception on %s", employee.id, exception.exception_type, day
        )
        return False

    return True


def available_days(
    employee: SchedulingEmployee,
    dates: Sequence[date],
    constraints: CompanyConstraints,
) -> list[str]:
    """Return the weekdays of the week, in calendar order, the employee can work."""
    return [
        weekday
        for weekday, day in zip(WEEKDAYS, dates)
        if is_day_available(employee, weekday, day, constraints)
    ]
