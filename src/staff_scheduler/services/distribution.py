"""Apportion weekly contract hours across the days an employee will work."""

from __future__ import annotations

import logging
import math
from typing import Sequence

logger = logging.getLogger(__name__)

HOURS_PRECISION = 4


def _subtract(remaining: float, hours: float) -> float:
    return round(remaining - hours, HOURS_PRECISION)


def distribute_hours(
    total_hours: float,
    days: Sequence[str],
    *,
    min_hours: float,
    max_hours: float,
) -> dict[str, float]:
    """
    Spread *total_hours* evenly over *days*, walked in the given order.

    A first pass gives every day an even share capped at *max_hours* and skips a
    day whose share would fall under *min_hours*, unless what is left is itself
    below the minimum. A second pass tops up days that still have headroom.
    The result may not add up to *total_hours* when the days cannot hold it.
    """
    distribution: dict[str, float] = {}
    if total_hours <= 0 or not days or max_hours <= 0:
        return distribution

    remaining = float(total_hours)
    share = min(max_hours, math.ceil(total_hours / len(days)))
    logger.debug(
        "Distributing %.2fh over %d days (share %.2fh, bounds %.2f-%.2fh)",
        total_hours,
        len(days),
        share,
        min_hours,
        max_hours,
    )

    for day in days:
        if remaining <= 0:
            break
        day_hours = min(share, remaining, max_hours)
        if day_hours >= min_hours or remaining < min_hours:
            distribution[day] = day_hours
            remaining = _subtract(remaining, day_hours)

    if remaining > 0:
        for day in days:
            if remaining <= 0:
                break
            current = distribution.get(day, 0.0)
            if current < max_hours:
                additional = min(remaining, max_hours - current)
                distribution[day] = current + additional
                remaining = _subtract(remaining, additional)

    return distribution


def concentrate_hours(
    total_hours: float,
    days: Sequence[str],
    *,
    min_hours: float,
    max_hours: float,
) -> dict[str, float]:
    """Fill as few days as possible, each up to *max_hours*, in the given order."""
    distribution: dict[str, float] = {}
    if total_hours <= 0 or not days or max_hours <= 0:
        return distribution

    remaining = float(total_hours)
    for day in days:
        if remaining <= 0:
            break
        day_hours = min(max_hours, remaining)
        distribution[day] = day_hours
        remaining = _subtract(remaining, day_hours)

    # A short last day borrows from the one before it.
    filled = list(distribution)
    if len(filled) >= 2 and distribution[filled[-1]] < min_hours:
        last, previous = filled[-1], filled[-2]
        movable = min(min_hours - distribution[last], distribution[previous] - min_hours)
        if movable > 0:
            distribution[previous] = round(distribution[previous] - movable, HOURS_PRECISION)
            distribution[last] = round(distribution[last] + movable, HOURS_PRECISION)

    return distribution


def distribute_preferred_first(
    total_hours: float,
    preferred_days: Sequence[str],
    other_days: Sequence[str],
    *,
    min_hours: float,
    max_hours: float,
) -> dict[str, float]:
    """Distribute over *preferred_days* first and place the leftover on *other_days*."""
    distribution = distribute_hours(
        total_hours, preferred_days, min_hours=min_hours, max_hours=max_hours
    )
    leftover = _subtract(total_hours, sum(distribution.values()))
    if leftover > 0 and other_days:
        distribution.update(
            distribute_hours(leftover, other_days, min_hours=min_hours, max_hours=max_hours)
        )
    return distribution
