"""Turn a day's allocated hours into concrete time slots."""

from __future__ import annotations

import logging
from typing import Iterable

from staff_scheduler.services.rules import CompanyConstraints, SlotRules
from staff_scheduler.services.types import DaySchedule, EmployeePreferences, TimeSlot

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60
CAPACITY_STEP_HOURS = 0.5


def parse_time(value: str) -> int:
    """Convert ``HH:MM`` into minutes since midnight."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def format_time(total_minutes: int) -> str:
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def parse_time_range(value: str) -> tuple[int, int]:
    start, end = value.split("-")
    return parse_time(start), parse_time(end)


def slot_minutes(slot: TimeSlot) -> int:
    return parse_time(slot.end) - parse_time(slot.start)


def slot_hours(slot: TimeSlot) -> float:
    return slot_minutes(slot) / 60


def worked_hours(slots: Iterable[TimeSlot]) -> float:
    """Hours actually worked, lunch breaks excluded."""
    return round(sum(slot_minutes(slot) for slot in slots if not slot.is_lunch_break) / 60, 2)


def schedule_hours(schedule: DaySchedule) -> float:
    return round(sum(worked_hours(slots) for slots in schedule.values()), 2)


def intra_day_gaps(slots: Iterable[TimeSlot], max_gap_minutes: int) -> list[int]:
    """Return the idle gaps (minutes) longer than *max_gap_minutes* between slots."""
    ordered = sorted(slots, key=lambda slot: parse_time(slot.start))
    gaps: list[int] = []
    for previous, current in zip(ordered, ordered[1:]):
        gap = parse_time(current.start) - parse_time(previous.end)
        if gap > max_gap_minutes:
            gaps.append(gap)
    return gaps


def open_window(constraints: CompanyConstraints, slot_rules: SlotRules) -> tuple[int, int]:
    """Only the first configured opening range is used for every day."""
    if constraints.open_hours:
        return parse_time_range(constraints.open_hours[0])
    return parse_time_range(slot_rules.default_open_hours)


def preferred_start(preferences: EmployeePreferences, window: tuple[int, int]) -> int:
    window_start, window_end = window
    for preferred_range in preferences.preferred_hours:
        start, _ = parse_time_range(preferred_range)
        if window_start <= start <= window_end:
            return start
    return window_start


def _continuous_slots(
    start: int,
    end: int,
    minutes: int,
    lunch_minutes: int | None,
    slot_rules: SlotRules,
) -> list[TimeSlot]:
    threshold = round(slot_rules.lunch_threshold_hours * 60)
    available = end - start
    worked = min(minutes, available)

    if lunch_minutes is None or worked < threshold:
        return [TimeSlot(format_time(start), format_time(start + worked))]

    if worked + lunch_minutes > available:
        worked = available - lunch_minutes
        if worked < threshold:
            # No room for a lunch break, stay under the threshold instead.
            worked = min(available, threshold - slot_rules.granularity_minutes)
            return [TimeSlot(format_time(start), format_time(start + worked))]

    granularity = slot_rules.granularity_minutes
    morning = (worked // 2) // granularity * granularity
    lunch_start = start + morning
    lunch_end = lunch_start + lunch_minutes
    return [
        TimeSlot(format_time(start), format_time(lunch_start)),
        TimeSlot(format_time(lunch_start), format_time(lunch_end), is_lunch_break=True),
        TimeSlot(format_time(lunch_end), format_time(lunch_end + worked - morning)),
    ]


def _split_slots(
    start: int,
    end: int,
    minutes: int,
    lunch_minutes: int | None,
    slot_rules: SlotRules,
) -> list[TimeSlot]:
    chunk = round(slot_rules.max_chunk_hours * 60)
    threshold = round(slot_rules.lunch_threshold_hours * 60)

    sizes: list[int] = []
    remaining = minutes
    while remaining > 0:
        size = min(chunk, remaining)
        sizes.append(size)
        remaining -= size

    # Lunch takes the place of the pause right before the middle chunk.
    lunch_before: int | None = None
    if lunch_minutes is not None and minutes >= threshold and len(sizes) > 1:
        lunch_before = len(sizes) // 2

    slots: list[TimeSlot] = []
    cursor = start
    for index, size in enumerate(sizes):
        pause_start = cursor
        if index > 0:
            cursor += lunch_minutes if index == lunch_before else slot_rules.split_gap_minutes
        if cursor + size > end:
            break
        if index == lunch_before:
            slots.append(
                TimeSlot(format_time(pause_start), format_time(cursor), is_lunch_break=True)
            )
        slots.append(TimeSlot(format_time(cursor), format_time(cursor + size)))
        cursor += size
    return slots


def build_day_slots(
    hours: float,
    preferences: EmployeePreferences,
    constraints: CompanyConstraints,
    slot_rules: SlotRules,
) -> list[TimeSlot]:
    """
    Build the ordered slots for one day holding *hours* of work.

    Continuous days (split shifts disallowed) get one work span, cut around a
    lunch break when required. Otherwise the hours are carved into chunks of at
    most four hours separated by short pauses. Nothing is placed outside the
    company's opening window, and hours that do not fit are dropped.
    """
    window_start, window_end = open_window(constraints, slot_rules)
    start = preferred_start(preferences, (window_start, window_end))
    minutes = round(hours * 60)
    if minutes <= 0 or start >= window_end:
        return []

    lunch_minutes = constraints.lunch_break_duration if constraints.mandatory_lunch_break else None
    if preferences.allow_split_shifts is False:
        slots = _continuous_slots(start, window_end, minutes, lunch_minutes, slot_rules)
    else:
        slots = _split_slots(start, window_end, minutes, lunch_minutes, slot_rules)

    if worked_hours(slots) < round(hours, 2):
        logger.debug(
            "Only %.2fh of %.2fh fit between %s and %s",
            worked_hours(slots),
            hours,
            format_time(start),
            format_time(window_end),
        )
    return slots


def daily_capacity(
    preferences: EmployeePreferences,
    constraints: CompanyConstraints,
    slot_rules: SlotRules,
) -> float:
    """Largest amount of hours, up to the daily maximum, that fits a single day."""
    hours = constraints.max_hours_per_day
    while hours > 0:
        if worked_hours(build_day_slots(hours, preferences, constraints, slot_rules)) >= round(hours, 2):
            return hours
        hours -= CAPACITY_STEP_HOURS
    return 0.0
