"""Week number to calendar date helpers and weekday name tables."""

from __future__ import annotations

from datetime import date, timedelta
from types import MappingProxyType
from typing import Mapping

WEEKDAYS: tuple[str, ...] = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

# French day names are still sent by older clients.
WEEKDAY_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        **{day: day for day in WEEKDAYS},
        "lundi": "monday",
        "mardi": "tuesday",
        "mercredi": "wednesday",
        "jeudi": "thursday",
        "vendredi": "friday",
        "samedi": "saturday",
        "dimanche": "sunday",
    }
)


def normalize_weekday(value: str) -> str:
    """Return the canonical English weekday for *value* or raise ``ValueError``."""

    key = value.strip().lower()
    try:
        return WEEKDAY_ALIASES[key]
    except KeyError:
        raise ValueError(f"Unknown weekday: {value!r}") from None


def weekday_name(day: date) -> str:
    return WEEKDAYS[day.weekday()]


def week_dates(week_number: int, year: int) -> list[date]:
    """Return the seven dates (Monday first) of *week_number* in *year*.

    The week is counted from January 1st in blocks of seven days and then aligned
    on the Monday of the block, which is close to but not the same as ISO-8601
    numbering around year boundaries. Out-of-range week numbers (0, negative or
    above 53) still resolve to a seven-day range, clamped to the supported
    calendar at its extremes.
    """

    first_day = date(year, 1, 1)
    # Clamped so the whole week stays between date.min (a Monday) and date.max.
    lowest = (date.min - first_day).days
    highest = (date.max - first_day).days - (len(WEEKDAYS) - 1)
    shift = min(max((week_number - 1) * 7, lowest), highest)
    anchor = first_day + timedelta(days=shift)
    monday = anchor - timedelta(days=anchor.weekday())
    return [monday + timedelta(days=offset) for offset in range(len(WEEKDAYS))]


def week_label(year: int, week_number: int) -> str:
    return f"{year}-W{week_number:02d}"
