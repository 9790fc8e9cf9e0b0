"""Legal and preference checks run on finished employee schedules."""

from __future__ import annotations

from datetime import date
from typing import Sequence

from staff_scheduler.services.rules import TIME_PATTERN, LegalRules
from staff_scheduler.services.slots import (
    MINUTES_PER_DAY,
    intra_day_gaps,
    parse_time,
    schedule_hours,
)
from staff_scheduler.services.types import DaySchedule, SchedulingEmployee, SchedulingViolation
from staff_scheduler.services.week_calendar import WEEKDAYS


def check_schedule_structure(schedule: DaySchedule) -> list[str]:
    """Return structural problems; an empty list means the schedule is well formed."""
    problems: list[str] = []
    if set(schedule) != set(WEEKDAYS):
        problems.append(f"expected weekday keys {list(WEEKDAYS)}, got {sorted(schedule)}")
    for day, slots in schedule.items():
        if not isinstance(slots, list):
            problems.append(f"{day}: slots must be a list")
            continue
        for slot in slots:
            if not (TIME_PATTERN.match(slot.start) and TIME_PATTERN.match(slot.end)):
                problems.append(f"{day}: invalid time format {slot.start}-{slot.end}")
            elif parse_time(slot.start) >= parse_time(slot.end):
                problems.append(f"{day}: slot {slot.start}-{slot.end} does not end after it starts")
    return problems


def _check_contract_hours(
    employee: SchedulingEmployee,
    schedule: DaySchedule,
    legal_rules: LegalRules,
    iso_week: str | None,
) -> list[SchedulingViolation]:
    contract = employee.contract_hours
    total = schedule_hours(schedule)
    if contract <= 0 or abs(total - contract) <= contract * legal_rules.contract_hours_tolerance:
        return []
    return [
        SchedulingViolation(
            code="contract-hours-deviation",
            message=(
                f"Employee {employee.id} scheduled {total:.2f}h for a {contract:.2f}h contract "
                f"(tolerance {legal_rules.contract_hours_tolerance:.0%})."
            ),
            severity="warning",
            scope="employee",
            employee_id=employee.id,
            iso_week=iso_week,
            meta={"hours": total, "contract_hours": contract},
        )
    ]


def _check_rest_periods(
    employee: SchedulingEmployee,
    schedule: DaySchedule,
    dates: Sequence[date],
    legal_rules: LegalRules,
    iso_week: str | None,
) -> list[SchedulingViolation]:
    violations: list[SchedulingViolation] = []
    minimum = round(legal_rules.min_rest_hours * 60)
    for index, (day, next_day) in enumerate(zip(WEEKDAYS, WEEKDAYS[1:])):
        today_slots, next_slots = schedule.get(day, []), schedule.get(next_day, [])
        if not today_slots or not next_slots:
            continue
        last_end = max(parse_time(slot.end) for slot in today_slots)
        first_start = min(parse_time(slot.start) for slot in next_slots)
        rest = MINUTES_PER_DAY - last_end + first_start
        if rest < minimum:
            violations.append(
                SchedulingViolation(
                    code="insufficient-rest",
                    message=(
                        f"Employee {employee.id} rests {rest / 60:.2f}h between {day} and {next_day}, "
                        f"minimum is {legal_rules.min_rest_hours:g}h."
                    ),
                    severity="warning",
                    scope="day",
                    day=dates[index + 1] if len(dates) > index + 1 else None,
                    employee_id=employee.id,
                    iso_week=iso_week,
                    meta={"from": day, "to": next_day, "rest_hours": round(rest / 60, 2)},
                )
            )
    return violations


def _check_split_shifts(
    employee: SchedulingEmployee,
    schedule: DaySchedule,
    dates: Sequence[date],
    legal_rules: LegalRules,
    iso_week: str | None,
) -> list[SchedulingViolation]:
    if employee.preferences.allow_split_shifts is not False:
        return []
    violations: list[SchedulingViolation] = []
    for index, day in enumerate(WEEKDAYS):
        gaps = intra_day_gaps(schedule.get(day, []), legal_rules.max_gap_minutes)
        if gaps:
            violations.append(
                SchedulingViolation(
                    code="split-shift-disallowed",
                    message=(
                        f"Employee {employee.id} has {len(gaps)} gap(s) over "
                        f"{legal_rules.max_gap_minutes} minutes on {day} but does not accept split shifts."
                    ),
                    severity="critical",
                    scope="day",
                    day=dates[index] if len(dates) > index else None,
                    employee_id=employee.id,
                    iso_week=iso_week,
                    meta={"day": day, "gaps": len(gaps), "longest_gap_minutes": max(gaps)},
                )
            )
    return violations


def validate_employee_schedule(
    employee: SchedulingEmployee,
    schedule: DaySchedule,
    dates: Sequence[date],
    legal_rules: LegalRules,
    *,
    iso_week: str | None = None,
) -> list[SchedulingViolation]:
    """Evaluate contract hours, daily rest and split-shift policy. Advisory only."""

    violations: list[SchedulingViolation] = []
    violations.extend(_check_contract_hours(employee, schedule, legal_rules, iso_week))
    violations.extend(_check_rest_periods(employee, schedule, dates, legal_rules, iso_week))
    violations.extend(_check_split_shifts(employee, schedule, dates, legal_rules, iso_week))
    return violations
