from datetime import date

from staff_scheduler.services.rules import load_default_rules
from staff_scheduler.services.types import TimeSlot
from staff_scheduler.services.validation import check_schedule_structure, validate_employee_schedule
from staff_scheduler.services.week_calendar import WEEKDAYS, week_dates

from .factories import build_employee, build_preferences

LEGAL = load_default_rules().rules.legal
WEEK = week_dates(10, 2024)


def _schedule(slots_by_day: dict[str, list[TimeSlot]]) -> dict[str, list[TimeSlot]]:
    return {day: slots_by_day.get(day, []) for day in WEEKDAYS}


def test_compliant_week_has_no_violations() -> None:
    employee = build_employee(contract_hours=35)
    schedule = _schedule({day: [TimeSlot("09:00", "16:00")] for day in WEEKDAYS[:5]})

    assert validate_employee_schedule(employee, schedule, WEEK, LEGAL) == []


def test_contract_deviation_outside_tolerance_is_flagged() -> None:
    employee = build_employee(contract_hours=35)
    schedule = _schedule({day: [TimeSlot("09:00", "15:00")] for day in WEEKDAYS[:5]})

    violations = validate_employee_schedule(employee, schedule, WEEK, LEGAL, iso_week="2024-W10")

    assert [violation.code for violation in violations] == ["contract-hours-deviation"]
    assert violations[0].severity == "warning"
    assert violations[0].employee_id == "emp-1"
    assert violations[0].iso_week == "2024-W10"


def test_deviation_within_tolerance_is_accepted() -> None:
    employee = build_employee(contract_hours=35)
    schedule = _schedule({day: [TimeSlot("09:00", "15:30")] for day in WEEKDAYS[:5]})

    assert validate_employee_schedule(employee, schedule, WEEK, LEGAL) == []


def test_short_rest_between_days_is_flagged() -> None:
    employee = build_employee(contract_hours=14)
    schedule = _schedule(
        {
            "monday": [TimeSlot("14:00", "22:00")],
            "tuesday": [TimeSlot("06:00", "12:00")],
        }
    )

    violations = validate_employee_schedule(employee, schedule, WEEK, LEGAL)

    rest = [violation for violation in violations if violation.code == "insufficient-rest"]
    assert len(rest) == 1
    assert rest[0].day == date(2024, 3, 5)
    assert rest[0].meta["rest_hours"] == 8


def test_gaps_flagged_when_split_shifts_are_refused() -> None:
    employee = build_employee(contract_hours=7, preferences=build_preferences(allow_split_shifts=False))
    schedule = _schedule({"monday": [TimeSlot("09:00", "12:00"), TimeSlot("13:00", "17:00")]})

    violations = validate_employee_schedule(employee, schedule, WEEK, LEGAL)

    assert [violation.code for violation in violations] == ["split-shift-disallowed"]
    assert violations[0].severity == "critical"
    assert violations[0].day == date(2024, 3, 4)


def test_lunch_break_is_not_a_gap() -> None:
    employee = build_employee(contract_hours=7, preferences=build_preferences(allow_split_shifts=False))
    schedule = _schedule(
        {
            "monday": [
                TimeSlot("09:00", "12:30"),
                TimeSlot("12:30", "13:30", is_lunch_break=True),
                TimeSlot("13:30", "17:00"),
            ]
        }
    )

    assert validate_employee_schedule(employee, schedule, WEEK, LEGAL) == []


def test_structure_check() -> None:
    assert check_schedule_structure(_schedule({})) == []
    assert check_schedule_structure({"monday": []})
    assert check_schedule_structure(_schedule({"monday": [TimeSlot("12:00", "09:00")]}))
    assert check_schedule_structure(_schedule({"monday": [TimeSlot("9:00", "12:00")]}))
