from datetime import date

from staff_scheduler.services.availability import available_days, is_day_available
from staff_scheduler.services.week_calendar import week_dates

from .factories import build_constraints, build_employee, build_exception

WEEK = week_dates(10, 2024)  # 2024-03-04 .. 2024-03-10


def test_all_days_available_without_restrictions() -> None:
    employee = build_employee(rest_day=None)

    assert available_days(employee, WEEK, build_constraints()) == [
        "monday",
        "tuesday",
        "wednesday",
        "thursday",
        "friday",
        "saturday",
        "sunday",
    ]


def test_rest_day_is_excluded_whatever_its_case() -> None:
    employee = build_employee(rest_day="Dimanche")

    days = available_days(employee, WEEK, build_constraints())

    assert "sunday" not in days
    assert len(days) == 6


def test_company_closed_days_are_excluded() -> None:
    constraints = build_constraints(open_days=["monday", "tuesday", "wednesday"])

    days = available_days(build_employee(rest_day=None), WEEK, constraints)

    assert days == ["monday", "tuesday", "wednesday"]


def test_closed_all_week() -> None:
    assert available_days(build_employee(), WEEK, build_constraints(open_days=[])) == []


def test_blocking_exceptions_remove_their_day() -> None:
    employee = build_employee(
        exceptions=[
            build_exception(date(2024, 3, 5), "vacation"),
            build_exception(date(2024, 3, 6), "sick"),
            build_exception(date(2024, 3, 7), "unavailable"),
        ]
    )

    assert available_days(employee, WEEK, build_constraints()) == ["monday", "friday", "saturday"]


def test_training_and_reduced_days_stay_available() -> None:
    employee = build_employee(
        exceptions=[
            build_exception(date(2024, 3, 4), "training"),
            build_exception(date(2024, 3, 5), "reduced"),
        ]
    )

    assert is_day_available(employee, "monday", date(2024, 3, 4), build_constraints())
    assert is_day_available(employee, "tuesday", date(2024, 3, 5), build_constraints())


def test_exception_outside_the_week_has_no_effect() -> None:
    employee = build_employee(exceptions=[build_exception(date(2024, 3, 11))])

    assert len(available_days(employee, WEEK, build_constraints())) == 6
