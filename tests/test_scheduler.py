from dataclasses import replace
from datetime import date
from time import perf_counter

import pytest

from staff_scheduler.services.rules import load_default_rules
from staff_scheduler.services.scheduler import (
    build_fallback_schedule,
    build_planning_context,
    generate_weekly_schedule,
    select_best_candidate,
)
from staff_scheduler.services.slots import parse_time, schedule_hours, worked_hours
from staff_scheduler.services.week_calendar import WEEKDAYS, week_dates

from .factories import (
    build_constraints,
    build_employee,
    build_exception,
    build_preferences,
    build_request,
)
from .utils import RecordingReporter

RULES = load_default_rules().rules
WEEK = week_dates(10, 2024)


def _generate(**overrides):
    return generate_weekly_schedule(build_request(**overrides), reporter=RecordingReporter())


def test_standard_week_is_spread_over_five_days() -> None:
    result = _generate(employees=[build_employee(contract_hours=35, rest_day="sunday")])

    schedule = result.schedules["emp-1"]
    assert [day for day in WEEKDAYS if schedule[day]] == ["monday", "tuesday", "wednesday", "thursday", "friday"]
    assert schedule_hours(schedule) == 35
    assert [(slot.start, slot.end) for slot in schedule["monday"]] == [("09:00", "13:00"), ("13:30", "16:30")]

    outcome = result.outcome_for("emp-1")
    assert outcome.status == "generated"
    assert outcome.strategy == "distribution"
    assert outcome.worked_hours == 35
    assert outcome.violations == []
    assert result.iso_week == "2024-W10"
    assert result.week_dates == WEEK


def test_vacation_moves_hours_to_the_remaining_days() -> None:
    employee = build_employee(
        contract_hours=28,
        rest_day="sunday",
        exceptions=[build_exception(date(2024, 3, 6), "vacation")],
    )

    schedule = _generate(employees=[employee]).schedules["emp-1"]

    assert schedule["wednesday"] == []
    assert schedule["sunday"] == []
    assert schedule_hours(schedule) == 28
    assert all(worked_hours(schedule[day]) <= 8 for day in WEEKDAYS)


def test_closed_company_produces_an_empty_fallback_week() -> None:
    reporter = RecordingReporter()
    request = build_request(
        employees=[build_employee(contract_hours=20)],
        constraints=build_constraints(open_days=[]),
    )

    result = generate_weekly_schedule(request, reporter=reporter)

    outcome = result.outcome_for("emp-1")
    assert outcome.status == "fallback"
    assert all(outcome.schedule[day] == [] for day in WEEKDAYS)
    assert [violation.code for violation in outcome.violations] == ["generation-failed"]
    assert reporter.errors
    assert reporter.errors[0][1]["operation"] == "generate_employee_schedule"
    assert reporter.errors[0][1]["employee_id"] == "emp-1"


def test_preferred_days_and_hours_are_followed() -> None:
    employee = build_employee(
        contract_hours=14,
        rest_day=None,
        preferences=build_preferences(preferred_days=["tuesday", "thursday"], preferred_hours=["09:30-17:00"]),
    )

    schedule = _generate(employees=[employee]).schedules["emp-1"]

    assert [day for day in WEEKDAYS if schedule[day]] == ["tuesday", "thursday"]
    assert schedule["tuesday"][0].start == "09:30"
    assert schedule_hours(schedule) == 14


def test_lunch_and_continuous_days_over_six_working_days() -> None:
    employee = build_employee(
        contract_hours=42,
        rest_day=None,
        preferences=build_preferences(allow_split_shifts=False),
    )

    result = _generate(
        employees=[employee],
        constraints=build_constraints(mandatory_lunch_break=True, lunch_break_duration=60),
    )

    schedule = result.schedules["emp-1"]
    assert schedule["saturday"] == []
    assert schedule_hours(schedule) == 42
    for day in WEEKDAYS:
        slots = schedule[day]
        if not slots:
            continue
        lunches = [slot for slot in slots if slot.is_lunch_break]
        assert len(lunches) == 1
        assert parse_time(lunches[0].end) - parse_time(lunches[0].start) == 60
        assert all(parse_time(a.end) == parse_time(b.start) for a, b in zip(slots, slots[1:]))
    assert [(slot.start, slot.end) for slot in schedule["monday"]] == [
        ("09:00", "12:30"),
        ("12:30", "13:30"),
        ("13:30", "17:00"),
    ]


def test_schedules_always_hold_seven_days_and_valid_slots() -> None:
    employees = [
        build_employee(id="a", contract_hours=10),
        build_employee(id="b", contract_hours=39, rest_day=None),
        build_employee(id="c", contract_hours=60, preferences=build_preferences(allow_split_shifts=False)),
    ]

    result = _generate(employees=employees, constraints=build_constraints(mandatory_lunch_break=True))

    for schedule in result.schedules.values():
        assert list(schedule) == list(WEEKDAYS)
        for slots in schedule.values():
            for slot in slots:
                assert "09:00" <= slot.start < slot.end <= "17:00"
            assert worked_hours(slots) <= 8


def test_no_more_than_max_consecutive_days() -> None:
    employee = build_employee(
        contract_hours=30,
        rest_day=None,
        preferences=build_preferences(max_consecutive_days=3),
    )

    schedule = _generate(employees=[employee]).schedules["emp-1"]

    run = longest = 0
    for day in WEEKDAYS:
        run = run + 1 if schedule[day] else 0
        longest = max(longest, run)
    assert longest <= 3


def test_one_failing_employee_does_not_stop_the_others() -> None:
    reporter = RecordingReporter()
    broken = build_employee(id="broken", preferences=build_preferences(preferred_hours=["not-a-range"]))
    healthy = build_employee(id="healthy", contract_hours=20)

    result = generate_weekly_schedule(build_request(employees=[broken, healthy]), reporter=reporter)

    assert result.outcome_for("healthy").status == "generated"
    assert schedule_hours(result.schedules["healthy"]) == 20

    fallback = result.outcome_for("broken")
    assert fallback.is_fallback
    assert fallback.failure_reason
    assert [day for day in WEEKDAYS if fallback.schedule[day]] == ["monday", "tuesday", "wednesday", "thursday", "friday"]
    assert fallback.schedule["monday"][0].start == "09:00"
    assert fallback.schedule["monday"][0].end == "17:00"
    assert result.failures == [fallback]
    assert len(reporter.errors) == 1


def test_fallback_schedule_respects_availability_and_contract() -> None:
    employee = build_employee(
        contract_hours=20,
        exceptions=[build_exception(date(2024, 3, 4), "sick")],
    )

    schedule = build_fallback_schedule(employee, WEEK, build_constraints(), RULES)

    assert schedule["monday"] == []
    assert [(slot.start, slot.end) for slot in schedule["tuesday"]] == [("09:00", "17:00")]
    assert [(slot.start, slot.end) for slot in schedule["thursday"]] == [("09:00", "13:00")]
    assert schedule["friday"] == []
    assert schedule_hours(schedule) == 20


@pytest.mark.parametrize(
    ("overrides", "code"),
    [
        ({"employees": []}, "no-employees"),
        ({"week_number": 0}, "invalid-week"),
        ({"week_number": 54}, "invalid-week"),
    ],
)
def test_invalid_requests_return_an_empty_result(overrides: dict, code: str) -> None:
    reporter = RecordingReporter()

    result = generate_weekly_schedule(build_request(**overrides), reporter=reporter)

    assert result.outcomes == []
    assert result.schedules == {}
    assert [violation.code for violation in result.violations] == [code]
    assert reporter.samples[-1].success is False


def test_batch_errors_are_reported_and_raised() -> None:
    reporter = RecordingReporter()
    request = replace(build_request(), strategy="random")

    with pytest.raises(ValueError):
        generate_weekly_schedule(request, reporter=reporter)

    assert reporter.errors[0][1]["operation"] == "generate_schedule"
    assert reporter.samples[-1].success is False


def test_performance_sample_is_reported() -> None:
    reporter = RecordingReporter()

    generate_weekly_schedule(build_request(), reporter=reporter)

    sample = reporter.samples[-1]
    assert sample.operation == "generate_schedule"
    assert sample.employee_count == 1
    assert sample.success is True
    assert sample.duration_ms >= 0


def test_concentration_strategy_uses_fewer_days() -> None:
    distributed = _generate(employees=[build_employee(contract_hours=21)]).schedules["emp-1"]
    concentrated = _generate(employees=[build_employee(contract_hours=21)], strategy="concentration").schedules[
        "emp-1"
    ]

    assert sum(1 for day in WEEKDAYS if concentrated[day]) < sum(1 for day in WEEKDAYS if distributed[day])
    assert schedule_hours(concentrated) == 21


def test_compare_strategies_keeps_the_best_scored_candidate() -> None:
    employee = build_employee(
        contract_hours=28,
        preferences=build_preferences(preferred_days=["monday", "tuesday"]),
    )

    result = _generate(employees=[employee], compare_strategies=True)

    outcome = result.outcome_for("emp-1")
    context = build_planning_context(employee, WEEK, RULES.company_defaults, RULES)
    strategy, _, score = select_best_candidate(context)
    assert outcome.strategy == strategy
    assert outcome.score == score
    assert outcome.strategy == "preferences"
    assert schedule_hours(outcome.schedule) == 28


def test_generation_is_deterministic() -> None:
    request = build_request(
        employees=[
            build_employee(id="a", contract_hours=35),
            build_employee(id="b", contract_hours=22, preferences=build_preferences(preferred_days=["friday"])),
        ]
    )

    first = generate_weekly_schedule(request, reporter=RecordingReporter())
    second = generate_weekly_schedule(request, reporter=RecordingReporter())

    assert first.schedules == second.schedules


def test_vacation_on_monday_empties_monday_whatever_the_settings() -> None:
    employee = build_employee(
        contract_hours=40,
        rest_day=None,
        exceptions=[build_exception(date(2024, 3, 4), "vacation")],
        preferences=build_preferences(preferred_days=["monday"], allow_split_shifts=False),
    )

    for strategy in ("distribution", "preferences", "concentration"):
        schedule = _generate(employees=[employee], strategy=strategy).schedules["emp-1"]
        assert schedule["monday"] == []


def test_training_and_reduced_days_are_still_planned() -> None:
    employee = build_employee(
        contract_hours=35,
        exceptions=[
            build_exception(date(2024, 3, 4), "training"),
            build_exception(date(2024, 3, 5), "reduced"),
        ],
    )

    schedule = _generate(employees=[employee]).schedules["emp-1"]

    assert schedule["monday"]
    assert schedule["tuesday"]


def test_hundred_employees_are_generated_quickly() -> None:
    employees = [build_employee(id=f"emp-{index}", contract_hours=20 + index % 20) for index in range(100)]
    started = perf_counter()

    result = _generate(employees=employees)

    assert perf_counter() - started < 1.0
    assert set(result.schedules) == {employee.id for employee in employees}
    for employee in employees:
        total = schedule_hours(result.schedules[employee.id])
        assert abs(total - employee.contract_hours) <= 0.1 * employee.contract_hours


def test_tied_candidates_keep_the_earliest_strategy() -> None:
    employee = build_employee(contract_hours=35)

    result = _generate(employees=[employee], compare_strategies=True)

    outcome = result.outcome_for("emp-1")
    assert outcome.strategy == "distribution"
    assert outcome.score == 70

    context = build_planning_context(employee, WEEK, RULES.company_defaults, RULES)
    strategy, _, score = select_best_candidate(context, ("preferences", "distribution", "concentration"))
    assert strategy == "preferences"
    assert score == 70
