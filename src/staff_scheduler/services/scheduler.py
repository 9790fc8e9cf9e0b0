"""
Weekly schedule generation engine.

Each employee is planned independently: available days are resolved, weekly
contract hours are spread over them by a strategy, every day is turned into time
slots, runs of consecutive working days are capped and the result is checked
against legal targets. A failure for one employee is replaced by a minimal
fallback week and never stops the rest of the roster.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from time import perf_counter
from types import MappingProxyType
from typing import Callable, Mapping, Sequence

from staff_scheduler.services.availability import available_days
from staff_scheduler.services.distribution import (
    concentrate_hours,
    distribute_hours,
    distribute_preferred_first,
)
from staff_scheduler.services.limits import limit_consecutive_days, trim_consecutive_days
from staff_scheduler.services.monitoring import (
    LoggingReporter,
    PerformanceSample,
    ScheduleReporter,
    report_error,
    report_performance,
)
from staff_scheduler.services.rules import CompanyConstraints, RuleSet, SchedulingRules, load_default_rules
from staff_scheduler.services.scoring import score_candidate
from staff_scheduler.services.slots import (
    MINUTES_PER_DAY,
    build_day_slots,
    daily_capacity,
    format_time,
    parse_time,
    schedule_hours,
)
from staff_scheduler.services.types import (
    DaySchedule,
    EmployeeScheduleOutcome,
    GenerationRequest,
    ScheduleBatchResult,
    SchedulingEmployee,
    SchedulingViolation,
    StrategyName,
    TimeSlot,
)
from staff_scheduler.services.validation import check_schedule_structure, validate_employee_schedule
from staff_scheduler.services.week_calendar import WEEKDAYS, normalize_weekday, week_dates, week_label

logger = logging.getLogger(__name__)

STRATEGY_ORDER: tuple[StrategyName, ...] = ("distribution", "preferences", "concentration")


class ScheduleStructureError(ValueError):
    """Raised when an employee's week cannot be built into a usable schedule."""


def empty_schedule() -> DaySchedule:
    return {day: [] for day in WEEKDAYS}


@dataclass
class EmployeePlanningContext:
    employee: SchedulingEmployee
    week_dates: list[date]
    constraints: CompanyConstraints
    rules: SchedulingRules
    available: list[str]
    preferred: list[str]
    max_consecutive_days: int
    max_daily_hours: float

    @property
    def min_daily_hours(self) -> float:
        return self.constraints.min_hours_per_day

    @property
    def working_days(self) -> list[str]:
        """Available days narrowed to the preferred ones, minus days the limiter would clear."""
        days = self.preferred or self.available
        return trim_consecutive_days(days, self.max_consecutive_days)

    @property
    def usable_days(self) -> list[str]:
        return trim_consecutive_days(self.available, self.max_consecutive_days)


def build_planning_context(
    employee: SchedulingEmployee,
    dates: Sequence[date],
    constraints: CompanyConstraints,
    rules: SchedulingRules,
) -> EmployeePlanningContext:
    preferences = employee.preferences
    available = available_days(employee, dates, constraints)
    wanted = {normalize_weekday(day) for day in preferences.preferred_days}
    preferred = [day for day in available if day in wanted]
    max_consecutive = preferences.max_consecutive_days or rules.legal.default_max_consecutive_days
    capacity = daily_capacity(preferences, constraints, rules.slots)
    return EmployeePlanningContext(
        employee=employee,
        week_dates=list(dates),
        constraints=constraints,
        rules=rules,
        available=available,
        preferred=preferred,
        max_consecutive_days=max_consecutive,
        max_daily_hours=min(constraints.max_hours_per_day, capacity),
    )


def _plan_distribution(context: EmployeePlanningContext) -> dict[str, float]:
    return distribute_hours(
        context.employee.contract_hours,
        context.working_days,
        min_hours=context.min_daily_hours,
        max_hours=context.max_daily_hours,
    )


def _plan_preferences(context: EmployeePlanningContext) -> dict[str, float]:
    usable = context.usable_days
    preferred = [day for day in usable if day in context.preferred]
    others = [day for day in usable if day not in context.preferred]
    if not preferred:
        return distribute_hours(
            context.employee.contract_hours,
            usable,
            min_hours=context.min_daily_hours,
            max_hours=context.max_daily_hours,
        )
    return distribute_preferred_first(
        context.employee.contract_hours,
        preferred,
        others,
        min_hours=context.min_daily_hours,
        max_hours=context.max_daily_hours,
    )


def _plan_concentration(context: EmployeePlanningContext) -> dict[str, float]:
    return concentrate_hours(
        context.employee.contract_hours,
        context.working_days,
        min_hours=context.min_daily_hours,
        max_hours=context.max_daily_hours,
    )


STRATEGY_PLANNERS: Mapping[str, Callable[[EmployeePlanningContext], dict[str, float]]] = MappingProxyType(
    {
        "distribution": _plan_distribution,
        "preferences": _plan_preferences,
        "concentration": _plan_concentration,
    }
)


def build_candidate(context: EmployeePlanningContext, strategy: StrategyName) -> DaySchedule:
    """Build one complete week for the employee with the given strategy."""
    hours_plan = STRATEGY_PLANNERS[strategy](context)
    logger.debug("Hours plan for %s (%s): %s", context.employee.id, strategy, hours_plan)

    schedule = empty_schedule()
    for day in WEEKDAYS:
        hours = hours_plan.get(day, 0.0)
        if hours > 0:
            schedule[day] = build_day_slots(
                hours, context.employee.preferences, context.constraints, context.rules.slots
            )
    return limit_consecutive_days(schedule, context.max_consecutive_days)


def select_best_candidate(
    context: EmployeePlanningContext,
    strategies: Sequence[StrategyName] = STRATEGY_ORDER,
) -> tuple[StrategyName, DaySchedule, float]:
    """Build a candidate per strategy and keep the highest score; ties keep the earliest."""
    best: tuple[StrategyName, DaySchedule, float] | None = None
    for strategy in strategies:
        candidate = build_candidate(context, strategy)
        score = score_candidate(candidate, context.employee, context.rules.legal)
        logger.debug("Candidate %s for %s scored %.2f", strategy, context.employee.id, score)
        if best is None or score > best[2]:
            best = (strategy, candidate, score)
    if best is None:
        raise ScheduleStructureError("no strategy produced a candidate")
    return best


def build_fallback_schedule(
    employee: SchedulingEmployee,
    dates: Sequence[date],
    constraints: CompanyConstraints,
    rules: SchedulingRules,
) -> DaySchedule:
    """
    Minimal week used when generation failed: the first available weekdays, one
    block per day from the fallback start time, no split or lunch handling.
    """
    schedule = empty_schedule()
    fallback = rules.fallback
    try:
        days = available_days(employee, dates, constraints)
        remaining = float(employee.contract_hours)
        start = parse_time(fallback.start_time)
        for day in days[: fallback.max_days]:
            if remaining <= 0:
                break
            hours = min(fallback.max_hours_per_day, remaining)
            end = min(start + round(hours * 60), MINUTES_PER_DAY - 1)
            if end > start:
                schedule[day] = [TimeSlot(format_time(start), format_time(end))]
            remaining -= hours
    except Exception:
        logger.exception("Fallback schedule for employee %s left empty", getattr(employee, "id", None))
        return empty_schedule()
    return schedule


def _build_employee_schedule(
    employee: SchedulingEmployee,
    dates: Sequence[date],
    constraints: CompanyConstraints,
    rules: SchedulingRules,
    strategy: StrategyName,
    compare_strategies: bool,
) -> tuple[DaySchedule, StrategyName, float | None]:
    context = build_planning_context(employee, dates, constraints, rules)
    logger.debug("Available days for %s: %s", employee.id, context.available)

    if employee.contract_hours > 0 and not context.available:
        raise ScheduleStructureError(f"no usable day for employee {employee.id}")

    score: float | None = None
    if compare_strategies:
        strategy, schedule, score = select_best_candidate(context)
    else:
        schedule = build_candidate(context, strategy)

    problems = check_schedule_structure(schedule)
    if problems:
        raise ScheduleStructureError("; ".join(problems))
    return schedule, strategy, score


def schedule_employee(
    employee: SchedulingEmployee,
    dates: Sequence[date],
    constraints: CompanyConstraints,
    rule_set: RuleSet,
    *,
    week_number: int,
    year: int,
    strategy: StrategyName = "distribution",
    compare_strategies: bool = False,
    reporter: ScheduleReporter | None = None,
) -> EmployeeScheduleOutcome:
    """Plan one employee; any failure is turned into a fallback outcome."""
    rules = rule_set.rules
    iso_week = week_label(year, week_number)
    try:
        schedule, chosen, score = _build_employee_schedule(
            employee, dates, constraints, rules, strategy, compare_strategies
        )
        violations = validate_employee_schedule(
            employee, schedule, dates, rules.legal, iso_week=iso_week
        )
    except Exception as exc:
        logger.exception("Schedule generation failed for employee %s", getattr(employee, "id", None))
        report_error(
            reporter or LoggingReporter(),
            exc,
            {
                "operation": "generate_employee_schedule",
                "employee_id": getattr(employee, "id", None),
                "week_number": week_number,
                "year": year,
                "cause": repr(exc),
            },
        )
        schedule = build_fallback_schedule(employee, dates, constraints, rules)
        return EmployeeScheduleOutcome(
            employee_id=getattr(employee, "id", ""),
            schedule=schedule,
            status="fallback",
            worked_hours=schedule_hours(schedule),
            failure_reason=str(exc) or exc.__class__.__name__,
            violations=[
                SchedulingViolation(
                    code="generation-failed",
                    message=f"Fallback schedule used for employee {getattr(employee, 'id', None)}: {exc}",
                    severity="critical",
                    scope="employee",
                    employee_id=getattr(employee, "id", None),
                    iso_week=iso_week,
                    meta={"reason": str(exc)},
                )
            ],
        )

    total = schedule_hours(schedule)
    logger.debug(
        "Schedule for %s: %.2fh (contract %.2fh) via %s",
        employee.id,
        total,
        employee.contract_hours,
        chosen,
    )
    return EmployeeScheduleOutcome(
        employee_id=employee.id,
        schedule=schedule,
        status="generated",
        strategy=chosen,
        score=score,
        worked_hours=total,
        violations=violations,
    )


def _empty_batch(request: GenerationRequest, code: str, message: str) -> ScheduleBatchResult:
    iso_week = week_label(request.year, request.week_number)
    return ScheduleBatchResult(
        week_number=request.week_number,
        year=request.year,
        iso_week=iso_week,
        violations=[
            SchedulingViolation(
                code=code,
                message=message,
                severity="warning",
                scope="schedule",
                iso_week=iso_week,
            )
        ],
    )


def _elapsed_ms(started: float) -> float:
    return (perf_counter() - started) * 1000


def generate_weekly_schedule(
    request: GenerationRequest,
    *,
    reporter: ScheduleReporter | None = None,
    rule_set: RuleSet | None = None,
) -> ScheduleBatchResult:
    """
    Generate one week of slots for every employee of *request*.

    Empty rosters and week numbers outside 1-53 return an empty result carrying a
    warning. Errors raised while handling the request itself (outside the
    per-employee loop) are reported and re-raised.
    """
    reporter = reporter or LoggingReporter()
    rule_set = rule_set or load_default_rules()
    started = perf_counter()
    employee_count = 0

    try:
        employee_count = len(request.employees)
        iso_week = week_label(request.year, request.week_number)
        logger.info("Generating schedule for week %s (%d employees)", iso_week, employee_count)

        if not request.employees:
            logger.warning("No employees supplied for week %s", iso_week)
            report_performance(
                reporter, PerformanceSample("generate_schedule", _elapsed_ms(started), 0, False)
            )
            return _empty_batch(request, "no-employees", "No employees supplied for schedule generation.")

        if not 1 <= request.week_number <= 53:
            logger.warning("Invalid week number %s", request.week_number)
            report_performance(
                reporter,
                PerformanceSample("generate_schedule", _elapsed_ms(started), employee_count, False),
            )
            return _empty_batch(
                request, "invalid-week", f"Week number {request.week_number} is outside 1-53."
            )

        if request.strategy not in STRATEGY_PLANNERS:
            raise ValueError(f"Unknown strategy {request.strategy!r}")

        dates = week_dates(request.week_number, request.year)
        constraints = request.constraints or rule_set.rules.company_defaults
        outcomes = [
            schedule_employee(
                employee,
                dates,
                constraints,
                rule_set,
                week_number=request.week_number,
                year=request.year,
                strategy=request.strategy,
                compare_strategies=request.compare_strategies,
                reporter=reporter,
            )
            for employee in request.employees
        ]
    except Exception as exc:
        logger.exception("Schedule generation aborted")
        report_error(
            reporter,
            exc,
            {
                "operation": "generate_schedule",
                "employee_count": employee_count,
                "week_number": getattr(request, "week_number", None),
                "year": getattr(request, "year", None),
                "cause": repr(exc),
            },
        )
        report_performance(
            reporter,
            PerformanceSample("generate_schedule", _elapsed_ms(started), employee_count, False),
        )
        raise

    report_performance(
        reporter, PerformanceSample("generate_schedule", _elapsed_ms(started), employee_count, True)
    )
    fallbacks = sum(1 for outcome in outcomes if outcome.is_fallback)
    logger.info("Week %s generated, %d fallback(s)", iso_week, fallbacks)
    return ScheduleBatchResult(
        week_number=request.week_number,
        year=request.year,
        iso_week=iso_week,
        week_dates=dates,
        outcomes=outcomes,
    )
