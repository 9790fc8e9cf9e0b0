import logging
from datetime import date
from time import perf_counter
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from staff_scheduler.api.dependencies import get_reporter, get_schedule_cache
from staff_scheduler.schemas.planning import (
    AutoGenerateRequest,
    AutoGenerateResponse,
    EmployeePayload,
    EmployeePlanningRead,
    PlanningMetadata,
    PlanningStats,
    PlanningViolation,
    TimeSlotRead,
    WeekDatesRequest,
    WeekDatesResponse,
)
from staff_scheduler.services.cache import ScheduleCache, generate_with_cache
from staff_scheduler.services.monitoring import ScheduleReporter
from staff_scheduler.services.scheduler import generate_weekly_schedule
from staff_scheduler.services.slots import worked_hours
from staff_scheduler.services.types import (
    DaySchedule,
    EmployeeException,
    EmployeePreferences,
    GenerationRequest,
    ScheduleBatchResult,
    SchedulingEmployee,
    SchedulingViolation,
)
from staff_scheduler.services.week_calendar import WEEKDAYS, week_dates, week_label

logger = logging.getLogger(__name__)

router = APIRouter()

FULL_SCHEDULE_RATIO = 0.9


def _to_scheduling_employee(payload: EmployeePayload) -> SchedulingEmployee:
    preferences = payload.preferences
    return SchedulingEmployee(
        id=payload.id,
        contract_hours=payload.contract_hours,
        exceptions=[EmployeeException(date=item.date, exception_type=item.type) for item in payload.exceptions],
        preferences=EmployeePreferences(
            preferred_days=list(preferences.preferred_days),
            preferred_hours=list(preferences.preferred_hours),
            allow_split_shifts=preferences.allow_split_shifts,
            max_consecutive_days=preferences.max_consecutive_days,
        ),
        rest_day=payload.rest_day,
    )


def _check_exception_years(payload: AutoGenerateRequest) -> None:
    for employee in payload.employees:
        for item in employee.exceptions:
            if item.date.year != payload.year:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Exception date {item.date.isoformat()} of employee {employee.id} is outside {payload.year}",
                )


def _map_schedule(schedule: DaySchedule) -> dict[str, list[TimeSlotRead]]:
    return {
        day: [
            TimeSlotRead(start=slot.start, end=slot.end, is_lunch_break=slot.is_lunch_break)
            for slot in schedule.get(day, [])
        ]
        for day in WEEKDAYS
    }


def _map_violation(v: SchedulingViolation) -> PlanningViolation:
    day_value = v.day.isoformat() if isinstance(v.day, date) else v.day
    return PlanningViolation(
        code=v.code,
        message=v.message,
        severity=v.severity,
        meta=v.meta,
        scope=v.scope,
        day=day_value,
        employee_id=v.employee_id,
        iso_week=v.iso_week,
    )


def _calculate_planning_stats(
    result: ScheduleBatchResult,
    contract_hours: dict[str, float],
) -> PlanningStats:
    total_hours = 0.0
    full_schedules = 0
    active_days: set[str] = set()
    for outcome in result.outcomes:
        total_hours += outcome.worked_hours
        contract = contract_hours.get(outcome.employee_id, 0.0)
        if contract and outcome.worked_hours >= contract * FULL_SCHEDULE_RATIO:
            full_schedules += 1
        for day, slots in outcome.schedule.items():
            if worked_hours(slots) > 0:
                active_days.add(day)

    employee_count = len(result.outcomes)
    return PlanningStats(
        total_hours_planned=round(total_hours, 2),
        average_hours_per_employee=round(total_hours / employee_count, 2) if employee_count else 0.0,
        employees_with_full_schedule=full_schedules,
        days_with_activity=len(active_days),
    )


@router.post("/auto-generate", response_model=AutoGenerateResponse)
async def auto_generate_planning(
    payload: AutoGenerateRequest,
    cache: Annotated[ScheduleCache, Depends(get_schedule_cache)],
    reporter: Annotated[ScheduleReporter, Depends(get_reporter)],
) -> AutoGenerateResponse:
    """Generate (or serve from cache) the weekly schedule of every employee."""
    _check_exception_years(payload)

    request = GenerationRequest(
        week_number=payload.week_number,
        year=payload.year,
        employees=[_to_scheduling_employee(employee) for employee in payload.employees],
        constraints=payload.constraints,
        strategy=payload.strategy,
        compare_strategies=payload.compare_strategies,
    )

    started = perf_counter()
    if payload.use_cache:
        result = generate_with_cache(request, cache, reporter=reporter)
    else:
        result = generate_weekly_schedule(request, reporter=reporter)
    generation_ms = round((perf_counter() - started) * 1000, 3)

    contract_hours = {employee.id: employee.contract_hours for employee in payload.employees}
    violations = list(result.violations)
    for outcome in result.outcomes:
        violations.extend(outcome.violations)

    logger.info(
        "Auto-generated week %s for %d employees in %.2fms",
        result.iso_week,
        len(result.outcomes),
        generation_ms,
    )
    return AutoGenerateResponse(
        planning={outcome.employee_id: _map_schedule(outcome.schedule) for outcome in result.outcomes},
        employees=[
            EmployeePlanningRead(
                employee_id=outcome.employee_id,
                status=outcome.status,
                strategy=outcome.strategy,
                score=outcome.score,
                worked_hours=outcome.worked_hours,
                schedule=_map_schedule(outcome.schedule),
            )
            for outcome in result.outcomes
        ],
        violations=[_map_violation(v) for v in violations],
        metadata=PlanningMetadata(
            week_number=result.week_number,
            year=result.year,
            iso_week=result.iso_week,
            week_dates=result.week_dates,
            employee_count=len(result.outcomes),
            generation_ms=generation_ms,
            cached_employee_ids=[o.employee_id for o in result.outcomes if o.status == "cached"],
            fallback_employee_ids=[o.employee_id for o in result.failures],
            stats=_calculate_planning_stats(result, contract_hours),
        ),
    )


@router.post("/week-dates", response_model=WeekDatesResponse)
async def resolve_week_dates(payload: WeekDatesRequest) -> WeekDatesResponse:
    dates = week_dates(payload.week_number, payload.year)
    return WeekDatesResponse(
        week_number=payload.week_number,
        year=payload.year,
        iso_week=week_label(payload.year, payload.week_number),
        dates=dict(zip(WEEKDAYS, dates)),
    )
