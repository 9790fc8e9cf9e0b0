"""
Internal data types for schedule generation.
Kept free of API schemas so the engine can be called directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Literal

from staff_scheduler.services.rules import CompanyConstraints

ExceptionType = Literal["vacation", "sick", "unavailable", "training", "reduced"]
StrategyName = Literal["distribution", "preferences", "concentration"]
OutcomeStatus = Literal["generated", "fallback", "cached"]


@dataclass
class EmployeeException:
    date: date
    exception_type: ExceptionType


@dataclass
class EmployeePreferences:
    preferred_days: list[str] = field(default_factory=list)
    preferred_hours: list[str] = field(default_factory=list)  # "HH:MM-HH:MM"
    allow_split_shifts: bool | None = None  # None behaves like True
    max_consecutive_days: int | None = None


@dataclass
class SchedulingEmployee:
    id: str
    contract_hours: float
    exceptions: list[EmployeeException] = field(default_factory=list)
    preferences: EmployeePreferences = field(default_factory=EmployeePreferences)
    rest_day: str | None = None


@dataclass(frozen=True)
class TimeSlot:
    start: str  # HH:MM
    end: str
    is_lunch_break: bool = False


DaySchedule = dict[str, list[TimeSlot]]


@dataclass
class GenerationRequest:
    week_number: int
    year: int
    employees: list[SchedulingEmployee]
    constraints: CompanyConstraints | None = None
    strategy: StrategyName = "distribution"
    compare_strategies: bool = False


@dataclass
class SchedulingViolation:
    code: str
    message: str
    severity: Literal["info", "warning", "critical"] = "warning"
    meta: dict[str, str | int | float] = field(default_factory=dict)
    scope: Literal["schedule", "day", "employee", "week"] = "schedule"
    day: date | None = None
    employee_id: str | None = None
    iso_week: str | None = None


@dataclass
class EmployeeScheduleOutcome:
    """Result of scheduling one employee, successful or substituted."""

    employee_id: str
    schedule: DaySchedule
    status: OutcomeStatus = "generated"
    strategy: StrategyName | None = None
    score: float | None = None
    worked_hours: float = 0.0
    violations: list[SchedulingViolation] = field(default_factory=list)
    failure_reason: str | None = None

    @property
    def is_fallback(self) -> bool:
        return self.status == "fallback"


@dataclass
class ScheduleBatchResult:
    """Output of one generation run across a roster."""

    week_number: int
    year: int
    iso_week: str
    week_dates: list[date] = field(default_factory=list)
    outcomes: list[EmployeeScheduleOutcome] = field(default_factory=list)
    violations: list[SchedulingViolation] = field(default_factory=list)

    @property
    def schedules(self) -> dict[str, DaySchedule]:
        return {outcome.employee_id: outcome.schedule for outcome in self.outcomes}

    @property
    def failures(self) -> list[EmployeeScheduleOutcome]:
        return [outcome for outcome in self.outcomes if outcome.is_fallback]

    def outcome_for(self, employee_id: str) -> EmployeeScheduleOutcome | None:
        for outcome in self.outcomes:
            if outcome.employee_id == employee_id:
                return outcome
        return None

    def violations_for(self, employee_id: str) -> list[SchedulingViolation]:
        outcome = self.outcome_for(employee_id)
        return list(outcome.violations) if outcome else []
