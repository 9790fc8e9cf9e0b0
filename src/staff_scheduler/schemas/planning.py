import datetime
from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from staff_scheduler.services.rules import CompanyConstraints, validate_time_range
from staff_scheduler.services.week_calendar import normalize_weekday


class EmployeeExceptionPayload(BaseModel):
    date: datetime.date
    type: Literal["vacation", "sick", "unavailable", "training", "reduced"]


class EmployeePreferencesPayload(BaseModel):
    preferred_days: list[str] = Field(default_factory=list)
    preferred_hours: list[str] = Field(default_factory=list)
    allow_split_shifts: bool | None = None
    max_consecutive_days: int | None = Field(default=None, ge=1, le=7)

    @field_validator("preferred_days")
    @classmethod
    def normalize_days(cls, value: list[str]) -> list[str]:
        return [normalize_weekday(day) for day in value]

    @field_validator("preferred_hours")
    @classmethod
    def validate_hours(cls, value: list[str]) -> list[str]:
        return [validate_time_range(item) for item in value]


class EmployeePayload(BaseModel):
    id: str = Field(min_length=1)
    contract_hours: float = Field(ge=1, le=60)
    exceptions: list[EmployeeExceptionPayload] = Field(default_factory=list)
    preferences: EmployeePreferencesPayload = Field(default_factory=EmployeePreferencesPayload)
    rest_day: str | None = None

    @field_validator("rest_day")
    @classmethod
    def normalize_rest_day(cls, value: str | None) -> str | None:
        return normalize_weekday(value) if value else None


class AutoGenerateRequest(BaseModel):
    week_number: int = Field(ge=1, le=53)
    year: int = Field(ge=2000, le=2100)
    employees: list[EmployeePayload] = Field(min_length=1)
    constraints: CompanyConstraints | None = None
    strategy: Literal["distribution", "preferences", "concentration"] = "distribution"
    compare_strategies: bool = False
    use_cache: bool = True


class TimeSlotRead(BaseModel):
    start: str
    end: str
    is_lunch_break: bool = False


class PlanningViolation(BaseModel):
    code: str
    message: str
    severity: Literal["info", "warning", "critical"] = "warning"
    meta: dict[str, Any] = Field(default_factory=dict)
    scope: Literal["schedule", "day", "employee", "week"] = "schedule"
    day: str | None = None
    employee_id: str | None = None
    iso_week: str | None = None


class EmployeePlanningRead(BaseModel):
    employee_id: str
    status: Literal["generated", "fallback", "cached"]
    strategy: str | None = None
    score: float | None = None
    worked_hours: float
    schedule: dict[str, list[TimeSlotRead]]


class PlanningStats(BaseModel):
    total_hours_planned: float
    average_hours_per_employee: float
    employees_with_full_schedule: int
    days_with_activity: int


class PlanningMetadata(BaseModel):
    week_number: int
    year: int
    iso_week: str
    week_dates: list[date]
    employee_count: int
    generation_ms: float
    cached_employee_ids: list[str] = Field(default_factory=list)
    fallback_employee_ids: list[str] = Field(default_factory=list)
    stats: PlanningStats


class AutoGenerateResponse(BaseModel):
    planning: dict[str, dict[str, list[TimeSlotRead]]]
    employees: list[EmployeePlanningRead]
    violations: list[PlanningViolation] = Field(default_factory=list)
    metadata: PlanningMetadata


class WeekDatesRequest(BaseModel):
    week_number: int = Field(ge=1, le=53)
    year: int = Field(ge=2000, le=2100)


class WeekDatesResponse(BaseModel):
    week_number: int
    year: int
    iso_week: str
    dates: dict[str, date]
