"""Domain representations for scheduling rules, company constraints and loaders."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources

from pydantic import BaseModel, Field, field_validator, model_validator

from staff_scheduler.services.week_calendar import normalize_weekday

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
TIME_RANGE_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d-([01]\d|2[0-3]):[0-5]\d$")


def validate_time_range(value: str) -> str:
    if not TIME_RANGE_PATTERN.match(value):
        raise ValueError(f"Invalid time range {value!r}, expected HH:MM-HH:MM")
    return value


class CompanyConstraints(BaseModel):
    """Company-wide operating constraints applied to every employee."""

    # None keeps every weekday open, an empty list closes the company all week.
    open_days: list[str] | None = None
    open_hours: list[str] = Field(default_factory=list)
    min_hours_per_day: float = Field(default=2, ge=1, le=12)
    max_hours_per_day: float = Field(default=8, ge=4, le=12)
    mandatory_lunch_break: bool = False
    lunch_break_duration: int = Field(default=60, ge=30, le=120)
    # Informational only, staffing is not coordinated across employees.
    min_employees_per_slot: int | None = Field(default=None, ge=0)

    @field_validator("open_days")
    @classmethod
    def normalize_open_days(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return [normalize_weekday(day) for day in value]

    @field_validator("open_hours")
    @classmethod
    def validate_open_hours(cls, value: list[str]) -> list[str]:
        return [validate_time_range(item) for item in value]

    @model_validator(mode="after")
    def validate_daily_bounds(self) -> "CompanyConstraints":
        if self.min_hours_per_day > self.max_hours_per_day:
            raise ValueError("min_hours_per_day cannot exceed max_hours_per_day")
        return self


class SlotRules(BaseModel):
    default_open_hours: str = "09:00-17:00"
    max_chunk_hours: float = 4
    split_gap_minutes: int = 30
    lunch_threshold_hours: float = 6
    granularity_minutes: int = 15

    @field_validator("default_open_hours")
    @classmethod
    def validate_default_open_hours(cls, value: str) -> str:
        return validate_time_range(value)


class LegalRules(BaseModel):
    default_max_consecutive_days: int = Field(default=5, ge=1, le=7)
    min_rest_hours: float = 11
    contract_hours_tolerance: float = Field(default=0.1, ge=0, le=1)
    max_gap_minutes: int = 15


class FallbackRules(BaseModel):
    max_days: int = Field(default=5, ge=1, le=7)
    start_time: str = "09:00"
    max_hours_per_day: float = 8

    @field_validator("start_time")
    @classmethod
    def validate_start_time(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError(f"Invalid time {value!r}, expected HH:MM")
        return value


class SchedulingRules(BaseModel):
    company_defaults: CompanyConstraints
    slots: SlotRules
    legal: LegalRules
    fallback: FallbackRules


@dataclass(frozen=True)
class RuleSet:
    """Wrapper used by the scheduler to access typed rules."""

    rules: SchedulingRules


def _load_rules_from_json() -> SchedulingRules:
    with resources.files("staff_scheduler.services.data").joinpath("default_rules.json").open(
        "r", encoding="utf-8"
    ) as handle:
        payload = json.load(handle)
    return SchedulingRules.model_validate(payload["rules"])


@lru_cache(maxsize=1)
def load_default_rules() -> RuleSet:
    """Return the default rule set bundled with the application."""

    return RuleSet(rules=_load_rules_from_json())
