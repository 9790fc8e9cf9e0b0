"""Per-employee caching of generated weekly schedules."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from typing import Callable, Protocol

from staff_scheduler.services.monitoring import ScheduleReporter
from staff_scheduler.services.rules import RuleSet
from staff_scheduler.services.scheduler import generate_weekly_schedule
from staff_scheduler.services.types import (
    EmployeeScheduleOutcome,
    GenerationRequest,
    ScheduleBatchResult,
)
from staff_scheduler.services.week_calendar import week_dates, week_label

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60


def planning_key(employee_id: str, year: int, week_number: int) -> str:
    return f"planning_generated:{employee_id}:{year}:{week_number}"


class ScheduleCache(Protocol):
    def get(self, key: str) -> EmployeeScheduleOutcome | None:
        ...

    def set(self, key: str, outcome: EmployeeScheduleOutcome) -> None:
        ...


@dataclass
class _CacheEntry:
    outcome: EmployeeScheduleOutcome
    expires_at: float


class InMemoryScheduleCache:
    """Process-local cache with a fixed time to live per entry."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, _CacheEntry] = {}

    def get(self, key: str) -> EmployeeScheduleOutcome | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            del self._entries[key]
            return None
        return entry.outcome

    def set(self, key: str, outcome: EmployeeScheduleOutcome) -> None:
        self._entries[key] = _CacheEntry(outcome=outcome, expires_at=self._clock() + self.ttl_seconds)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def _detached(outcome: EmployeeScheduleOutcome, **changes) -> EmployeeScheduleOutcome:
    """Copy *outcome* so the cache and its callers never share slot lists."""
    return replace(
        outcome,
        schedule={day: list(slots) for day, slots in outcome.schedule.items()},
        violations=list(outcome.violations),
        **changes,
    )


def generate_with_cache(
    request: GenerationRequest,
    cache: ScheduleCache,
    *,
    reporter: ScheduleReporter | None = None,
    rule_set: RuleSet | None = None,
) -> ScheduleBatchResult:
    """
    Serve cached employees from *cache* and generate the rest in one batch.

    Outcomes keep the order of ``request.employees``; cached ones are marked with
    the ``cached`` status. Fallback outcomes are never stored.
    """
    cached: dict[str, EmployeeScheduleOutcome] = {}
    missing = []
    for employee in request.employees:
        hit = cache.get(planning_key(employee.id, request.year, request.week_number))
        if hit is None:
            missing.append(employee)
        else:
            cached[employee.id] = _detached(hit, status="cached")

    logger.info(
        "Schedule cache for week %s/%s: %d hit(s), %d miss(es)",
        request.week_number,
        request.year,
        len(cached),
        len(missing),
    )

    if cached and not missing:
        generated = ScheduleBatchResult(
            week_number=request.week_number,
            year=request.year,
            iso_week=week_label(request.year, request.week_number),
            week_dates=week_dates(request.week_number, request.year),
        )
    else:
        generated = generate_weekly_schedule(
            replace(request, employees=missing), reporter=reporter, rule_set=rule_set
        )

    for outcome in generated.outcomes:
        if not outcome.is_fallback:
            cache.set(planning_key(outcome.employee_id, request.year, request.week_number), _detached(outcome))

    fresh = {outcome.employee_id: outcome for outcome in generated.outcomes}
    outcomes = [
        cached.get(employee.id) or fresh[employee.id]
        for employee in request.employees
        if employee.id in cached or employee.id in fresh
    ]
    generated.outcomes = outcomes
    return generated
