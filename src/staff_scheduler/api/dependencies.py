from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from staff_scheduler.core.config import Settings, get_settings
from staff_scheduler.services.cache import InMemoryScheduleCache, ScheduleCache
from staff_scheduler.services.monitoring import LoggingReporter, ScheduleReporter


@lru_cache
def _shared_cache(ttl_seconds: int) -> InMemoryScheduleCache:
    return InMemoryScheduleCache(ttl_seconds=ttl_seconds)


def get_schedule_cache(settings: Annotated[Settings, Depends(get_settings)]) -> ScheduleCache:
    return _shared_cache(settings.planning_cache_ttl_seconds)


def get_reporter(settings: Annotated[Settings, Depends(get_settings)]) -> ScheduleReporter:
    return LoggingReporter(slow_threshold_ms=settings.slow_generation_ms)
