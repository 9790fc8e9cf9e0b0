"""Failure and performance reporting for schedule generation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal, Mapping, Protocol

logger = logging.getLogger(__name__)

PerformanceTier = Literal["excellent", "good", "slow"]


@dataclass(frozen=True)
class PerformanceSample:
    operation: str
    duration_ms: float
    employee_count: int
    success: bool

    @property
    def tier(self) -> PerformanceTier:
        if self.duration_ms < 5:
            return "excellent"
        if self.duration_ms < 20:
            return "good"
        return "slow"


class ScheduleReporter(Protocol):
    """Monitoring sink. Implementations must not raise into the caller."""

    def capture_error(self, error: BaseException, context: Mapping[str, Any]) -> None:
        ...

    def capture_performance(self, sample: PerformanceSample) -> None:
        ...


class LoggingReporter:
    """Reporter that writes structured events to the standard logging tree."""

    def __init__(self, slow_threshold_ms: float = 100.0, log: logging.Logger | None = None) -> None:
        self.slow_threshold_ms = slow_threshold_ms
        self.log = log or logger

    def capture_error(self, error: BaseException, context: Mapping[str, Any]) -> None:
        self.log.error(
            "Schedule generation failure in %s: %s",
            context.get("operation", "unknown"),
            error,
            extra={"schedule_context": dict(context)},
        )

    def capture_performance(self, sample: PerformanceSample) -> None:
        self.log.info(
            "%s took %.2fms for %d employee(s) (success=%s, tier=%s)",
            sample.operation,
            sample.duration_ms,
            sample.employee_count,
            sample.success,
            sample.tier,
        )
        if sample.success and sample.duration_ms > self.slow_threshold_ms:
            self.log.warning(
                "Planning generation slow: %.2fms for %d employees",
                sample.duration_ms,
                sample.employee_count,
            )


class NullReporter:
    def capture_error(self, error: BaseException, context: Mapping[str, Any]) -> None:
        return None

    def capture_performance(self, sample: PerformanceSample) -> None:
        return None


def report_error(reporter: ScheduleReporter, error: BaseException, context: Mapping[str, Any]) -> None:
    """Forward *error* to *reporter*; a failing reporter is logged, never propagated."""
    try:
        reporter.capture_error(error, context)
    except Exception:
        logger.warning("Reporter failed to capture an error event", exc_info=True)


def report_performance(reporter: ScheduleReporter, sample: PerformanceSample) -> None:
    try:
        reporter.capture_performance(sample)
    except Exception:
        logger.warning("Reporter failed to capture a performance sample", exc_info=True)
