from collections.abc import Mapping
from typing import Any

from staff_scheduler.services.monitoring import PerformanceSample


class RecordingReporter:
    """Reporter double keeping every captured event in memory."""

    def __init__(self) -> None:
        self.errors: list[tuple[BaseException, dict[str, Any]]] = []
        self.samples: list[PerformanceSample] = []

    def capture_error(self, error: BaseException, context: Mapping[str, Any]) -> None:
        self.errors.append((error, dict(context)))

    def capture_performance(self, sample: PerformanceSample) -> None:
        self.samples.append(sample)


class FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
