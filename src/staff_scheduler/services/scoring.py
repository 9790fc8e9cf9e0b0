"""Score complete weekly candidates so the best strategy can be kept."""

from __future__ import annotations

from dataclasses import dataclass
from statistics import pvariance

from staff_scheduler.services.rules import LegalRules
from staff_scheduler.services.slots import intra_day_gaps, parse_time, parse_time_range, worked_hours
from staff_scheduler.services.types import DaySchedule, SchedulingEmployee, TimeSlot
from staff_scheduler.services.week_calendar import WEEKDAYS, normalize_weekday


@dataclass(frozen=True)
class ScoreWeights:
    contract_hours: float = 50.0
    preferred_days: float = 20.0
    preferred_hours: float = 15.0
    gap_penalty: float = 5.0
    evenness: float = 20.0


DEFAULT_WEIGHTS = ScoreWeights()


def _slot_in_ranges(slot: TimeSlot, ranges: list[tuple[int, int]]) -> bool:
    start, end = parse_time(slot.start), parse_time(slot.end)
    return any(range_start <= start and end <= range_end for range_start, range_end in ranges)


def score_candidate(
    schedule: DaySchedule,
    employee: SchedulingEmployee,
    legal_rules: LegalRules,
    weights: ScoreWeights = DEFAULT_WEIGHTS,
) -> float:
    """
    Compute a weighted score for one candidate week. Higher is better.

    Rewards matching the contract hours, working preferred days and hours and an
    even spread of hours over the worked days; penalises idle gaps when the
    employee does not accept split shifts.
    """
    preferences = employee.preferences
    daily_hours = {day: worked_hours(schedule.get(day, [])) for day in WEEKDAYS}
    worked_days = [day for day, hours in daily_hours.items() if hours > 0]
    total = sum(daily_hours.values())

    score = 0.0

    contract = employee.contract_hours
    if contract > 0:
        score += weights.contract_hours * (1 - abs(total - contract) / contract)
    elif total == 0:
        score += weights.contract_hours

    preferred_days = {normalize_weekday(day) for day in preferences.preferred_days}
    if preferred_days and worked_days:
        on_preferred = sum(1 for day in worked_days if day in preferred_days)
        score += weights.preferred_days * on_preferred / len(worked_days)

    work_slots = [
        slot for day in WEEKDAYS for slot in schedule.get(day, []) if not slot.is_lunch_break
    ]
    if preferences.preferred_hours and work_slots:
        ranges = [parse_time_range(value) for value in preferences.preferred_hours]
        inside = sum(1 for slot in work_slots if _slot_in_ranges(slot, ranges))
        score += weights.preferred_hours * inside / len(work_slots)

    if preferences.allow_split_shifts is False:
        gap_count = sum(
            len(intra_day_gaps(schedule.get(day, []), legal_rules.max_gap_minutes)) for day in WEEKDAYS
        )
        score -= weights.gap_penalty * gap_count

    variance = pvariance([daily_hours[day] for day in worked_days]) if worked_days else 0.0
    score += max(0.0, weights.evenness - variance)

    return round(score, 4)
