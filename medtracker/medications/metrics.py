"""
Derived Metrics - Read-only computations over a medication and its log.

None of these functions mutate state or raise on degenerate input; each
falls back to 0 or None instead.
"""
import math
from datetime import datetime, timedelta
from typing import Optional

from .models import Medication, MedicationLog, GoalPeriod
from .units import from_mg
from .goals import start_of_day, period_start, goal_progress

SECONDS_PER_DAY = 86400.0


def round_half_away_from_zero(value: float, digits: int = 1) -> float:
    """Round like a calculator does (2.25 -> 2.3, -2.25 -> -2.3)"""
    scale = 10 ** digits
    scaled = value * scale
    return math.copysign(math.floor(abs(scaled) + 0.5), scaled) / scale


def pills_remaining(medication: Medication) -> float:
    """Remaining supply in pills, 0 when ``mg_per_pill`` is not positive"""
    return from_mg(medication.total_mg_remaining, medication.mg_per_pill)


def pills_per_day_left(medication: Medication, now: Optional[datetime] = None) -> float:
    """
    Pills per day available until the next fill date.

    Only defined for prescriptions with a next fill date in the future.

    Args:
        medication: Medication to evaluate
        now: Reference time, defaults to the current time

    Returns:
        float: Pills per day rounded to one decimal, 0 when undefined
    """
    if not medication.is_prescription or medication.next_fill_date is None:
        return 0.0
    now = now or datetime.now()
    days_left = (medication.next_fill_date - now).total_seconds() / SECONDS_PER_DAY
    if days_left <= 0:
        return 0.0
    return round_half_away_from_zero(pills_remaining(medication) / days_left)


def days_until_refill(medication: Medication, now: Optional[datetime] = None) -> int:
    """
    Whole calendar days from now until the next fill date.

    A day only counts once the same wall-clock time has been reached on the
    following date, so 22:00 today to 09:00 tomorrow is 0 days.

    Returns:
        int: Days until refill, floored at 0 (0 when no fill date is set)
    """
    next_fill = getattr(medication, "next_fill_date", None)
    if next_fill is None:
        return 0
    now = now or datetime.now()
    days = (next_fill.date() - now.date()).days
    if days > 0 and now + timedelta(days=days) > next_fill:
        days -= 1
    return max(days, 0)


def calculated_next_dose_time(medication: Medication, now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Next dose time: the explicit override if set, otherwise the next goal
    time of day after now (wrapping to the earliest time tomorrow).

    Returns:
        datetime: Suggested next dose time, or None without an override or goal times
    """
    if medication.next_dose_time is not None:
        return medication.next_dose_time

    goal = medication.intake_goal
    if goal is None or not goal.times_of_day:
        return None

    now = now or datetime.now()
    times = sorted(goal.times_of_day, key=lambda t: t.minutes_since_midnight)
    for time_of_day in times:
        scheduled = now.replace(hour=time_of_day.hour, minute=time_of_day.minute, second=0, microsecond=0)
        if scheduled > now:
            return scheduled

    tomorrow = now + timedelta(days=1)
    return tomorrow.replace(hour=times[0].hour, minute=times[0].minute, second=0, microsecond=0)


# Intake summaries

def _dose_mg_between(medication: Medication, start: datetime, end: datetime) -> float:
    return sum(
        abs(log.mg_intake)
        for log in medication.logs
        if not log.is_refill and start <= log.timestamp <= end
    )


def total_today_mg(medication: Medication, now: Optional[datetime] = None) -> float:
    """Milligrams taken since midnight"""
    now = now or datetime.now()
    return _dose_mg_between(medication, start_of_day(now), now)


def average_daily_intake_mg(medication: Medication, now: Optional[datetime] = None) -> float:
    """Average milligrams per day over the last seven days"""
    now = now or datetime.now()
    return _dose_mg_between(medication, now - timedelta(days=6), now) / 7


def weekly_intake_mg(
    medication: Medication,
    now: Optional[datetime] = None,
    first_weekday: Optional[int] = None
) -> float:
    """Milligrams taken since the start of the current week"""
    now = now or datetime.now()
    return _dose_mg_between(medication, period_start(GoalPeriod.PER_WEEK, now, first_weekday), now)


def last_dose(medication: Medication) -> Optional[MedicationLog]:
    """Most recent non-refill log by timestamp"""
    doses = [log for log in medication.sorted_logs if not log.is_refill]
    return doses[-1] if doses else None


def average_since_refill_mg(medication: Medication, now: Optional[datetime] = None) -> float:
    """
    Average milligrams per day since the last fill (prescriptions only).

    Elapsed time is floored at one day.
    """
    if not medication.is_prescription or medication.last_filled_on is None:
        return 0.0
    now = now or datetime.now()
    last_filled = medication.last_filled_on
    total = sum(
        abs(log.mg_intake)
        for log in medication.logs
        if not log.is_refill and log.timestamp >= last_filled
    )
    days = max((now - last_filled).total_seconds() / SECONDS_PER_DAY, 1)
    return total / days


def doses_left_in_period(
    medication: Medication,
    now: Optional[datetime] = None,
    first_weekday: Optional[int] = None
) -> Optional[float]:
    """Doses still needed to reach the goal target this period, None without a goal"""
    progress = goal_progress(medication, now, first_weekday)
    if progress is None:
        return None
    return max(0, progress.target - progress.completed)
