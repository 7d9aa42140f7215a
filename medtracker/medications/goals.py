"""
Goal Engine - Period windows, goal progress and adherence streaks.

Goal counting uses every non-refill log inside the period window. The
goal's ``specific_days`` and ``start_date`` are stored with the goal but are
not applied as filters here.
"""
import logging
from datetime import datetime, timedelta
from typing import NamedTuple, Optional, Tuple, List

from ..config import settings
from .models import Medication, MedicationLog, GoalPeriod, GoalConstraintType

# Set up logging
logger = logging.getLogger(__name__)


class GoalProgress(NamedTuple):
    completed: int
    target: float


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def period_start(period: GoalPeriod, moment: datetime, first_weekday: Optional[int] = None) -> datetime:
    """
    Get the start of the period containing ``moment``.

    Args:
        period: Goal period
        moment: Any point in time inside the period
        first_weekday: First day of the week (0 = Monday), defaults to settings

    Returns:
        datetime: Midnight of the first day of the period
    """
    if first_weekday is None:
        first_weekday = settings.first_weekday
    day = start_of_day(moment)
    if period == GoalPeriod.PER_DAY:
        return day
    if period == GoalPeriod.PER_WEEK:
        return day - timedelta(days=(day.weekday() - first_weekday) % 7)
    return day.replace(day=1)


def period_end(period: GoalPeriod, start: datetime) -> datetime:
    """Exclusive end of the period beginning at ``start``"""
    if period == GoalPeriod.PER_DAY:
        return start + timedelta(days=1)
    if period == GoalPeriod.PER_WEEK:
        return start + timedelta(days=7)
    if start.month == 12:
        return start.replace(year=start.year + 1, month=1)
    return start.replace(month=start.month + 1)


def period_window(
    period: GoalPeriod,
    moment: datetime,
    first_weekday: Optional[int] = None
) -> Tuple[datetime, datetime]:
    """Half-open ``[start, end)`` window of the period containing ``moment``"""
    start = period_start(period, moment, first_weekday)
    return start, period_end(period, start)


def _doses(medication: Medication) -> List[MedicationLog]:
    return [log for log in medication.logs if not log.is_refill]


def doses_in_current_period(
    medication: Medication,
    now: Optional[datetime] = None,
    first_weekday: Optional[int] = None
) -> int:
    """
    Count doses taken since the start of the goal's current period.

    Args:
        medication: Medication with a goal and logs
        now: Reference time, defaults to the current time
        first_weekday: First day of the week, defaults to settings

    Returns:
        int: Number of non-refill logs at or after the period start, 0 without a goal
    """
    goal = medication.intake_goal
    if goal is None:
        return 0
    now = now or datetime.now()
    start = period_start(goal.period, now, first_weekday)
    return sum(1 for log in _doses(medication) if log.timestamp >= start)


def goal_progress(
    medication: Medication,
    now: Optional[datetime] = None,
    first_weekday: Optional[int] = None
) -> Optional[GoalProgress]:
    """
    Goal progress for the current period.

    At least and between goals report against the minimum, no more than goals
    against the maximum (falling back to the target when no maximum is set).

    Returns:
        GoalProgress: (completed, target), or None when the medication has no goal
    """
    goal = medication.intake_goal
    if goal is None:
        return None
    completed = doses_in_current_period(medication, now, first_weekday)
    if goal.constraint_type == GoalConstraintType.NO_MORE_THAN:
        target = goal.maximum_doses if goal.maximum_doses is not None else goal.target_doses
    else:
        target = goal.target_doses
    return GoalProgress(completed=completed, target=target)


def goal_maximum(medication: Medication) -> Optional[float]:
    """Upper bound of a no more than / between goal, None for at least goals"""
    goal = medication.intake_goal
    if goal is None or goal.constraint_type == GoalConstraintType.AT_LEAST:
        return None
    return goal.maximum_doses if goal.maximum_doses is not None else goal.target_doses


def meets_goal_for_period(medication: Medication, dose_count: int) -> bool:
    """
    Check a dose count against the goal's constraint.

    Args:
        medication: Medication with a goal
        dose_count: Doses taken in the period

    Returns:
        bool: Whether the count satisfies the goal, False without a goal
    """
    goal = medication.intake_goal
    if goal is None:
        return False

    if goal.constraint_type == GoalConstraintType.AT_LEAST:
        return dose_count >= goal.target_doses
    if goal.constraint_type == GoalConstraintType.NO_MORE_THAN:
        maximum = goal.maximum_doses if goal.maximum_doses is not None else goal.target_doses
        return dose_count <= maximum

    maximum = goal.maximum_doses if goal.maximum_doses is not None else float("inf")
    return goal.target_doses <= dose_count <= maximum


def adherence_streak(
    medication: Medication,
    now: Optional[datetime] = None,
    first_weekday: Optional[int] = None,
    max_periods: Optional[int] = None
) -> int:
    """
    Count consecutive periods, ending with the current one, that reached the
    goal's minimum dose count.

    Only ``target_doses`` is checked, whatever the constraint type. The walk
    stops at the first period that falls short, after ``max_periods`` periods,
    or when a period boundary can no longer be computed.

    Args:
        medication: Medication with a goal and logs
        now: Reference time, defaults to the current time
        first_weekday: First day of the week, defaults to settings
        max_periods: Walk limit, defaults to settings

    Returns:
        int: Streak length in periods, 0 without a goal
    """
    goal = medication.intake_goal
    if goal is None:
        return 0
    now = now or datetime.now()
    if max_periods is None:
        max_periods = settings.streak_max_periods

    timestamps = [log.timestamp for log in _doses(medication)]
    streak = 0
    moment = now
    for _ in range(max_periods):
        try:
            start, end = period_window(goal.period, moment, first_weekday)
        except (OverflowError, ValueError) as e:
            logger.warning(f"Stopping streak for medication {medication.id}: {str(e)}")
            break

        count = sum(1 for ts in timestamps if start <= ts < end)
        if count < goal.target_doses:
            break
        streak += 1

        try:
            moment = start - timedelta(microseconds=1)
        except OverflowError as e:
            logger.warning(f"Stopping streak for medication {medication.id}: {str(e)}")
            break

    return streak
