"""
Intent Service - Widget snapshots and fire-and-forget quick actions.
"""
from typing import Callable, List, Optional
from datetime import datetime
import logging

from sqlalchemy.orm import Session

from ..medications.models import Medication, DosageUnit
from ..medications.exceptions import MedicationException
from ..medications import service as medication_service
from ..medications import metrics, goals
from .schemas import MedicationSnapshot, LastDose, QuickAction

# Set up logging
logger = logging.getLogger(__name__)

RefreshListener = Callable[[str], None]

class SnapshotRefresher:
    """
    Notifies registered surfaces that a medication's snapshot is stale.

    One instance is created per application and kept on ``app.state``.
    """
    def __init__(self):
        self._listeners: List[RefreshListener] = []

    def add_listener(self, listener: RefreshListener) -> None:
        """Register a callable notified with a medication id whenever its snapshot is stale"""
        self._listeners.append(listener)

    def remove_listener(self, listener: RefreshListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def request_refresh(self, medication_id: str) -> None:
        """
        Ask every registered surface to reload the medication's snapshot.

        Args:
            medication_id: Medication whose snapshot changed
        """
        logger.info(f"Snapshot refresh requested for medication {medication_id}")
        for listener in list(self._listeners):
            listener(medication_id)

def build_snapshot(medication: Medication, now: Optional[datetime] = None) -> MedicationSnapshot:
    """
    Build the read-only projection a widget displays.

    Args:
        medication: Medication with logs loaded
        now: Reference time, defaults to the current time

    Returns:
        MedicationSnapshot: Snapshot of the medication
    """
    now = now or datetime.now()
    progress = goals.goal_progress(medication, now)
    last = metrics.last_dose(medication)

    return MedicationSnapshot(
        id=medication.id,
        name=medication.name,
        medication_type=medication.medication_type,
        form=medication.form,
        next_dose_time=metrics.calculated_next_dose_time(medication, now),
        last_filled_on=getattr(medication, "last_filled_on", None),
        next_fill_date=getattr(medication, "next_fill_date", None),
        number_of_days_supply=getattr(medication, "number_of_days_supply", None),
        total_mg_remaining=medication.total_mg_remaining,
        initial_pill_count=medication.initial_pill_count,
        mg_per_pill=medication.mg_per_pill,
        pills_per_day_left=metrics.pills_per_day_left(medication, now),
        days_until_refill=metrics.days_until_refill(medication, now),
        pills_remaining=metrics.pills_remaining(medication),
        refills_remaining=getattr(medication, "refills_remaining", None),
        goal_progress_completed=progress.completed if progress else None,
        goal_progress_target=progress.target if progress else None,
        adherence_streak=goals.adherence_streak(medication, now) if medication.intake_goal else None,
        total_today_mg=metrics.total_today_mg(medication, now),
        average_daily_intake_mg=metrics.average_daily_intake_mg(medication, now),
        weekly_intake_mg=metrics.weekly_intake_mg(medication, now),
        average_since_refill_mg=metrics.average_since_refill_mg(medication, now),
        doses_left_in_period=metrics.doses_left_in_period(medication, now),
        last_dose=LastDose(timestamp=last.timestamp, mg=abs(last.mg_intake)) if last else None
    )

def perform_quick_action(
    db: Session,
    medication_id: str,
    action: QuickAction,
    now: Optional[datetime] = None
) -> bool:
    """
    Resolve a medication by id and apply a quick action, best effort.

    Any medication error (unknown id, wrong medication type, failed commit)
    is logged and reported through the return value instead of raised.

    Args:
        db: Database session
        medication_id: Medication to act on
        action: Take full dose, take half dose or refill
        now: Time of the action, defaults to the current time

    Returns:
        bool: True if the action was applied and committed
    """
    try:
        medication = medication_service.get_medication(db, medication_id)
        if action == QuickAction.TAKE_FULL:
            medication_service.take_medication(db, medication, 1, DosageUnit.PILL, now)
        elif action == QuickAction.TAKE_HALF:
            medication_service.take_medication(db, medication, 0.5, DosageUnit.PILL, now)
        else:
            medication_service.refill_medication(db, medication, now)
    except MedicationException as e:
        logger.warning(f"Quick action {action.value} on medication {medication_id} not applied: {e.detail}")
        return False

    logger.info(f"Quick action {action.value} applied to medication {medication_id}")
    return True
