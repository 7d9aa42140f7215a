"""
Medication Service - Business logic for medications and their intake log.

This module provides the transaction engine (take, refill, restock), which
mutates a medication and appends to its log as one commit, plus CRUD for
medications, goals and log corrections.
"""
from typing import Optional
from datetime import datetime, timedelta
import logging

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, Query
from sqlalchemy.orm.exc import StaleDataError

from ..config import settings
from .models import (
    Medication, MedicationLog, MedicationType, DosageUnit, IntakeGoal, MEDICATION_CLASSES
)
from .schemas import (
    MedicationCreate, MedicationUpdate, LogUpdate, MedicationResponse, GoalProgressResponse
)
from .exceptions import (
    NotApplicableForNonPrescriptionException,
    NotApplicableForPrescriptionException,
    MedicationNotFoundException,
    LogNotFoundException,
    InvalidMedicationFieldException,
    RequiredMedicationFieldException,
    PersistenceException,
    StaleMedicationException
)
from .units import to_mg
from . import metrics, goals

# Set up logging
logger = logging.getLogger(__name__)

def _commit(db: Session, action: str) -> None:
    """
    Commit the session as a single unit of work.

    Args:
        db: Database session
        action: Description of the change, used in log messages

    Raises:
        StaleMedicationException: If the medication revision changed underneath us
        PersistenceException: If the commit failed for any other database reason
    """
    try:
        db.commit()
    except StaleDataError as e:
        db.rollback()
        logger.warning(f"Concurrent update detected while trying to {action}: {str(e)}")
        raise StaleMedicationException()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error trying to {action}: {str(e)}")
        raise PersistenceException(f"Could not {action}")

# ============================================================================
# TRANSACTIONS
# ============================================================================

def _append_log(medication: Medication, mg_intake: float, now: datetime) -> MedicationLog:
    log = MedicationLog(
        timestamp=now,
        mg_intake=mg_intake,
        total_mg_remaining=medication.total_mg_remaining
    )
    medication.logs.append(log)
    return log

def take_medication(
    db: Session,
    medication: Medication,
    dose: float = 1,
    unit: DosageUnit = DosageUnit.PILL,
    now: Optional[datetime] = None
) -> MedicationLog:
    """
    Take a dose of a medication and log it.

    The remaining supply is not floored at zero.

    Args:
        db: Database session
        medication: Medication to take
        dose: Amount in ``unit`` (number of pills when unit is pill)
        unit: Unit of the dose
        now: Time of the dose, defaults to the current time

    Returns:
        MedicationLog: The appended log entry

    Raises:
        PersistenceException: If the change could not be committed
    """
    now = now or datetime.now()
    dose_mg = to_mg(dose, unit, medication.mg_per_pill)

    medication.total_mg_remaining -= dose_mg
    log = _append_log(medication, -dose_mg, now)

    _commit(db, f"take medication {medication.id}")
    logger.info(f"Medication {medication.id} dose taken: {dose} {unit.value} ({dose_mg}mg)")
    return log

def refill_medication(
    db: Session,
    medication: Medication,
    now: Optional[datetime] = None
) -> MedicationLog:
    """
    Refill a prescription with one full supply and move its fill dates.

    Args:
        db: Database session
        medication: Prescription medication to refill
        now: Time of the refill, defaults to the current time

    Returns:
        MedicationLog: The appended log entry

    Raises:
        NotApplicableForNonPrescriptionException: If the medication is not a prescription
        PersistenceException: If the change could not be committed
    """
    if medication.medication_type != MedicationType.PRESCRIPTION:
        raise NotApplicableForNonPrescriptionException()

    now = now or datetime.now()
    refill_amount = medication.initial_pill_count * medication.mg_per_pill
    days_supply = medication.number_of_days_supply
    if days_supply is None:
        days_supply = settings.default_days_supply

    medication.total_mg_remaining += refill_amount
    medication.last_filled_on = now
    medication.next_fill_date = now + timedelta(days=int(days_supply))
    if medication.refills_remaining is not None and medication.refills_remaining > 0:
        medication.refills_remaining -= 1
    log = _append_log(medication, refill_amount, now)

    _commit(db, f"refill medication {medication.id}")
    logger.info(f"Medication {medication.id} refilled with {refill_amount}mg")
    return log

def restock_bottle(
    db: Session,
    medication: Medication,
    quantity: float,
    now: Optional[datetime] = None
) -> MedicationLog:
    """
    Restock a non-prescription medication. Fill dates are not touched.

    Args:
        db: Database session
        medication: Non-prescription medication to restock
        quantity: Number of pills/servings added
        now: Time of the restock, defaults to the current time

    Returns:
        MedicationLog: The appended log entry

    Raises:
        NotApplicableForPrescriptionException: If the medication is a prescription
        PersistenceException: If the change could not be committed
    """
    if medication.medication_type != MedicationType.NON_PRESCRIPTION:
        raise NotApplicableForPrescriptionException()

    now = now or datetime.now()
    restock_amount = quantity * medication.mg_per_pill

    medication.total_mg_remaining += restock_amount
    log = _append_log(medication, restock_amount, now)

    _commit(db, f"restock medication {medication.id}")
    logger.info(f"Medication {medication.id} restocked with {restock_amount}mg")
    return log

# ============================================================================
# MEDICATION CRUD
# ============================================================================

def _full_supply_mg(data) -> float:
    if data.medication_type == MedicationType.NON_PRESCRIPTION.value \
            and data.serving_size is not None and data.servings_per_container is not None:
        return data.serving_size * data.servings_per_container * data.mg_per_pill
    return data.initial_pill_count * data.mg_per_pill

def create_medication(db: Session, medication_data: MedicationCreate) -> Medication:
    """
    Create a medication of the type named in the request.

    When no remaining amount is given the medication starts with one full
    supply.

    Args:
        db: Database session
        medication_data: Creation data

    Returns:
        Medication: The created medication
    """
    model_class = MEDICATION_CLASSES[MedicationType(medication_data.medication_type)]
    fields = medication_data.model_dump(exclude={"medication_type", "intake_goal"})
    if fields["total_mg_remaining"] is None:
        fields["total_mg_remaining"] = _full_supply_mg(medication_data)

    medication = model_class(**fields)
    medication.intake_goal = medication_data.intake_goal
    db.add(medication)

    _commit(db, f"create medication '{medication_data.name}'")
    db.refresh(medication)
    logger.info(f"Medication {medication.id} created ({medication.medication_type.value})")
    return medication

def get_medication(db: Session, medication_id: str) -> Medication:
    """
    Get a medication by ID.

    Raises:
        MedicationNotFoundException: If the medication does not exist
    """
    medication = db.query(Medication).filter(Medication.id == medication_id).first()
    if not medication:
        raise MedicationNotFoundException()
    return medication

def list_medications(db: Session, medication_type: Optional[MedicationType] = None) -> Query:
    """
    Query medications ordered by name, optionally filtered by type.

    Returns:
        Query: Unexecuted query, ready for pagination
    """
    query = db.query(Medication)
    if medication_type:
        query = query.filter(Medication.medication_type == medication_type)
    return query.order_by(Medication.name, Medication.id)

def update_medication(db: Session, medication_id: str, update_data: MedicationUpdate) -> Medication:
    """
    Apply direct field edits to a medication.

    Raises:
        MedicationNotFoundException: If the medication does not exist
        InvalidMedicationFieldException: If a field belongs to the other medication type
        RequiredMedicationFieldException: If a non-nullable field is set to null
    """
    medication = get_medication(db, medication_id)

    changes = update_data.model_dump(exclude_unset=True)
    columns = {attr.key: attr.columns[0] for attr in inspect(type(medication)).column_attrs}
    invalid = set(changes) - set(columns)
    if invalid:
        raise InvalidMedicationFieldException(list(invalid), medication.medication_type.value)

    cleared = [field for field, value in changes.items() if value is None and not columns[field].nullable]
    if cleared:
        raise RequiredMedicationFieldException(cleared)

    for field, value in changes.items():
        setattr(medication, field, value)

    _commit(db, f"update medication {medication_id}")
    db.refresh(medication)
    logger.info(f"Medication {medication_id} updated: {sorted(changes)}")
    return medication

def delete_medication(db: Session, medication_id: str) -> None:
    """
    Delete a medication and every log entry it owns.

    Raises:
        MedicationNotFoundException: If the medication does not exist
    """
    medication = get_medication(db, medication_id)
    db.delete(medication)
    _commit(db, f"delete medication {medication_id}")
    logger.info(f"Medication {medication_id} deleted")

def set_intake_goal(db: Session, medication_id: str, goal: Optional[IntakeGoal]) -> Medication:
    """
    Replace (or clear, with ``None``) a medication's intake goal.

    Raises:
        MedicationNotFoundException: If the medication does not exist
    """
    medication = get_medication(db, medication_id)
    medication.intake_goal = goal
    _commit(db, f"update goal of medication {medication_id}")
    db.refresh(medication)
    logger.info(f"Medication {medication_id} goal {'set' if goal else 'cleared'}")
    return medication

# ============================================================================
# LOG CORRECTIONS
# ============================================================================

def get_log(db: Session, medication_id: str, log_id: str) -> MedicationLog:
    """
    Get a log entry belonging to a medication.

    Raises:
        LogNotFoundException: If no such log exists for the medication
    """
    log = db.query(MedicationLog).filter(
        MedicationLog.id == log_id,
        MedicationLog.medication_id == medication_id
    ).first()
    if not log:
        raise LogNotFoundException()
    return log

def update_log(db: Session, medication_id: str, log_id: str, update_data: LogUpdate) -> MedicationLog:
    """
    Correct a log entry's timestamp or amount.

    The medication's live balance and the entry's balance snapshot are left
    as they are.
    """
    log = get_log(db, medication_id, log_id)
    changes = update_data.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(log, field, value)

    _commit(db, f"update log {log_id}")
    db.refresh(log)
    logger.info(f"Log {log_id} of medication {medication_id} corrected: {sorted(changes)}")
    return log

def delete_log(db: Session, medication_id: str, log_id: str) -> None:
    """Delete one log entry without touching the medication's balance"""
    log = get_log(db, medication_id, log_id)
    db.delete(log)
    _commit(db, f"delete log {log_id}")
    logger.info(f"Log {log_id} of medication {medication_id} deleted")

# ============================================================================
# READ MODELS
# ============================================================================

def build_goal_progress(medication: Medication, now: Optional[datetime] = None) -> Optional[GoalProgressResponse]:
    """Goal progress with its maximum and met flag, None without a goal"""
    progress = goals.goal_progress(medication, now)
    if progress is None:
        return None
    return GoalProgressResponse(
        completed=progress.completed,
        target=progress.target,
        maximum=goals.goal_maximum(medication),
        meets_goal=goals.meets_goal_for_period(medication, progress.completed)
    )

def build_medication_response(medication: Medication, now: Optional[datetime] = None) -> MedicationResponse:
    """
    Combine a medication's stored fields with its derived metrics.

    Args:
        medication: Medication with logs loaded
        now: Reference time, defaults to the current time

    Returns:
        MedicationResponse: Response model
    """
    now = now or datetime.now()
    derived = {
        "pills_remaining": metrics.pills_remaining(medication),
        "pills_per_day_left": metrics.pills_per_day_left(medication, now),
        "days_until_refill": metrics.days_until_refill(medication, now),
        "calculated_next_dose_time": metrics.calculated_next_dose_time(medication, now),
        "goal_progress": build_goal_progress(medication, now),
        "adherence_streak": goals.adherence_streak(medication, now) if medication.intake_goal else None,
    }
    stored = {
        field: getattr(medication, field, None)
        for field in MedicationResponse.model_fields
        if field not in derived
    }
    return MedicationResponse(**stored, **derived)
