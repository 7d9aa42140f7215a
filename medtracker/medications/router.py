"""
Medication Router - API endpoints for medications, transactions and logs.

This module provides endpoints for creating, reading, editing and deleting
medications, taking doses, refilling and restocking, managing intake goals,
correcting log entries and exporting logs.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..core.pagination import PageParams, PageResponse, paginate
from .models import MedicationType, IntakeGoal
from .schemas import (
    MedicationCreate,
    MedicationUpdate,
    MedicationResponse,
    MedicationSummary,
    TakeDoseRequest,
    RestockRequest,
    TransactionResponse,
    LogResponse,
    LogUpdate
)
from .export import ExportFormat, MEDIA_TYPES, export_logs
from . import service

router = APIRouter()

def _export_response(medications, export_format: ExportFormat) -> Response:
    filename, content = export_logs(medications, export_format)
    return Response(
        content=content,
        media_type=MEDIA_TYPES[export_format],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )

@router.post("/", response_model=MedicationResponse, status_code=status.HTTP_201_CREATED)
async def create_medication(
    medication_data: MedicationCreate,
    db: Session = Depends(get_db)
):
    """
    Create a medication

    The body's ``medication_type`` decides which type-specific fields are accepted.
    """
    medication = service.create_medication(db, medication_data)
    return service.build_medication_response(medication)

@router.get("/", response_model=PageResponse[MedicationSummary])
async def list_medications(
    medication_type: Optional[MedicationType] = Query(None, description="Filter by medication type"),
    page_params: PageParams = Depends(),
    db: Session = Depends(get_db)
):
    """
    Get a paginated list of medications ordered by name
    """
    query = service.list_medications(db, medication_type)
    return paginate(query, page_params, MedicationSummary.model_validate)

@router.get("/export")
async def export_all_logs(
    export_format: ExportFormat = Query(ExportFormat.CSV, alias="format"),
    db: Session = Depends(get_db)
):
    """
    Export the logs of every medication as CSV or JSON
    """
    medications = service.list_medications(db).all()
    return _export_response(medications, export_format)

@router.get("/{medication_id}", response_model=MedicationResponse)
async def get_medication(medication_id: str, db: Session = Depends(get_db)):
    """
    Get a medication with its derived metrics and goal progress
    """
    medication = service.get_medication(db, medication_id)
    return service.build_medication_response(medication)

@router.patch("/{medication_id}", response_model=MedicationResponse)
async def update_medication(
    medication_id: str,
    update_data: MedicationUpdate,
    db: Session = Depends(get_db)
):
    """
    Edit a medication's fields directly

    Fields belonging to the other medication type are rejected.
    """
    medication = service.update_medication(db, medication_id, update_data)
    return service.build_medication_response(medication)

@router.delete("/{medication_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_medication(medication_id: str, db: Session = Depends(get_db)):
    """
    Delete a medication and all of its log entries
    """
    service.delete_medication(db, medication_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

# ============================================================================
# TRANSACTIONS
# ============================================================================

@router.post("/{medication_id}/take", response_model=TransactionResponse)
async def take_medication(
    medication_id: str,
    dose_data: TakeDoseRequest = TakeDoseRequest(),
    db: Session = Depends(get_db)
):
    """
    Take a dose (one pill unless a dose and unit are given)
    """
    medication = service.get_medication(db, medication_id)
    log = service.take_medication(db, medication, dose_data.dose, dose_data.unit)
    return TransactionResponse(
        medication=service.build_medication_response(medication),
        log=LogResponse.model_validate(log)
    )

@router.post("/{medication_id}/refill", response_model=TransactionResponse)
async def refill_medication(medication_id: str, db: Session = Depends(get_db)):
    """
    Refill a prescription with one full supply

    Returns 400 for non-prescription medications.
    """
    medication = service.get_medication(db, medication_id)
    log = service.refill_medication(db, medication)
    return TransactionResponse(
        medication=service.build_medication_response(medication),
        log=LogResponse.model_validate(log)
    )

@router.post("/{medication_id}/restock", response_model=TransactionResponse)
async def restock_bottle(
    medication_id: str,
    restock_data: RestockRequest = RestockRequest(),
    db: Session = Depends(get_db)
):
    """
    Restock a non-prescription medication

    Defaults to the medication's initial pill count. Returns 400 for prescriptions.
    """
    medication = service.get_medication(db, medication_id)
    quantity = restock_data.quantity if restock_data.quantity is not None else medication.initial_pill_count
    log = service.restock_bottle(db, medication, quantity)
    return TransactionResponse(
        medication=service.build_medication_response(medication),
        log=LogResponse.model_validate(log)
    )

# ============================================================================
# GOAL
# ============================================================================

@router.put("/{medication_id}/goal", response_model=MedicationResponse)
async def set_intake_goal(
    medication_id: str,
    goal: IntakeGoal,
    db: Session = Depends(get_db)
):
    """
    Set or replace the medication's intake goal
    """
    medication = service.set_intake_goal(db, medication_id, goal)
    return service.build_medication_response(medication)

@router.delete("/{medication_id}/goal", response_model=MedicationResponse)
async def clear_intake_goal(medication_id: str, db: Session = Depends(get_db)):
    """
    Remove the medication's intake goal
    """
    medication = service.set_intake_goal(db, medication_id, None)
    return service.build_medication_response(medication)

# ============================================================================
# LOGS
# ============================================================================

@router.get("/{medication_id}/logs", response_model=List[LogResponse])
async def list_logs(medication_id: str, db: Session = Depends(get_db)):
    """
    Get a medication's log entries ordered by timestamp
    """
    medication = service.get_medication(db, medication_id)
    return medication.sorted_logs

@router.patch("/{medication_id}/logs/{log_id}", response_model=LogResponse)
async def update_log(
    medication_id: str,
    log_id: str,
    update_data: LogUpdate,
    db: Session = Depends(get_db)
):
    """
    Correct a log entry's time or amount

    The medication's remaining supply is not recalculated.
    """
    return service.update_log(db, medication_id, log_id, update_data)

@router.delete("/{medication_id}/logs/{log_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_log(medication_id: str, log_id: str, db: Session = Depends(get_db)):
    """
    Delete a log entry
    """
    service.delete_log(db, medication_id, log_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@router.get("/{medication_id}/export")
async def export_medication_logs(
    medication_id: str,
    export_format: ExportFormat = Query(ExportFormat.CSV, alias="format"),
    db: Session = Depends(get_db)
):
    """
    Export one medication's logs as CSV or JSON
    """
    medication = service.get_medication(db, medication_id)
    return _export_response([medication], export_format)
