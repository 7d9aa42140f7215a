"""
Intent Router - Endpoints for widgets and automation shortcuts.

Quick actions always answer 202; whether the action was applied is
reported in the body and a snapshot refresh is requested either way.
"""
from typing import List
from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..medications import service as medication_service
from .schemas import MedicationSnapshot, QuickAction, QuickActionResponse
from .service import SnapshotRefresher, build_snapshot, perform_quick_action

router = APIRouter()

def get_snapshot_refresher(request: Request) -> SnapshotRefresher:
    """Snapshot refresher owned by the running application"""
    return request.app.state.snapshot_refresher

@router.get("/medications", response_model=List[MedicationSnapshot])
async def list_snapshots(db: Session = Depends(get_db)):
    """
    Get snapshots of every medication, used to pick one for a widget
    """
    medications = medication_service.list_medications(db).all()
    return [build_snapshot(medication) for medication in medications]

@router.get("/medications/{medication_id}", response_model=MedicationSnapshot)
async def get_snapshot(medication_id: str, db: Session = Depends(get_db)):
    """
    Get the snapshot of one medication
    """
    medication = medication_service.get_medication(db, medication_id)
    return build_snapshot(medication)

@router.post(
    "/medications/{medication_id}/{action}",
    response_model=QuickActionResponse,
    status_code=status.HTTP_202_ACCEPTED
)
async def quick_action(
    medication_id: str,
    action: QuickAction,
    background_tasks: BackgroundTasks,
    refresher: SnapshotRefresher = Depends(get_snapshot_refresher),
    db: Session = Depends(get_db)
):
    """
    Apply a quick action (take-full, take-half or refill)

    Errors are swallowed; the response reports whether the action was applied.
    """
    applied = perform_quick_action(db, medication_id, action)
    background_tasks.add_task(refresher.request_refresh, medication_id)
    return QuickActionResponse(medication_id=medication_id, action=action, applied=applied)
