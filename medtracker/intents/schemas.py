"""
Intent Schemas - Widget snapshot and quick action payloads.
"""
import enum
from typing import Optional
from pydantic import BaseModel
from datetime import datetime
from ..medications.models import MedicationType, MedicationForm

class QuickAction(str, enum.Enum):
    TAKE_FULL = "take-full"
    TAKE_HALF = "take-half"
    REFILL = "refill"

class LastDose(BaseModel):
    """Most recent dose shown on a widget"""
    timestamp: datetime
    mg: float

class MedicationSnapshot(BaseModel):
    """
    Read-only projection of a medication for widgets and shortcuts

    Fields:
    - id / name / medication_type / form: Identity and classification
    - next_dose_time: Override or next goal time of day
    - last_filled_on / next_fill_date / number_of_days_supply: Fill tracking (prescriptions)
    - total_mg_remaining / initial_pill_count / mg_per_pill: Supply state
    - pills_per_day_left / days_until_refill / pills_remaining: Derived metrics
    - refills_remaining: Refills left (prescriptions)
    - goal_progress_completed / goal_progress_target: Goal progress, None without a goal
    - adherence_streak: Streak in periods, None without a goal
    - total_today_mg / average_daily_intake_mg / weekly_intake_mg: Intake summaries
    - average_since_refill_mg: Daily average since the last fill (prescriptions)
    - doses_left_in_period: Doses still needed this period, None without a goal
    - last_dose: Most recent dose, None when nothing was taken
    """
    id: str
    name: str
    medication_type: MedicationType
    form: MedicationForm
    next_dose_time: Optional[datetime] = None
    last_filled_on: Optional[datetime] = None
    next_fill_date: Optional[datetime] = None
    number_of_days_supply: Optional[float] = None
    total_mg_remaining: float
    initial_pill_count: float
    mg_per_pill: float
    pills_per_day_left: float
    days_until_refill: int
    pills_remaining: float
    refills_remaining: Optional[int] = None
    goal_progress_completed: Optional[int] = None
    goal_progress_target: Optional[float] = None
    adherence_streak: Optional[int] = None
    total_today_mg: float
    average_daily_intake_mg: float
    weekly_intake_mg: float
    average_since_refill_mg: float
    doses_left_in_period: Optional[float] = None
    last_dose: Optional[LastDose] = None

class QuickActionResponse(BaseModel):
    """Outcome of a quick action; failures are reported, never raised"""
    medication_id: str
    action: QuickAction
    applied: bool
