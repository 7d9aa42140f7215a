"""
Medication Schemas - Pydantic models for medication data validation and serialization.

Creation bodies are a discriminated union on ``medication_type`` so that
prescription-only and non-prescription-only fields are only accepted for
the matching type.
"""
from typing import Optional, Union, Literal, Annotated
from pydantic import BaseModel, Field
from datetime import datetime
from .models import MedicationForm, MedicationType, DosageUnit, IntakeGoal

class MedicationBase(BaseModel):
    """
    Base Medication Schema - Fields shared by every medication type

    Fields:
    - name: Display name
    - description: Free-text notes (optional)
    - form: Physical form, display only
    - total_mg_remaining: Current supply in mg (optional, computed from a full supply when omitted)
    - mg_per_pill: Milligrams per pill-equivalent unit
    - initial_pill_count: Pills in one full refill/restock
    - next_dose_time: Explicit next dose override (optional)
    - daily_dosage / daily_dosage_unit: Informational daily target (optional)
    - intake_goal: Adherence goal (optional)
    """
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    form: MedicationForm = MedicationForm.TABLET
    total_mg_remaining: Optional[float] = Field(None, description="Remaining supply in mg")
    mg_per_pill: float = Field(0.0, ge=0, description="Milligrams per pill")
    initial_pill_count: float = Field(0.0, ge=0, description="Pills in a full refill or restock")
    next_dose_time: Optional[datetime] = None
    daily_dosage: Optional[float] = Field(None, ge=0)
    daily_dosage_unit: Optional[DosageUnit] = None
    intake_goal: Optional[IntakeGoal] = None

    class Config:
        """Reject fields that belong to the other medication type"""
        extra = "forbid"

class PrescriptionCreate(MedicationBase):
    """
    Prescription Creation Schema

    Extends MedicationBase with fill tracking and prescription reference fields.
    """
    medication_type: Literal["Prescription"] = "Prescription"
    last_filled_on: Optional[datetime] = None
    next_fill_date: Optional[datetime] = None
    number_of_days_supply: Optional[float] = Field(None, gt=0)
    refills_remaining: Optional[int] = Field(None, ge=0)
    prescriber_name: Optional[str] = None
    pharmacy_name: Optional[str] = None
    rx_number: Optional[str] = None

class NonPrescriptionCreate(MedicationBase):
    """
    Non-Prescription Creation Schema

    Extends MedicationBase with product and container fields.
    """
    medication_type: Literal["Non-Prescription"] = "Non-Prescription"
    brand_name: Optional[str] = None
    supplement_type: Optional[str] = None
    serving_size: Optional[int] = Field(None, ge=0)
    servings_per_container: Optional[int] = Field(None, ge=0)
    purchase_location: Optional[str] = None
    expiration_date: Optional[datetime] = None

MedicationCreate = Annotated[
    Union[PrescriptionCreate, NonPrescriptionCreate],
    Field(discriminator="medication_type")
]

class MedicationUpdate(BaseModel):
    """
    Medication Update Schema - Direct field edits

    Only fields that exist on the medication's own type may be set. The
    medication type itself cannot be changed.
    """
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    form: Optional[MedicationForm] = None
    total_mg_remaining: Optional[float] = None
    mg_per_pill: Optional[float] = Field(None, ge=0)
    initial_pill_count: Optional[float] = Field(None, ge=0)
    next_dose_time: Optional[datetime] = None
    daily_dosage: Optional[float] = Field(None, ge=0)
    daily_dosage_unit: Optional[DosageUnit] = None

    # Prescription only
    last_filled_on: Optional[datetime] = None
    next_fill_date: Optional[datetime] = None
    number_of_days_supply: Optional[float] = Field(None, gt=0)
    refills_remaining: Optional[int] = Field(None, ge=0)
    prescriber_name: Optional[str] = None
    pharmacy_name: Optional[str] = None
    rx_number: Optional[str] = None

    # Non-prescription only
    brand_name: Optional[str] = None
    supplement_type: Optional[str] = None
    serving_size: Optional[int] = Field(None, ge=0)
    servings_per_container: Optional[int] = Field(None, ge=0)
    purchase_location: Optional[str] = None
    expiration_date: Optional[datetime] = None

    class Config:
        """Reject unknown fields"""
        extra = "forbid"

class TakeDoseRequest(BaseModel):
    """Dose to take, defaults to one pill"""
    dose: float = Field(1, ge=0, description="Amount in the given unit")
    unit: DosageUnit = DosageUnit.PILL

class RestockRequest(BaseModel):
    """Quantity to restock in pills, defaults to the medication's initial pill count"""
    quantity: Optional[float] = Field(None, ge=0)

class LogUpdate(BaseModel):
    """Correction of a log entry's time or amount"""
    timestamp: Optional[datetime] = None
    mg_intake: Optional[float] = None

class LogResponse(BaseModel):
    """Log entry as returned by the API"""
    id: str
    medication_id: str
    timestamp: datetime
    mg_intake: float
    total_mg_remaining: float
    is_refill: bool

    class Config:
        """Configuration for Pydantic model to enable ORM mode"""
        from_attributes = True

class GoalProgressResponse(BaseModel):
    """
    Goal progress for the current period

    Fields:
    - completed: Doses taken this period
    - target: Target the progress is measured against
    - maximum: Upper bound for no more than / between goals
    - meets_goal: Whether the completed count satisfies the goal
    """
    completed: int
    target: float
    maximum: Optional[float] = None
    meets_goal: bool

class MedicationResponse(BaseModel):
    """
    Medication Response Schema - Stored fields plus derived metrics

    Variant-specific fields are None for the other medication type.
    """
    id: str
    name: str
    description: Optional[str] = None
    medication_type: MedicationType
    form: MedicationForm
    total_mg_remaining: float
    mg_per_pill: float
    initial_pill_count: float
    next_dose_time: Optional[datetime] = None
    daily_dosage: Optional[float] = None
    daily_dosage_unit: Optional[DosageUnit] = None
    intake_goal: Optional[IntakeGoal] = None
    revision: int

    last_filled_on: Optional[datetime] = None
    next_fill_date: Optional[datetime] = None
    number_of_days_supply: Optional[float] = None
    refills_remaining: Optional[int] = None
    prescriber_name: Optional[str] = None
    pharmacy_name: Optional[str] = None
    rx_number: Optional[str] = None

    brand_name: Optional[str] = None
    supplement_type: Optional[str] = None
    serving_size: Optional[int] = None
    servings_per_container: Optional[int] = None
    purchase_location: Optional[str] = None
    expiration_date: Optional[datetime] = None

    # Derived
    pills_remaining: float
    pills_per_day_left: float
    days_until_refill: int
    calculated_next_dose_time: Optional[datetime] = None
    goal_progress: Optional[GoalProgressResponse] = None
    adherence_streak: Optional[int] = None

class MedicationSummary(BaseModel):
    """Short medication entry used in list responses"""
    id: str
    name: str
    medication_type: MedicationType
    form: MedicationForm
    total_mg_remaining: float
    mg_per_pill: float

    class Config:
        """Configuration for Pydantic model to enable ORM mode"""
        from_attributes = True

class TransactionResponse(BaseModel):
    """Result of a dose, refill or restock"""
    medication: MedicationResponse
    log: LogResponse
