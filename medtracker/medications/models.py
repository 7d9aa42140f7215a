"""
Medication Models - Medication records, their intake log and adherence goal.

A medication is stored as one row in the ``medications`` table. The row is
mapped with single-table inheritance so prescription-only and
non-prescription-only columns are only reachable on the matching variant.
"""
import enum
import uuid
from datetime import datetime
from typing import Optional, List, Set

from pydantic import BaseModel, Field
from sqlalchemy import (
    Column, String, Float, Integer, DateTime, ForeignKey, Enum, JSON, Text, func
)
from sqlalchemy.orm import relationship
from sqlalchemy.types import TypeDecorator

from ..database import Base


class MedicationType(str, enum.Enum):
    """Classification that governs which transactions apply"""
    PRESCRIPTION = "Prescription"
    NON_PRESCRIPTION = "Non-Prescription"


class MedicationForm(str, enum.Enum):
    """Physical form of a medication (display only)"""
    TABLET = "Tablet"
    CAPSULE = "Capsule"
    GUMMY = "Gummy"
    SOFTGEL = "Softgel"
    LIQUID = "Liquid"
    SYRUP = "Syrup"
    SUSPENSION = "Suspension"
    CREAM = "Cream"
    OINTMENT = "Ointment"
    GEL = "Gel"
    LOTION = "Lotion"
    PATCH = "Patch"
    INJECTION = "Injection"
    INHALER = "Inhaler"
    NASAL_SPRAY = "Nasal Spray"
    EYE_DROPS = "Eye Drops"
    EAR_DROPS = "Ear Drops"
    POWDER = "Powder"
    OTHER = "Other"


class DosageUnit(str, enum.Enum):
    """Units a dose or quantity can be expressed in"""
    MG = "mg"
    PILL = "Pill"
    ML = "mL"
    SPRAY = "Spray"
    DROP = "Drop"
    PUFF = "Puff"
    APPLICATION = "Application"


class GoalConstraintType(str, enum.Enum):
    AT_LEAST = "At Least"
    NO_MORE_THAN = "No More Than"
    BOTH = "Between"


class GoalPeriod(str, enum.Enum):
    PER_DAY = "Per Day"
    PER_WEEK = "Per Week"
    PER_MONTH = "Per Month"


class Weekday(str, enum.Enum):
    SUNDAY = "Sunday"
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"


class TimeOfDay(BaseModel):
    """A scheduled hour and minute"""
    hour: int = Field(0, ge=0, le=23)
    minute: int = Field(0, ge=0, le=59)

    @property
    def minutes_since_midnight(self) -> int:
        return self.hour * 60 + self.minute


class IntakeGoal(BaseModel):
    """
    Adherence goal embedded in a medication.

    Fields:
    - target_doses: Minimum doses per period (at least / between)
    - maximum_doses: Cap for no more than / upper bound for between
    - constraint_type: How target and maximum are applied
    - period: Day, week or month window
    - specific_days: Days the goal applies to (recorded, not used for counting)
    - times_of_day: Scheduled times used to suggest the next dose
    - start_date: When the goal became active (recorded, not used for counting)
    """
    target_doses: float = Field(..., ge=0)
    maximum_doses: Optional[float] = Field(None, ge=0)
    constraint_type: GoalConstraintType = GoalConstraintType.AT_LEAST
    period: GoalPeriod
    specific_days: Optional[Set[Weekday]] = None
    times_of_day: Optional[List[TimeOfDay]] = None
    start_date: Optional[datetime] = None


class IntakeGoalType(TypeDecorator):
    """Stores an IntakeGoal as JSON and loads it back as an IntakeGoal"""
    impl = JSON
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, dict):
            value = IntakeGoal.model_validate(value)
        return value.model_dump(mode="json")

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return IntakeGoal.model_validate(value)


def generate_id() -> str:
    return str(uuid.uuid4())


class Medication(Base):
    """
    Medication Model - One pharmaceutical or supplement product

    Fields:
    - id: Opaque identifier assigned at creation
    - name: Display name
    - description: Free-text notes
    - medication_type: Prescription or non-prescription (discriminator)
    - form: Physical form (display only)
    - total_mg_remaining: Remaining supply in mg (may go negative)
    - mg_per_pill: Conversion rate from pill-equivalent units to mg
    - initial_pill_count: Size of one full refill/restock in pills
    - next_dose_time: Explicit next dose override
    - daily_dosage / daily_dosage_unit: Informational daily target
    - intake_goal: Optional adherence goal
    - revision: Optimistic concurrency counter
    - created_at / updated_at: Audit timestamps
    """
    __tablename__ = "medications"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    medication_type = Column(Enum(MedicationType), nullable=False)
    form = Column(Enum(MedicationForm), nullable=False, default=MedicationForm.TABLET)

    # Supply
    total_mg_remaining = Column(Float, nullable=False, default=0.0)
    mg_per_pill = Column(Float, nullable=False, default=0.0)
    initial_pill_count = Column(Float, nullable=False, default=0.0)

    # Scheduling
    next_dose_time = Column(DateTime, nullable=True)
    daily_dosage = Column(Float, nullable=True)
    daily_dosage_unit = Column(Enum(DosageUnit), nullable=True)
    intake_goal = Column(IntakeGoalType, nullable=True)

    revision = Column(Integer, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    # Relationships
    logs = relationship(
        "MedicationLog",
        back_populates="medication",
        cascade="all, delete-orphan",
        order_by="MedicationLog.timestamp",
    )

    __mapper_args__ = {
        "polymorphic_on": medication_type,
        "version_id_col": revision,
    }

    def __repr__(self):
        """String representation of the Medication model"""
        return f"<Medication(id={self.id}, name='{self.name}', type={self.medication_type})>"

    @property
    def is_prescription(self) -> bool:
        return self.medication_type == MedicationType.PRESCRIPTION

    @property
    def sorted_logs(self) -> List["MedicationLog"]:
        """Logs ordered by timestamp (edits can reorder them after insert)"""
        return sorted(self.logs, key=lambda log: log.timestamp)


class PrescriptionMedication(Medication):
    """
    Prescription variant

    Fields:
    - last_filled_on: When the prescription was last filled
    - next_fill_date: When the next fill is due
    - number_of_days_supply: Days one fill lasts (defaults to 30 when unset)
    - refills_remaining: Refills left on the prescription
    - prescriber_name / pharmacy_name / rx_number: Reference information
    """
    last_filled_on = Column(DateTime, nullable=True)
    next_fill_date = Column(DateTime, nullable=True)
    number_of_days_supply = Column(Float, nullable=True)
    refills_remaining = Column(Integer, nullable=True)
    prescriber_name = Column(String, nullable=True)
    pharmacy_name = Column(String, nullable=True)
    rx_number = Column(String, nullable=True)

    __mapper_args__ = {"polymorphic_identity": MedicationType.PRESCRIPTION}


class NonPrescriptionMedication(Medication):
    """
    Non-prescription variant (supplements, OTC products)

    Fields:
    - brand_name, supplement_type, purchase_location: Reference information
    - serving_size / servings_per_container: Container description
    - expiration_date: Product expiry
    """
    brand_name = Column(String, nullable=True)
    supplement_type = Column(String, nullable=True)
    serving_size = Column(Integer, nullable=True)
    servings_per_container = Column(Integer, nullable=True)
    purchase_location = Column(String, nullable=True)
    expiration_date = Column(DateTime, nullable=True)

    __mapper_args__ = {"polymorphic_identity": MedicationType.NON_PRESCRIPTION}


class MedicationLog(Base):
    """
    Medication Log Model - One signed quantity change against a medication

    Fields:
    - id: Opaque identifier
    - medication_id: Owning medication
    - timestamp: When the event happened (editable after the fact)
    - mg_intake: Negative for a dose, positive for a refill/restock
    - total_mg_remaining: Medication balance right after this event
    """
    __tablename__ = "medication_logs"

    id = Column(String(36), primary_key=True, default=generate_id)
    medication_id = Column(String(36), ForeignKey("medications.id", ondelete="CASCADE"), nullable=False, index=True)
    timestamp = Column(DateTime, nullable=False, default=datetime.now)
    mg_intake = Column(Float, nullable=False, default=0.0)
    total_mg_remaining = Column(Float, nullable=False, default=0.0)

    medication = relationship("Medication", back_populates="logs")

    def __repr__(self):
        return f"<MedicationLog(id={self.id}, medication_id={self.medication_id}, mg_intake={self.mg_intake})>"

    @property
    def is_refill(self) -> bool:
        return self.mg_intake > 0


MEDICATION_CLASSES = {
    MedicationType.PRESCRIPTION: PrescriptionMedication,
    MedicationType.NON_PRESCRIPTION: NonPrescriptionMedication,
}
