"""
Medication-specific exceptions.
"""
from fastapi import status
from ..exceptions import AppException

class MedicationException(AppException):
    """Base class for medication exceptions."""
    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)

    def __str__(self):
        return self.detail

class NotApplicableForNonPrescriptionException(MedicationException):
    """Exception raised when a prescription-only action targets a non-prescription medication."""
    def __init__(self, detail: str = "This action is only available for prescription medications."):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

class NotApplicableForPrescriptionException(MedicationException):
    """Exception raised when a non-prescription-only action targets a prescription medication."""
    def __init__(self, detail: str = "This action is only available for non-prescription medications."):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

class MedicationNotFoundException(MedicationException):
    """Exception raised when a medication does not exist."""
    def __init__(self, detail: str = "Medication not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

class LogNotFoundException(MedicationException):
    """Exception raised when a log entry does not exist for the medication."""
    def __init__(self, detail: str = "Log entry not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

class InvalidMedicationFieldException(MedicationException):
    """Exception raised when an edit names a field the medication's type does not have."""
    def __init__(self, fields: list, medication_type: str):
        detail = f"Fields not applicable to {medication_type} medications: {sorted(fields)}"
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

class RequiredMedicationFieldException(MedicationException):
    """Exception raised when an edit clears a field every medication must have."""
    def __init__(self, fields: list):
        detail = f"Fields cannot be null: {sorted(fields)}"
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

class PersistenceException(MedicationException):
    """Exception raised when a change could not be committed."""
    def __init__(self, detail: str = "Changes could not be saved", status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR):
        super().__init__(status_code=status_code, detail=detail)

class StaleMedicationException(PersistenceException):
    """Exception raised when the medication was changed by someone else since it was loaded."""
    def __init__(self, detail: str = "Medication was modified concurrently, reload and retry"):
        super().__init__(detail=detail, status_code=status.HTTP_409_CONFLICT)
