"""
Log export - CSV and JSON renderings of medication logs.
"""
import csv
import enum
import io
import json
from datetime import datetime
from typing import List, Optional, Tuple

from .models import Medication
from .units import from_mg


class ExportFormat(str, enum.Enum):
    CSV = "csv"
    JSON = "json"


CSV_HEADER = [
    "Medication Name",
    "Medication Type",
    "Log Date",
    "Time",
    "Intake (mg)",
    "Total Remaining (mg)",
    "Action Type",
]

MEDIA_TYPES = {
    ExportFormat.CSV: "text/csv",
    ExportFormat.JSON: "application/json",
}


def _pills(mg: float, mg_per_pill: float) -> Optional[float]:
    if mg_per_pill <= 0:
        return None
    return from_mg(mg, mg_per_pill)


def export_csv(medications: List[Medication]) -> str:
    """Render logs as CSV, one row per log, sorted by time within each medication"""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for medication in medications:
        name = medication.name.replace(",", ";")
        for log in medication.sorted_logs:
            writer.writerow([
                name,
                medication.medication_type.value,
                log.timestamp.strftime("%Y-%m-%d"),
                log.timestamp.strftime("%H:%M"),
                log.mg_intake,
                log.total_mg_remaining,
                "Refill/Restock" if log.is_refill else "Dose Taken",
            ])
    return buffer.getvalue()


def export_json(medications: List[Medication]) -> str:
    """Render logs as a JSON list of flat records"""
    records = []
    for medication in medications:
        for log in medication.sorted_logs:
            records.append({
                "medicationId": medication.id,
                "medicationName": medication.name,
                "medicationType": medication.medication_type.value,
                "timestamp": log.timestamp.isoformat(),
                "mgIntake": log.mg_intake,
                "totalMgRemaining": log.total_mg_remaining,
                "actionType": "refill" if log.is_refill else "dose",
                "pillsIntake": _pills(log.mg_intake, medication.mg_per_pill),
                "pillsRemaining": _pills(log.total_mg_remaining, medication.mg_per_pill),
            })
    return json.dumps(records, indent=2)


def export_filename(export_format: ExportFormat, medication_count: int, now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    prefix = "medication_logs" if medication_count == 1 else "all_medication_logs"
    return f"{prefix}_{now.strftime('%Y-%m-%d_%H%M%S')}.{export_format.value}"


def export_logs(
    medications: List[Medication],
    export_format: ExportFormat,
    now: Optional[datetime] = None
) -> Tuple[str, str]:
    """
    Export logs for one or more medications.

    Args:
        medications: Medications whose logs are exported
        export_format: CSV or JSON
        now: Time used in the filename

    Returns:
        Tuple of (filename, content)
    """
    if export_format == ExportFormat.CSV:
        content = export_csv(medications)
    else:
        content = export_json(medications)
    return export_filename(export_format, len(medications), now), content
