"""Patient export to CSV or Excel."""

import csv
import io
from typing import Iterable

import pandas as pd

from tbhiv_registry.logging_audit import get_logger
from tbhiv_registry.models.patient import PatientRecord
from tbhiv_registry.utils.exceptions import UnsupportedFormatError


logger = get_logger(__name__)

EXPORT_COLUMNS = [
    "Patient ID",
    "First Name",
    "Last Name",
    "Date of Birth",
    "Gender",
    "Phone Number",
    "Province",
    "District",
    "Facility",
    "TB Status",
    "HIV Status",
    "Registration Date",
]

EXPORT_FORMATS = {
    "csv": ("text/csv", "patients.csv"),
    "xlsx": (
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "patients.xlsx",
    ),
}


def export_patients(patients: Iterable[PatientRecord], fmt: str = "csv") -> bytes:
    """Render patients as a CSV or Excel document.

    Args:
        patients: Records to export, in output order
        fmt: "csv" or "xlsx"

    Returns:
        Encoded file content

    Raises:
        UnsupportedFormatError: If fmt is not csv or xlsx
    """
    fmt = fmt.lower()
    if fmt not in EXPORT_FORMATS:
        raise UnsupportedFormatError(
            f"Unsupported export format '{fmt}'. "
            f"Must be one of: {', '.join(EXPORT_FORMATS)}"
        )

    df = pd.DataFrame(
        [_to_export_row(patient) for patient in patients], columns=EXPORT_COLUMNS
    )

    if fmt == "csv":
        content = df.to_csv(index=False, quoting=csv.QUOTE_ALL).encode("utf-8")
    else:
        buffer = io.BytesIO()
        df.to_excel(buffer, index=False, sheet_name="Patients", engine="openpyxl")
        content = buffer.getvalue()

    logger.info(f"Exported {len(df)} patient(s) as {fmt}")
    return content


def _to_export_row(patient: PatientRecord) -> list[str]:
    return [
        patient.patient_id,
        patient.first_name,
        patient.last_name,
        patient.date_of_birth.isoformat(),
        patient.gender.value,
        patient.phone_number or "",
        patient.province or "",
        patient.district or "",
        patient.facility or "",
        patient.tb_status.value,
        patient.hiv_status.value,
        patient.registration_date.isoformat() if patient.registration_date else "",
    ]
