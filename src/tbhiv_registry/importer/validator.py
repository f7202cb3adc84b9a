"""Schema validation for mapped patient rows.

Validation is fail-fast per row: the first failing check raises
ValidationError naming the offending field, and later checks are skipped.
Checks run in this order:

1. Required fields present (first_name, last_name, date_of_birth, gender,
   patient_id)
2. date_of_birth is a calendar date
3. gender, tb_status, hiv_status are in their vocabularies
4. patient_id format and data_source vocabulary
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional, TypeVar

import pandas as pd

from tbhiv_registry.importer.id_allocator import parse_patient_id
from tbhiv_registry.logging_audit import get_logger
from tbhiv_registry.models.patient import (
    DataSource,
    Gender,
    HIVStatus,
    PatientRecord,
    TBStatus,
)
from tbhiv_registry.utils.exceptions import ValidationError


logger = get_logger(__name__)

REQUIRED_FIELDS = ["first_name", "last_name", "date_of_birth", "gender", "patient_id"]

OPTIONAL_TEXT_FIELDS = ["phone_number", "address", "province", "district", "facility"]

DATE_FORMAT = "%Y-%m-%d"

E = TypeVar("E", bound=Enum)


def validate_patient(fields: Mapping[str, Any]) -> PatientRecord:
    """Validate mapped patient fields and build a typed record.

    Args:
        fields: Output of map_row with patient_id assigned

    Returns:
        PatientRecord ready for persistence

    Raises:
        ValidationError: On the first failing check
    """
    for name in REQUIRED_FIELDS:
        if not _has_value(fields.get(name)):
            raise ValidationError(f"Missing required field '{name}'")

    date_of_birth = _parse_date_of_birth(fields["date_of_birth"])
    gender = _parse_vocabulary("gender", fields["gender"], Gender)
    tb_status = _parse_vocabulary(
        "tb_status", fields.get("tb_status") or TBStatus.NEGATIVE.value, TBStatus
    )
    hiv_status = _parse_vocabulary(
        "hiv_status", fields.get("hiv_status") or HIVStatus.UNKNOWN.value, HIVStatus
    )

    patient_id = str(fields["patient_id"]).strip()
    parse_patient_id(patient_id)
    data_source = _parse_vocabulary(
        "data_source",
        fields.get("data_source") or DataSource.MANUAL_ENTRY.value,
        DataSource,
    )

    created_by = fields.get("created_by")

    return PatientRecord(
        patient_id=patient_id,
        first_name=str(fields["first_name"]).strip(),
        last_name=str(fields["last_name"]).strip(),
        date_of_birth=date_of_birth,
        gender=gender,
        tb_status=tb_status,
        hiv_status=hiv_status,
        data_source=data_source,
        created_by=str(created_by) if created_by is not None else None,
        **{name: _optional_text(fields.get(name)) for name in OPTIONAL_TEXT_FIELDS},
    )


def _has_value(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    try:
        return not bool(pd.isna(value))
    except (TypeError, ValueError):
        return True


def _parse_date_of_birth(value: Any) -> date:
    """Parse date_of_birth from a date, datetime or YYYY-MM-DD string."""
    if isinstance(value, datetime):
        parsed = value.date()
    elif isinstance(value, date):
        parsed = value
    else:
        try:
            parsed = datetime.strptime(str(value).strip(), DATE_FORMAT).date()
        except (ValueError, TypeError) as e:
            raise ValidationError(
                f"Invalid date_of_birth '{value}'. "
                "Expected format: YYYY-MM-DD (e.g., 1980-01-15)"
            ) from e

    if parsed > datetime.now(timezone.utc).date():
        logger.warning(
            f"Date of birth {parsed.isoformat()} is in the future. "
            "This may be a data entry error."
        )
    return parsed


def _parse_vocabulary(field: str, value: Any, vocabulary: type[E]) -> E:
    """Match a value exactly against an enum after stripping surrounding whitespace."""
    normalized = str(value).strip()
    try:
        return vocabulary(normalized)
    except ValueError:
        allowed = ", ".join(member.value for member in vocabulary)
        raise ValidationError(
            f"Invalid {field} '{value}'. Must be one of: {allowed}"
        ) from None


def _optional_text(value: Any) -> Optional[str]:
    if not _has_value(value):
        return None
    # Spreadsheets hand back numeric phone numbers as floats
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()
