"""Sequential patient ID allocation.

Patient identifiers have the form TB-{year}-{sequence} with a 6-digit
zero-padded sequence. The sequence is derived from the repository's patient
count plus the rows already imported in the current batch, so it is only as
race-safe as that count: two concurrent writers can compute the same
sequence, and the loser sees a duplicate-key PersistenceError. The import
loop reads the count again after such an error.
"""

import re
from datetime import datetime
from typing import Optional

from tbhiv_registry.logging_audit import get_logger
from tbhiv_registry.utils.exceptions import ValidationError


logger = get_logger(__name__)

ID_PREFIX = "TB"
SEQUENCE_WIDTH = 6

PATIENT_ID_PATTERN = re.compile(rf"^{ID_PREFIX}-(\d{{4}})-(\d{{{SEQUENCE_WIDTH},}})$")


def format_patient_id(sequence: int, year: int) -> str:
    """Format a patient identifier.

    Args:
        sequence: Positive sequence number
        year: Four-digit year

    Returns:
        Identifier such as TB-2024-001847

    Raises:
        ValueError: If sequence is not positive
    """
    if sequence < 1:
        raise ValueError(f"Patient ID sequence must be positive, got {sequence}")
    return f"{ID_PREFIX}-{year}-{sequence:0{SEQUENCE_WIDTH}d}"


def allocate_patient_id(
    existing_count: int, batch_successes: int, year: Optional[int] = None
) -> str:
    """Allocate the next patient identifier for a batch.

    Args:
        existing_count: Total patients in the repository when the batch started
        batch_successes: Rows already persisted in this batch
        year: Year to stamp, defaults to the current year

    Returns:
        Patient identifier with sequence existing_count + batch_successes + 1
    """
    if year is None:
        year = datetime.now().year
    patient_id = format_patient_id(existing_count + batch_successes + 1, year)
    logger.debug(f"Allocated patient ID {patient_id}")
    return patient_id


def parse_patient_id(value: str) -> tuple[int, int]:
    """Split a patient identifier into (year, sequence).

    Raises:
        ValidationError: If value does not match TB-{year}-{sequence}
    """
    match = PATIENT_ID_PATTERN.match(value)
    if match is None:
        raise ValidationError(
            f"Invalid patient_id '{value}'. Expected format: "
            f"{ID_PREFIX}-YYYY-{'0' * SEQUENCE_WIDTH}"
        )
    return int(match.group(1)), int(match.group(2))
