"""Column name mapping from uploaded rows to canonical patient fields.

Uploaded files use either snake_case (first_name) or camelCase (firstName)
headers. Each canonical field lists its candidate keys in lookup order.
"""

from typing import Any, Mapping, Optional

import pandas as pd

from tbhiv_registry.models.patient import DataSource, HIVStatus, TBStatus


# Canonical field -> candidate column names, tried in order
FIELD_CANDIDATES: dict[str, tuple[str, ...]] = {
    "first_name": ("first_name", "firstName"),
    "last_name": ("last_name", "lastName"),
    "date_of_birth": ("date_of_birth", "dateOfBirth"),
    "gender": ("gender",),
    "phone_number": ("phone_number", "phoneNumber"),
    "address": ("address",),
    "province": ("province",),
    "district": ("district",),
    "facility": ("facility",),
    "tb_status": ("tb_status", "tbStatus"),
    "hiv_status": ("hiv_status", "hivStatus"),
}

# Applied when none of a field's candidate columns hold a value
FIELD_DEFAULTS: dict[str, str] = {
    "tb_status": TBStatus.NEGATIVE.value,
    "hiv_status": HIVStatus.UNKNOWN.value,
}


def map_row(row: Mapping[str, Any], created_by: Optional[str]) -> dict[str, Any]:
    """Map one raw row to candidate patient fields.

    Does no validation; a missing required field comes back as None and is
    reported by the validator.

    Args:
        row: Raw row from the parser
        created_by: Identity of the importing user

    Returns:
        Dictionary keyed by canonical field name, plus data_source and created_by
    """
    fields: dict[str, Any] = {}
    for field, candidates in FIELD_CANDIDATES.items():
        fields[field] = _first_present(row, candidates, FIELD_DEFAULTS.get(field))

    fields["data_source"] = DataSource.MANUAL_ENTRY.value
    fields["created_by"] = created_by
    return fields


def _first_present(
    row: Mapping[str, Any], candidates: tuple[str, ...], default: Optional[str]
) -> Any:
    for key in candidates:
        value = row.get(key)
        if _is_present(value):
            return value
    return default


def _is_present(value: Any) -> bool:
    """A value is present unless it is None, NaN or a blank string."""
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    try:
        return not bool(pd.isna(value))
    except (TypeError, ValueError):
        return True
