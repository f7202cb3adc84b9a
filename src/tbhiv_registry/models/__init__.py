"""Models module.

This module provides data models and dataclasses for the application.
"""

from tbhiv_registry.models.audit import AuditEvent
from tbhiv_registry.models.batch import ImportBatchResult, RowFailure
from tbhiv_registry.models.patient import (
    DataSource,
    Gender,
    HIVStatus,
    PatientRecord,
    TBStatus,
)

__all__ = [
    "AuditEvent",
    "DataSource",
    "Gender",
    "HIVStatus",
    "ImportBatchResult",
    "PatientRecord",
    "RowFailure",
    "TBStatus",
]
