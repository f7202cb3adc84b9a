"""Storage module.

This module provides patient repositories and database-backed audit sinks.
"""

from tbhiv_registry.storage.repository import (
    InMemoryPatientRepository,
    PatientFilter,
    PatientRepository,
    iter_all_patients,
)

__all__ = [
    "InMemoryPatientRepository",
    "PatientFilter",
    "PatientRepository",
    "iter_all_patients",
]
