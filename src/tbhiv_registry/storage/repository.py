"""Patient repository protocol and in-memory implementation.

The repository is the persistence boundary of the import pipeline. It owns
identity assignment (id, registration_date, last_updated) and enforces the
uniqueness of patient_id.
"""

import dataclasses
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional, Protocol

from tbhiv_registry.logging_audit import get_logger
from tbhiv_registry.models.patient import HIVStatus, PatientRecord, TBStatus
from tbhiv_registry.utils.exceptions import PersistenceError


logger = get_logger(__name__)


@dataclass
class PatientFilter:
    """Conditions for listing and counting patients.

    Attributes:
        search: Case-insensitive substring of first name, last name or patient_id
        tb_status: Exact TB status
        hiv_status: Exact HIV status
        is_active: Exact lifecycle flag; None matches active and inactive

    A None attribute applies no condition.
    """

    search: Optional[str] = None
    tb_status: Optional[TBStatus] = None
    hiv_status: Optional[HIVStatus] = None
    is_active: Optional[bool] = None

    def matches(self, patient: PatientRecord) -> bool:
        """Check a record against every set condition."""
        if self.search:
            needle = self.search.lower()
            haystacks = (patient.first_name, patient.last_name, patient.patient_id)
            if not any(needle in value.lower() for value in haystacks):
                return False
        if self.tb_status is not None and patient.tb_status != self.tb_status:
            return False
        if self.hiv_status is not None and patient.hiv_status != self.hiv_status:
            return False
        if self.is_active is not None and patient.is_active != self.is_active:
            return False
        return True


class PatientRepository(Protocol):
    """Persistence operations the registry relies on."""

    def count(self, patient_filter: Optional[PatientFilter] = None) -> int:
        ...

    def create(self, record: PatientRecord) -> PatientRecord:
        ...

    def list_patients(
        self,
        patient_filter: Optional[PatientFilter] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[PatientRecord], int]:
        ...

    def get_by_patient_id(self, patient_id: str) -> Optional[PatientRecord]:
        ...

    def deactivate(self, patient_id: str) -> PatientRecord:
        ...


class InMemoryPatientRepository:
    """Patient repository held in a dict keyed by patient_id.

    Used for dry-run imports and tests. Not safe for use across threads.
    """

    def __init__(self) -> None:
        self._patients: dict[str, PatientRecord] = {}

    def count(self, patient_filter: Optional[PatientFilter] = None) -> int:
        if patient_filter is None:
            return len(self._patients)
        return sum(1 for p in self._patients.values() if patient_filter.matches(p))

    def create(self, record: PatientRecord) -> PatientRecord:
        if record.patient_id in self._patients:
            raise PersistenceError(
                f"Patient with patient_id {record.patient_id} already exists"
            )

        now = datetime.now(timezone.utc)
        stored = dataclasses.replace(
            record,
            id=str(uuid.uuid4()),
            registration_date=record.registration_date or date.today(),
            last_updated=now,
        )
        self._patients[stored.patient_id] = stored
        logger.debug(f"Created patient {stored.patient_id}")
        return dataclasses.replace(stored)

    def list_patients(
        self,
        patient_filter: Optional[PatientFilter] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[PatientRecord], int]:
        patient_filter = patient_filter or PatientFilter()
        matching = [p for p in self._patients.values() if patient_filter.matches(p)]
        # Insertion order breaks ties between equal timestamps, newest first
        ordered = list(reversed(matching))
        ordered.sort(key=lambda p: p.last_updated, reverse=True)
        page = [dataclasses.replace(p) for p in ordered[offset:offset + limit]]
        return page, len(matching)

    def get_by_patient_id(self, patient_id: str) -> Optional[PatientRecord]:
        patient = self._patients.get(patient_id)
        return dataclasses.replace(patient) if patient else None

    def deactivate(self, patient_id: str) -> PatientRecord:
        patient = self._patients.get(patient_id)
        if patient is None:
            raise PersistenceError(f"Patient {patient_id} not found")
        patient.is_active = False
        patient.last_updated = datetime.now(timezone.utc)
        logger.info(f"Deactivated patient {patient_id}")
        return dataclasses.replace(patient)


def iter_all_patients(
    repository: PatientRepository,
    patient_filter: Optional[PatientFilter] = None,
    page_size: int = 500,
) -> list[PatientRecord]:
    """Collect every matching patient by walking the repository's pages."""
    patients: list[PatientRecord] = []
    offset = 0
    while True:
        page, total = repository.list_patients(patient_filter, limit=page_size, offset=offset)
        patients.extend(page)
        offset += len(page)
        if not page or offset >= total:
            return patients
