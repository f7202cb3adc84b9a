"""Patient record data model.

This module defines the PatientRecord dataclass and the clinical vocabularies
used throughout the application for patients under TB/HIV care.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional


class Gender(str, Enum):
    """Administrative gender."""

    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class TBStatus(str, Enum):
    """Tuberculosis case status."""

    NEGATIVE = "negative"
    SUSPECTED = "suspected"
    CONFIRMED = "confirmed"
    ACTIVE_TREATMENT = "active_treatment"
    TREATMENT_COMPLETE = "treatment_complete"
    TREATMENT_FAILED = "treatment_failed"
    LOST_TO_FOLLOWUP = "lost_to_followup"


class HIVStatus(str, Enum):
    """HIV status."""

    NEGATIVE = "negative"
    POSITIVE = "positive"
    UNKNOWN = "unknown"


class DataSource(str, Enum):
    """Source system a patient record originated from."""

    TIER_NET = "tier_net"
    EDR_WEB = "edr_web"
    NHLS = "nhls"
    PRIVATE_LAB = "private_lab"
    MANUAL_ENTRY = "manual_entry"


@dataclass
class PatientRecord:
    """One person under TB/HIV care.

    Attributes:
        patient_id: Human-readable identifier, TB-{year}-{6-digit sequence}
        first_name: Patient's first name
        last_name: Patient's last name
        date_of_birth: Date of birth
        gender: Administrative gender
        phone_number: Contact phone number (optional)
        address: Free-text address (optional)
        province: Province (optional)
        district: District (optional)
        facility: Healthcare facility name (optional)
        tb_status: TB status, defaults to negative
        hiv_status: HIV status, defaults to unknown
        data_source: Source system tag
        created_by: Identity of the user that created the record
        is_active: Soft-delete marker
        id: System-generated key, assigned by the repository on create
        registration_date: Date the record was created, assigned on create
        last_updated: Timestamp of the last write, assigned by the repository
    """

    patient_id: str
    first_name: str
    last_name: str
    date_of_birth: date
    gender: Gender
    phone_number: Optional[str] = None
    address: Optional[str] = None
    province: Optional[str] = None
    district: Optional[str] = None
    facility: Optional[str] = None
    tb_status: TBStatus = TBStatus.NEGATIVE
    hiv_status: HIVStatus = HIVStatus.UNKNOWN
    data_source: DataSource = DataSource.MANUAL_ENTRY
    created_by: Optional[str] = None
    is_active: bool = True
    id: Optional[str] = None
    registration_date: Optional[date] = None
    last_updated: Optional[datetime] = None

    @property
    def is_co_infected(self) -> bool:
        """Check if the patient is TB-confirmed and HIV-positive."""
        return (
            self.tb_status == TBStatus.CONFIRMED
            and self.hiv_status == HIVStatus.POSITIVE
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization.

        Returns:
            Dictionary with camelCase keys, dates as ISO strings and
            vocabulary members as their values
        """
        return {
            "id": self.id,
            "patientId": self.patient_id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "dateOfBirth": self.date_of_birth.isoformat(),
            "gender": self.gender.value,
            "phoneNumber": self.phone_number,
            "address": self.address,
            "province": self.province,
            "district": self.district,
            "facility": self.facility,
            "tbStatus": self.tb_status.value,
            "hivStatus": self.hiv_status.value,
            "dataSource": self.data_source.value,
            "createdBy": self.created_by,
            "isActive": self.is_active,
            "registrationDate": (
                self.registration_date.isoformat() if self.registration_date else None
            ),
            "lastUpdated": (
                self.last_updated.isoformat() if self.last_updated else None
            ),
        }
