"""SQLAlchemy-backed patient repository and audit sink."""

import uuid
from datetime import date, datetime, timezone
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    String,
    Text,
    func,
    or_,
    select,
)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from tbhiv_registry.logging_audit import get_logger
from tbhiv_registry.models.audit import AuditEvent
from tbhiv_registry.models.patient import (
    DataSource,
    Gender,
    HIVStatus,
    PatientRecord,
    TBStatus,
)
from tbhiv_registry.storage.repository import PatientFilter
from tbhiv_registry.utils.exceptions import PersistenceError


logger = get_logger(__name__)

Base = declarative_base()


def _enum_values(enum_cls: type) -> list[str]:
    return [member.value for member in enum_cls]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PatientRow(Base):
    __tablename__ = "patients"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    patient_id = Column(String(32), unique=True, nullable=False)  # TB-2024-001847
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    date_of_birth = Column(Date, nullable=False)
    gender = Column(Enum(Gender, name="gender", values_callable=_enum_values), nullable=False)
    phone_number = Column(String(64))
    address = Column(Text)
    province = Column(String(255))
    district = Column(String(255))
    facility = Column(String(255))
    tb_status = Column(
        Enum(TBStatus, name="tb_status", values_callable=_enum_values),
        default=TBStatus.NEGATIVE,
    )
    hiv_status = Column(
        Enum(HIVStatus, name="hiv_status", values_callable=_enum_values),
        default=HIVStatus.UNKNOWN,
    )
    registration_date = Column(Date, default=date.today)
    last_updated = Column(DateTime, default=_utcnow, onupdate=_utcnow)
    created_by = Column(String(255))
    data_source = Column(
        Enum(DataSource, name="data_source", values_callable=_enum_values),
        default=DataSource.MANUAL_ENTRY,
    )
    is_active = Column(Boolean, default=True, nullable=False)


class AuditLogRow(Base):
    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(255))
    action = Column(String(32), nullable=False)  # create, update, delete, import, export
    resource_type = Column(String(32), nullable=False)
    resource_id = Column(String(255))
    old_values = Column(JSON)
    new_values = Column(JSON)
    ip_address = Column(String(64))
    user_agent = Column(Text)
    created_at = Column(DateTime, default=_utcnow)


def _to_record(row: PatientRow) -> PatientRecord:
    return PatientRecord(
        id=row.id,
        patient_id=row.patient_id,
        first_name=row.first_name,
        last_name=row.last_name,
        date_of_birth=row.date_of_birth,
        gender=row.gender,
        phone_number=row.phone_number,
        address=row.address,
        province=row.province,
        district=row.district,
        facility=row.facility,
        tb_status=row.tb_status,
        hiv_status=row.hiv_status,
        data_source=row.data_source,
        created_by=row.created_by,
        is_active=row.is_active,
        registration_date=row.registration_date,
        last_updated=row.last_updated,
    )


def _conditions(patient_filter: Optional[PatientFilter]) -> list[Any]:
    if patient_filter is None:
        return []

    conditions: list[Any] = []
    if patient_filter.search:
        pattern = f"%{patient_filter.search}%"
        conditions.append(
            or_(
                PatientRow.first_name.ilike(pattern),
                PatientRow.last_name.ilike(pattern),
                PatientRow.patient_id.ilike(pattern),
            )
        )
    if patient_filter.tb_status is not None:
        conditions.append(PatientRow.tb_status == patient_filter.tb_status)
    if patient_filter.hiv_status is not None:
        conditions.append(PatientRow.hiv_status == patient_filter.hiv_status)
    if patient_filter.is_active is not None:
        conditions.append(PatientRow.is_active == patient_filter.is_active)
    return conditions


class SqlPatientRepository:
    """Patient repository over a SQLAlchemy session factory.

    Each operation runs in its own session; a failed create is rolled back
    so the row is either fully persisted or absent.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def count(self, patient_filter: Optional[PatientFilter] = None) -> int:
        stmt = select(func.count()).select_from(PatientRow).where(
            *_conditions(patient_filter)
        )
        with self._session_factory() as session:
            return session.execute(stmt).scalar_one()

    def create(self, record: PatientRecord) -> PatientRecord:
        row = PatientRow(
            patient_id=record.patient_id,
            first_name=record.first_name,
            last_name=record.last_name,
            date_of_birth=record.date_of_birth,
            gender=record.gender,
            phone_number=record.phone_number,
            address=record.address,
            province=record.province,
            district=record.district,
            facility=record.facility,
            tb_status=record.tb_status,
            hiv_status=record.hiv_status,
            data_source=record.data_source,
            created_by=record.created_by,
            is_active=record.is_active,
        )
        if record.registration_date is not None:
            row.registration_date = record.registration_date

        with self._session_factory() as session:
            try:
                session.add(row)
                session.commit()
            except IntegrityError as e:
                session.rollback()
                raise PersistenceError(
                    f"Patient with patient_id {record.patient_id} already exists "
                    f"or violates a constraint: {e.orig}"
                ) from e
            except SQLAlchemyError as e:
                session.rollback()
                raise PersistenceError(
                    f"Failed to persist patient {record.patient_id}: {e}"
                ) from e

            logger.debug(f"Created patient {row.patient_id} ({row.id})")
            return _to_record(row)

    def list_patients(
        self,
        patient_filter: Optional[PatientFilter] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[PatientRecord], int]:
        conditions = _conditions(patient_filter)
        stmt = (
            select(PatientRow)
            .where(*conditions)
            .order_by(PatientRow.last_updated.desc(), PatientRow.patient_id.desc())
            .limit(limit)
            .offset(offset)
        )
        count_stmt = select(func.count()).select_from(PatientRow).where(*conditions)

        with self._session_factory() as session:
            patients = [_to_record(row) for row in session.execute(stmt).scalars()]
            total = session.execute(count_stmt).scalar_one()
        return patients, total

    def get_by_patient_id(self, patient_id: str) -> Optional[PatientRecord]:
        stmt = select(PatientRow).where(PatientRow.patient_id == patient_id)
        with self._session_factory() as session:
            row = session.execute(stmt).scalar_one_or_none()
            return _to_record(row) if row is not None else None

    def deactivate(self, patient_id: str) -> PatientRecord:
        stmt = select(PatientRow).where(PatientRow.patient_id == patient_id)
        with self._session_factory() as session:
            row = session.execute(stmt).scalar_one_or_none()
            if row is None:
                raise PersistenceError(f"Patient {patient_id} not found")
            row.is_active = False
            try:
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise PersistenceError(
                    f"Failed to deactivate patient {patient_id}: {e}"
                ) from e
            logger.info(f"Deactivated patient {patient_id}")
            return _to_record(row)


class SqlAuditSink:
    """AuditSink that writes the audit_logs table."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def record(self, event: AuditEvent) -> None:
        row = AuditLogRow(
            user_id=event.user_id,
            action=event.action,
            resource_type=event.resource_type,
            resource_id=event.resource_id,
            old_values=event.old_values,
            new_values=event.new_values,
            ip_address=event.ip_address,
            user_agent=event.user_agent,
            created_at=event.created_at,
        )
        with self._session_factory() as session:
            session.add(row)
            session.commit()
        logger.debug(f"Recorded {event.resource_type} {event.action} audit event")

    def recent(self, limit: int = 50) -> list[AuditEvent]:
        """Most recent audit events, newest first."""
        stmt = select(AuditLogRow).order_by(AuditLogRow.created_at.desc()).limit(limit)
        with self._session_factory() as session:
            return [
                AuditEvent(
                    user_id=row.user_id,
                    action=row.action,
                    resource_type=row.resource_type,
                    resource_id=row.resource_id,
                    old_values=row.old_values,
                    new_values=row.new_values,
                    ip_address=row.ip_address,
                    user_agent=row.user_agent,
                    created_at=row.created_at,
                )
                for row in session.execute(stmt).scalars()
            ]
