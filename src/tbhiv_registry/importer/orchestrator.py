"""Patient import orchestration.

Drives one batch through parse -> map -> allocate ID -> validate -> persist
and collects per-row failures. A row that fails validation or persistence is
recorded and skipped; only a batch-level parse error stops the import, and it
does so before any row is touched.
"""

import time
from typing import Optional

from tbhiv_registry.importer.field_mapper import map_row
from tbhiv_registry.importer.id_allocator import allocate_patient_id
from tbhiv_registry.importer.parser import parse_records
from tbhiv_registry.importer.validator import validate_patient
from tbhiv_registry.logging_audit import AuditSink, LoggingAuditSink, get_logger
from tbhiv_registry.models.audit import AuditEvent
from tbhiv_registry.models.batch import ImportBatchResult
from tbhiv_registry.storage.repository import PatientRepository
from tbhiv_registry.utils.exceptions import PersistenceError, ROW_LEVEL_ERRORS


logger = get_logger(__name__)


def import_patients(
    file_bytes: bytes,
    file_name: str,
    acting_user_id: Optional[str],
    repository: PatientRepository,
    audit_sink: Optional[AuditSink] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> ImportBatchResult:
    """Import patients from an uploaded CSV or Excel file.

    Rows are processed one at a time in file order. Identifiers are allocated
    from the patient count taken when the batch starts plus the rows imported
    so far, so they are consecutive within the batch. A failed insert means
    the sequence may have been taken by another writer, so the count is read
    again before the next row.

    Args:
        file_bytes: Raw upload content
        file_name: Original file name; selects the parser
        acting_user_id: Identity of the importing user, stamped as created_by
        repository: Patient repository to count against and persist into
        audit_sink: Receives one summary event per completed import.
            Defaults to LoggingAuditSink.
        ip_address: Client address recorded on the audit event
        user_agent: Client user agent recorded on the audit event

    Returns:
        ImportBatchResult with total, success and row failures

    Raises:
        UnsupportedFormatError: If the file extension is not supported
        ParseFailureError: If the file cannot be parsed
    """
    start_time = time.time()
    rows = parse_records(file_bytes, file_name)

    result = ImportBatchResult(total=len(rows))
    existing_count = repository.count()
    logger.info(
        f"Starting import of {result.total} row(s) from {file_name} "
        f"({existing_count} existing patients)"
    )

    for index, raw_row in enumerate(rows):
        row_number = index + 1
        fields = map_row(raw_row, acting_user_id)
        fields["patient_id"] = allocate_patient_id(existing_count, result.success)

        try:
            record = validate_patient(fields)
            repository.create(record)
        except ROW_LEVEL_ERRORS as e:
            logger.warning(f"Row {row_number}: {e}")
            result.add_failure(row_number, str(e), raw_row)
            if isinstance(e, PersistenceError):
                existing_count = repository.count() - result.success
            continue

        result.success += 1
        logger.debug(f"Row {row_number}: imported as {record.patient_id}")

    duration = time.time() - start_time
    logger.info(
        f"Import of {file_name} complete: {result.success}/{result.total} imported, "
        f"{result.failure_count} failed in {duration:.2f}s"
    )

    _record_audit(
        audit_sink if audit_sink is not None else LoggingAuditSink(),
        AuditEvent(
            user_id=acting_user_id,
            action="import",
            resource_type="patient",
            new_values=result.summary(),
            ip_address=ip_address,
            user_agent=user_agent,
        ),
    )

    return result


def _record_audit(audit_sink: AuditSink, event: AuditEvent) -> None:
    """Hand an event to the audit sink without letting it fail the caller."""
    try:
        audit_sink.record(event)
    except Exception:
        logger.exception(
            f"Failed to record {event.action} audit event for user {event.user_id}"
        )
