"""Bulk patient import examples.

This module demonstrates importing a patient file into the registry,
inspecting row failures, and exporting what was stored. It runs against an
in-memory SQLite database so it leaves nothing behind.
"""

import logging
from pathlib import Path

from tbhiv_registry.config import Config
from tbhiv_registry.importer import export_patients, import_patients
from tbhiv_registry.storage import PatientFilter, iter_all_patients
from tbhiv_registry.storage.database import open_storage
from tbhiv_registry.utils.exceptions import ParseFailureError, UnsupportedFormatError

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

SAMPLE_CSV = Path(__file__).parent / "patients_sample.csv"


def example_1_import_with_row_failures(repository, audit_sink):
    """Example 1: Import a file where some rows are invalid.

    Invalid rows are reported with their 1-based row number and the raw
    values; every other row is imported.
    """
    print("=" * 80)
    print("EXAMPLE 1: Import With Row Failures")
    print("=" * 80)
    print()

    result = import_patients(
        SAMPLE_CSV.read_bytes(), SAMPLE_CSV.name, "example-user", repository, audit_sink
    )

    print(result.format_report())
    print()
    for failure in result.errors:
        print(f"Row {failure.row} raw data: {failure.data}")
    print()


def example_2_batch_level_errors(repository, audit_sink):
    """Example 2: Handle errors that reject the whole file.

    Unsupported extensions and unreadable content raise before any row is
    stored.
    """
    print("=" * 80)
    print("EXAMPLE 2: Batch-Level Errors")
    print("=" * 80)
    print()

    try:
        import_patients(b"first_name\nThabo\n", "patients.txt", "example-user", repository, audit_sink)
    except UnsupportedFormatError as e:
        print(f"Rejected upload: {e}")

    try:
        import_patients(b"not a workbook", "patients.xlsx", "example-user", repository, audit_sink)
    except ParseFailureError as e:
        print(f"Unreadable upload: {e}")
    print()


def example_3_list_and_export(repository):
    """Example 3: Search patients and export everyone."""
    print("=" * 80)
    print("EXAMPLE 3: List and Export")
    print("=" * 80)
    print()

    patients, total = repository.list_patients(PatientFilter(search="mokoena"))
    print(f"Search 'mokoena': {total} match(es)")
    for patient in patients:
        status = "co-infected" if patient.is_co_infected else "not co-infected"
        print(f"  {patient.patient_id} {patient.first_name} {patient.last_name} ({status})")
    print()

    content = export_patients(iter_all_patients(repository), "csv")
    print(content.decode("utf-8"))


if __name__ == "__main__":
    repository, audit_sink = open_storage(Config(database={"url": "sqlite://"}))

    example_1_import_with_row_failures(repository, audit_sink)
    example_2_batch_level_errors(repository, audit_sink)
    example_3_list_and_export(repository)
