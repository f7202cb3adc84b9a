"""Patient CLI commands.

This module provides CLI commands for bulk patient import, export, listing
and deactivation against the configured registry database.
"""

import json as json_lib
import logging
import math
import sys
from pathlib import Path
from typing import Optional

import click

from tbhiv_registry.importer.exporter import EXPORT_FORMATS, export_patients
from tbhiv_registry.importer.orchestrator import import_patients
from tbhiv_registry.logging_audit import LoggingAuditSink
from tbhiv_registry.models.audit import AuditEvent
from tbhiv_registry.models.patient import HIVStatus, TBStatus
from tbhiv_registry.storage.database import open_storage
from tbhiv_registry.storage.repository import (
    InMemoryPatientRepository,
    PatientFilter,
    iter_all_patients,
)
from tbhiv_registry.utils.exceptions import (
    ParseFailureError,
    PersistenceError,
    UnsupportedFormatError,
)

logger = logging.getLogger(__name__)


def _silence_console_logging() -> None:
    """Keep console log lines out of machine-readable output."""
    for handler in logging.getLogger().handlers:
        if isinstance(handler, logging.StreamHandler) and not hasattr(handler, "baseFilename"):
            handler.setLevel(logging.CRITICAL + 1)


def _record_audit(audit_sink, event: AuditEvent) -> None:
    """Record an audit event without failing the command that produced it."""
    try:
        audit_sink.record(event)
    except Exception:
        logger.exception(f"Failed to record {event.action} audit event")


@click.group()
def patients() -> None:
    """Patient import, export and listing commands."""
    pass


@patients.command("import")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--user",
    "user_id",
    required=True,
    envvar="TBHIV_USER",
    help="User the import is attributed to (env: TBHIV_USER)",
)
@click.option("--json", "json_output", is_flag=True, help="Output results as JSON")
@click.option(
    "--dry-run",
    is_flag=True,
    help="Validate and number rows without writing to the database",
)
@click.pass_context
def import_command(
    ctx: click.Context, file: Path, user_id: str, json_output: bool, dry_run: bool
) -> None:
    """Import patients from a CSV or Excel file.

    Each row is mapped, numbered TB-{year}-{sequence}, validated and saved on
    its own. Rows that fail are reported with their row number and do not
    stop the rest of the file.

    Exits with code 0 when every row imported, code 1 when any row failed or
    the file could not be read.

    Examples:

        # Import a CSV export from a facility register
        tbhiv-registry patients import patients.csv --user clinician-7

        # Check an Excel file without touching the database
        tbhiv-registry patients import patients.xlsx --user clinician-7 --dry-run

        # JSON result for automation
        tbhiv-registry patients import patients.csv --user clinician-7 --json
    """
    if json_output:
        _silence_console_logging()

    if dry_run:
        repository = InMemoryPatientRepository()
        audit_sink = LoggingAuditSink()
        logger.info(f"Dry run: importing {file} into an in-memory repository")
    else:
        repository, audit_sink = open_storage(ctx.obj["config"])

    try:
        result = import_patients(file.read_bytes(), file.name, user_id, repository, audit_sink)
    except (UnsupportedFormatError, ParseFailureError) as e:
        click.secho(f"Import Error: {e}", fg="red", err=True)
        logger.error(f"Import of {file} failed: {e}")
        sys.exit(1)

    if json_output:
        click.echo(json_lib.dumps(result.to_dict(), indent=2, default=str))
    else:
        report = result.format_report()
        if dry_run:
            report += "\n(dry run - no records were saved)"
        click.secho(report, fg="red" if result.has_failures else "green")

    sys.exit(1 if result.has_failures else 0)


@patients.command("export")
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    required=True,
    help="File to write the export to",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(sorted(EXPORT_FORMATS), case_sensitive=False),
    default="csv",
    show_default=True,
    help="Export file format",
)
@click.option(
    "--user",
    "user_id",
    envvar="TBHIV_USER",
    default=None,
    help="User the export is attributed to (env: TBHIV_USER)",
)
@click.pass_context
def export_command(
    ctx: click.Context, output: Path, fmt: str, user_id: Optional[str]
) -> None:
    """Export every patient to a CSV or Excel file.

    Examples:

        tbhiv-registry patients export --output patients.csv

        tbhiv-registry patients export --output patients.xlsx --format xlsx
    """
    repository, audit_sink = open_storage(ctx.obj["config"])
    records = iter_all_patients(repository)

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(export_patients(records, fmt))
    logger.info(f"Exported {len(records)} patient(s) to {output}")

    _record_audit(
        audit_sink,
        AuditEvent(
            user_id=user_id,
            action="export",
            resource_type="patient",
            new_values={"format": fmt.lower(), "record_count": len(records)},
        )
    )
    click.echo(f"Exported {len(records)} patient(s) to: {output}")


@patients.command("list")
@click.option("--search", default=None, help="Match first name, last name or patient ID")
@click.option(
    "--tb-status",
    type=click.Choice([s.value for s in TBStatus]),
    default=None,
    help="Only patients with this TB status",
)
@click.option(
    "--hiv-status",
    type=click.Choice([s.value for s in HIVStatus]),
    default=None,
    help="Only patients with this HIV status",
)
@click.option("--limit", type=click.IntRange(min=1), default=10, show_default=True)
@click.option("--page", type=click.IntRange(min=1), default=1, show_default=True)
@click.option("--json", "json_output", is_flag=True, help="Output results as JSON")
@click.pass_context
def list_command(
    ctx: click.Context,
    search: Optional[str],
    tb_status: Optional[str],
    hiv_status: Optional[str],
    limit: int,
    page: int,
    json_output: bool,
) -> None:
    """List patients, most recently updated first.

    Examples:

        tbhiv-registry patients list --search Dlamini

        tbhiv-registry patients list --tb-status confirmed --hiv-status positive
    """
    if json_output:
        _silence_console_logging()

    repository, _ = open_storage(ctx.obj["config"])
    patient_filter = PatientFilter(
        search=search,
        tb_status=TBStatus(tb_status) if tb_status else None,
        hiv_status=HIVStatus(hiv_status) if hiv_status else None,
    )
    records, total = repository.list_patients(
        patient_filter, limit=limit, offset=(page - 1) * limit
    )
    total_pages = math.ceil(total / limit)

    if json_output:
        click.echo(json_lib.dumps({
            "patients": [record.to_dict() for record in records],
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": total_pages,
        }, indent=2))
        return

    if not records:
        click.echo("No patients found")
        return

    for record in records:
        marker = click.style(" [co-infected]", fg="red") if record.is_co_infected else ""
        inactive = click.style(" [inactive]", fg="yellow") if not record.is_active else ""
        click.echo(
            f"{record.patient_id}  {record.last_name}, {record.first_name}  "
            f"DOB {record.date_of_birth.isoformat()}  "
            f"TB {record.tb_status.value}  HIV {record.hiv_status.value}"
            f"{marker}{inactive}"
        )
    click.echo(f"\nPage {page} of {total_pages} ({total} patient(s))")


@patients.command("deactivate")
@click.argument("patient_id")
@click.option(
    "--user",
    "user_id",
    required=True,
    envvar="TBHIV_USER",
    help="User the change is attributed to (env: TBHIV_USER)",
)
@click.pass_context
def deactivate_command(ctx: click.Context, patient_id: str, user_id: str) -> None:
    """Mark a patient record inactive.

    Example:
        tbhiv-registry patients deactivate TB-2024-000042 --user clinician-7
    """
    repository, audit_sink = open_storage(ctx.obj["config"])
    try:
        record = repository.deactivate(patient_id)
    except PersistenceError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)

    _record_audit(
        audit_sink,
        AuditEvent(
            user_id=user_id,
            action="delete",
            resource_type="patient",
            resource_id=record.patient_id,
            old_values={"is_active": True},
            new_values={"is_active": False},
        )
    )
    click.secho(f"✓ Deactivated {record.patient_id}", fg="green")
