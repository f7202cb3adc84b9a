"""Main CLI entry point for the TB/HIV registry.

This module provides the main Click command group for the tbhiv-registry CLI.
"""

from pathlib import Path
from typing import Optional

import click

from tbhiv_registry import __version__
from tbhiv_registry.cli.patient_commands import patients
from tbhiv_registry.cli.server_commands import serve
from tbhiv_registry.config import load_config, mask_database_url
from tbhiv_registry.logging_audit import configure_logging
from tbhiv_registry.utils.exceptions import ConfigurationError


@click.group()
@click.version_option(version=__version__, prog_name="tbhiv-registry")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: ./config/config.json)",
)
@click.option("--verbose", is_flag=True, help="Enable verbose logging (DEBUG level)")
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to log file (overrides config file)",
)
@click.option(
    "--redact-pii",
    is_flag=True,
    help="Redact PII (patient names, phone numbers) from logs",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: bool,
    log_file: Optional[Path],
    redact_pii: bool,
) -> None:
    """TB/HIV Registry - Patient data management for TB/HIV co-infection care.

    Imports patient records from CSV or Excel files, assigns sequential
    TB-{year}-{sequence} identifiers and keeps an audit trail.

    Common usage:

        # Import patients, attributing the import to a user
        tbhiv-registry patients import patients.csv --user clinician-7

        # Check a file without writing to the database
        tbhiv-registry patients import patients.xlsx --user clinician-7 --dry-run

        # Export all patients
        tbhiv-registry patients export --output patients.csv

        # Run the HTTP API
        tbhiv-registry serve --port 5000

    Use --help with any command for more information.
    """
    ctx.ensure_object(dict)

    try:
        config_obj = load_config(config)
    except ConfigurationError as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        ctx.exit(1)
        return

    ctx.obj["config"] = config_obj
    ctx.obj["verbose"] = verbose

    # Precedence: CLI flags > config file > defaults
    configure_logging(
        level="DEBUG" if verbose else config_obj.logging.level,
        log_file=log_file if log_file else config_obj.logging.log_file,
        redact_pii=redact_pii or config_obj.logging.redact_pii,
    )


cli.add_command(patients)
cli.add_command(serve)


@cli.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command()
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
def validate(config_file: Path) -> None:
    """Validate a configuration file.

    Example:
        tbhiv-registry config validate config/config.json
    """
    try:
        config_obj = load_config(config_file)
    except ConfigurationError as e:
        click.echo(click.style("✗", fg="red", bold=True) + " Configuration validation failed")
        click.echo(f"\n{e}", err=True)
        raise click.exceptions.Exit(1)

    click.echo(click.style("✓", fg="green", bold=True) + " Configuration is valid")
    click.echo(f"\nConfiguration file: {config_file}")

    click.echo("\nDatabase:")
    click.echo(f"  URL:         {mask_database_url(config_obj.database.url)}")

    click.echo("\nServer:")
    click.echo(f"  Address:     {config_obj.server.host}:{config_obj.server.port}")
    click.echo(f"  Max upload:  {config_obj.server.max_upload_bytes} bytes")

    click.echo("\nLogging:")
    click.echo(f"  Level:       {config_obj.logging.level}")
    click.echo(f"  Log file:    {config_obj.logging.log_file}")
    click.echo(f"  Redact PII:  {config_obj.logging.redact_pii}")

    click.echo("\nAudit:")
    click.echo(f"  Sink:        {config_obj.audit.sink}")


@cli.command()
def version() -> None:
    """Display version information."""
    click.echo(f"tbhiv-registry version {__version__}")


if __name__ == "__main__":
    cli()
