"""Importer module.

This module provides the patient import pipeline and patient export.
"""

from tbhiv_registry.importer.exporter import export_patients
from tbhiv_registry.importer.orchestrator import import_patients
from tbhiv_registry.importer.parser import parse_records

__all__ = [
    "export_patients",
    "import_patients",
    "parse_records",
]
