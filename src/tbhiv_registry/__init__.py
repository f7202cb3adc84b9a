"""TB/HIV co-infection patient registry.

Bulk patient import from CSV/Excel with per-row validation, sequential
patient identifiers, export, and an audit trail.
"""

__version__ = "0.1.0"
