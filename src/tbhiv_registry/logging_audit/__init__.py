"""Logging Audit module.

This module provides logging configuration and audit trail functionality.
"""

from .audit import AuditSink, LoggingAuditSink, log_audit_event
from .formatters import PIIRedactingFormatter
from .logger import configure_logging, get_logger

__all__ = [
    "AuditSink",
    "LoggingAuditSink",
    "configure_logging",
    "get_logger",
    "log_audit_event",
    "PIIRedactingFormatter",
]
