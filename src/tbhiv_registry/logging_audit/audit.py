"""Audit trail functionality for the TB/HIV registry.

This module provides structured audit logging and the AuditSink protocol the
import pipeline reports to. Sinks are fire-and-forget from the caller's point
of view; callers decide how to handle a sink that raises.
"""

import time
import uuid
from typing import Any, Dict, Protocol

from tbhiv_registry.models.audit import AuditEvent

from .logger import get_logger

logger = get_logger(__name__)


class AuditSink(Protocol):
    """Receives audit events."""

    def record(self, event: AuditEvent) -> None:
        ...


def log_audit_event(event_type: str, details: Dict[str, Any]) -> None:
    """Log an audit trail event.

    Creates a structured audit log entry with standard fields. Audit events
    are logged at INFO level for successful operations and ERROR level for
    failures.

    Args:
        event_type: Type of operation (e.g., "PATIENT_IMPORT", "PATIENT_EXPORT")
        details: Dictionary with event details. Common fields include:
                - status: "success" or "failure"
                - user_id: Acting user
                - total / success / failure_count: Import counts
                - correlation_id: Optional correlation ID for related events

    Example:
        >>> log_audit_event("PATIENT_IMPORT", {
        ...     "status": "success",
        ...     "user_id": "user-1",
        ...     "total": 100,
        ...     "success": 98,
        ...     "failure_count": 2,
        ... })
    """
    if "timestamp" not in details:
        details["timestamp"] = time.time()

    if "correlation_id" not in details:
        details["correlation_id"] = str(uuid.uuid4())

    message_parts = [f"AUDIT [{event_type}]"]

    field_order = [
        "status",
        "user_id",
        "resource_id",
        "total",
        "success",
        "failure_count",
        "error_message",
        "correlation_id",
    ]

    for field in field_order:
        if field in details:
            message_parts.append(f"{field}={details[field]}")

    for key, value in details.items():
        if key not in field_order and key != "timestamp":
            message_parts.append(f"{key}={value}")

    audit_message = " | ".join(message_parts)

    if details.get("status", "unknown") == "failure":
        logger.error(audit_message)
    else:
        logger.info(audit_message)


class LoggingAuditSink:
    """AuditSink that writes events to the audit logger."""

    def record(self, event: AuditEvent) -> None:
        event_type = f"{event.resource_type}_{event.action}".upper()
        details: Dict[str, Any] = {"status": "success", "user_id": event.user_id}
        if event.resource_id:
            details["resource_id"] = event.resource_id
        if event.new_values:
            details.update(event.new_values)
        log_audit_event(event_type, details)
