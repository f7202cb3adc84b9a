"""Audit event data model."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


@dataclass
class AuditEvent:
    """A single audit trail entry.

    Attributes:
        user_id: Identity of the acting user
        action: create, update, delete, import or export
        resource_type: patient, treatment, lab_result
        resource_id: Key of the affected resource (optional)
        old_values: Resource state before the change (optional)
        new_values: Resource state after the change, or an operation summary
        ip_address: Client address, when called over HTTP
        user_agent: Client user agent, when called over HTTP
        created_at: Event timestamp (UTC)
    """

    user_id: Optional[str]
    action: str
    resource_type: str
    resource_id: Optional[str] = None
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
