"""Audit event DTO.

Audit events are not stored in a table of their own; AuditService writes them
through the central feature/event Logger.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Dict, Any
from enum import Enum


class AuditAction(Enum):
    """Audit action types for the document lifecycle."""

    # Document Lifecycle
    DOCUMENT_CREATED = "document_created"
    DOCUMENT_DELETED = "document_deleted"
    TEMPLATE_SAVED = "template_saved"

    # Content / metadata
    METADATA_UPDATED = "metadata_updated"
    CONTENT_UPDATED = "content_updated"
    ROSTER_UPDATED = "roster_updated"

    # Workflow
    STATUS_CHANGED = "status_changed"
    REVIEWER_SIGNED = "reviewer_signed"
    APPROVER_SIGNED = "approver_signed"

    # Versions
    MAJOR_VERSION_CREATED = "major_version_created"
    MINOR_VERSION_CREATED = "minor_version_created"

    # Collaborators
    CONTENT_GENERATED = "content_generated"
    CONTENT_REFINED = "content_refined"
    DOCUMENT_EXPORTED = "document_exported"

    # Security / integrity
    VALIDATION_FAILED = "validation_failed"
    BROKEN_REFERENCE = "broken_reference"


class AuditSeverity(Enum):
    """Audit event severity levels."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


def _describe_change(key: str, value: Any) -> str:
    if isinstance(value, dict) and ("old" in value or "new" in value):
        return f"{key}: {value.get('old')} -> {value.get('new')}"
    return f"{key}: {value}"


@dataclass(frozen=True)
class AuditEvent:
    """Immutable audit log event."""

    event_id: str
    event_type: AuditAction
    occurred_at: datetime
    actor: str

    # ===== Document Context =====
    doc_id: Optional[str] = None
    doc_title: Optional[str] = None
    doc_version: Optional[str] = None
    doc_status: Optional[str] = None

    # ===== Action Details =====
    action_result: str = "success"
    """Result: 'success', 'failure', 'denied'"""

    reason: Optional[str] = None
    error_message: Optional[str] = None

    changes: Dict[str, Any] = field(default_factory=dict)
    """Format: {'field_name': {'old': <value>, 'new': <value>}}"""

    metadata: Dict[str, Any] = field(default_factory=dict)
    severity: AuditSeverity = AuditSeverity.INFO

    def to_log_string(self) -> str:
        parts = [
            f"{self.event_type.value}",
            f"by {self.actor}",
        ]
        if self.doc_id:
            label = f"{self.doc_title} v{self.doc_version}" if self.doc_title else self.doc_id
            parts.append(f"on {label}")
        if self.changes:
            parts.append(", ".join(_describe_change(k, v) for k, v in self.changes.items()))
        if self.reason:
            parts.append(f"- {self.reason}")
        if self.action_result != "success":
            parts.append(f"[{self.action_result.upper()}]")
        if self.error_message:
            parts.append(f"Error: {self.error_message}")
        return " ".join(parts)
