"""Audit logging service.

Uses the central feature/event Logger instead of an own table.
"""

from __future__ import annotations
from collections import deque
from typing import Any, Deque, Dict, List, Optional
from uuid import uuid4

from core.helpers import date_time_helper as dt
from core.logging.logic.logger import Logger
from doccontrol.dto.audit_event import AuditEvent, AuditAction, AuditSeverity
from doccontrol.models.document_models import Document

_LEVELS = {
    AuditSeverity.INFO: "INFO",
    AuditSeverity.WARNING: "WARNING",
    AuditSeverity.ERROR: "ERROR",
}


class AuditService:
    """
    Lifecycle audit trail written through the central Logger.

    The service also keeps the newest ``max_events`` events it produced in this
    process so the history of one document can be shown without parsing log
    messages. The bound follows ``[Logging] max_entries``.
    """

    def __init__(self, logger: Logger, *, feature: str = "doccontrol", max_events: int = 5000):
        self._log = logger
        self._feature = feature
        self._events: Deque[AuditEvent] = deque(maxlen=max(1, int(max_events)))

    def log(self, event: AuditEvent) -> None:
        self._events.append(event)
        self._log.log(
            self._feature,
            event.event_type.value,
            username=event.actor,
            level=_LEVELS[event.severity],
            reference_id=event.doc_id,
            message=event.to_log_string(),
        )

    def log_action(
        self,
        *,
        action: AuditAction,
        actor: str,
        doc: Optional[Document] = None,
        reason: Optional[str] = None,
        changes: Optional[Dict[str, Any]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        severity: AuditSeverity = AuditSeverity.INFO,
        result: str = "success",
        error_message: Optional[str] = None,
    ) -> AuditEvent:
        """
        Convenience method to log an action.

        Returns:
            Created AuditEvent (already logged)
        """
        event = AuditEvent(
            event_id=str(uuid4()),
            event_type=action,
            occurred_at=dt.utc_now(),
            actor=actor,
            doc_id=doc.id if doc else None,
            doc_title=doc.title if doc else None,
            doc_version=doc.version if doc else None,
            doc_status=doc.status.value if doc else None,
            action_result=result,
            reason=reason,
            error_message=error_message,
            changes=changes or {},
            metadata=metadata or {},
            severity=severity,
        )
        self.log(event)
        return event

    def log_status_changed(self, *, doc: Document, actor: str, old_status: str, reason: Optional[str] = None) -> None:
        self.log_action(
            action=AuditAction.STATUS_CHANGED,
            actor=actor,
            doc=doc,
            reason=reason,
            changes={"status": {"old": old_status, "new": doc.status.value}},
        )

    def log_failure(self, *, action: AuditAction, actor: str, doc: Optional[Document], error_message: str) -> None:
        self.log_action(
            action=action,
            actor=actor,
            doc=doc,
            error_message=error_message,
            severity=AuditSeverity.ERROR,
            result="failure",
        )

    def events_for(self, doc_id: str) -> List[AuditEvent]:
        return [e for e in self._events if e.doc_id == doc_id]
