"""UI state service - derives button states from the workflow engine and edit policy."""

from __future__ import annotations
from typing import Optional
import logging

from doccontrol.dto.controls_state import ControlsState
from doccontrol.enum.decision_status import DecisionStatus
from doccontrol.enum.document_action import DocumentAction
from doccontrol.enum.document_status import DocumentStatus
from doccontrol.logic.workflow_engine import GuardContext, WorkflowEngine
from doccontrol.models.document_models import Document
from doccontrol.services.policy.edit_policy import EditPolicy

logger = logging.getLogger(__name__)

_STATUS_TEXT = {
    DocumentStatus.DRAFT: "Draft",
    DocumentStatus.REVIEW: "In Review",
    DocumentStatus.APPROVING: "Awaiting Final Approval",
    DocumentStatus.APPROVED: "Approved",
}


class UIStateService:
    """Derives which controls a document view may enable."""

    def __init__(self, *, edit_policy: EditPolicy, engine: Optional[WorkflowEngine] = None):
        self._policy = edit_policy
        self._engine = engine or WorkflowEngine()

    def build_controls_state(self, doc: Optional[Document]) -> ControlsState:
        """Build complete UI control state."""
        if doc is None:
            return ControlsState.disabled()

        allowed = set(self._engine.allowed_actions(doc.status, GuardContext.for_document(doc)))
        logger.debug("UIState: status=%s allowed=%s", doc.status.value, sorted(a.value for a in allowed))

        return ControlsState(
            can_edit=self._policy.is_editable(doc),
            can_edit_roster=self._policy.is_roster_editable(doc),
            can_start_review=DocumentAction.START_REVIEW in allowed,
            can_sign_review=DocumentAction.REVIEWER_APPROVE in allowed,
            can_submit_final=DocumentAction.SUBMIT_FINAL_APPROVAL in allowed,
            can_sign_final=DocumentAction.APPROVER_APPROVE in allowed,
            can_revise=DocumentAction.CREATE_MAJOR_REVISION in allowed,
            can_export=True,
            status_text=_STATUS_TEXT[doc.status],
            next_text=self._next_text(doc),
        )

    @staticmethod
    def _next_text(doc: Document) -> str:
        if doc.status == DocumentStatus.DRAFT:
            if not doc.reviewers:
                return "Add at least one reviewer"
            return "Start review"
        if doc.status == DocumentStatus.REVIEW:
            pending = sum(1 for r in doc.reviewers if r.status == DecisionStatus.PENDING)
            if pending:
                return f"Waiting for {pending} reviewer(s)"
            return "Submit for final approval"
        if doc.status == DocumentStatus.APPROVING:
            return f"Waiting for {doc.final_approver.name or 'final approver'}"
        return "Create a revision to change this document"
