# doccontrol/logic/workflow_engine.py
"""
Workflow rules & guards for the doccontrol feature.

- Stateless: pure transition/guard logic, no storage or UI here.
- Uses the closed DocumentStatus / DocumentAction enums; any (status, action)
  pair missing from the table is rejected outright.
- Returns the target status plus the side effects the store must apply, so an
  illegal combination like "approved with pending reviewers" is never built.

    draft     --start_review-------------> review
    review    --reviewer_approve---------> review
    review    --reviewer_reject----------> draft
    review    --submit_final_approval----> approving
    approving --approver_approve---------> approved
    approving --approver_reject----------> draft
    approved  --create_major_revision----> (new document) draft
    approved  --create_minor_revision----> (new document) approving
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from doccontrol.enum.decision_status import DecisionStatus
from doccontrol.enum.document_action import DocumentAction
from doccontrol.enum.document_status import DocumentStatus
from doccontrol.exceptions.errors import InvalidTransitionError, ValidationError
from doccontrol.models.document_models import Document


class Effect(str, Enum):
    """Side effects a transition asks the store to apply, in order."""

    RESET_REVIEWER_DECISIONS = "reset_reviewer_decisions"
    STAMP_REVIEWER = "stamp_reviewer"
    RESET_ALL_DECISIONS = "reset_all_decisions"
    STAMP_APPROVER = "stamp_approver"
    WRITE_APPROVAL_LOG = "write_approval_log"
    NOTIFY_REVIEWERS = "notify_reviewers"
    NOTIFY_APPROVER = "notify_approver"


@dataclass(frozen=True)
class GuardContext:
    """Facts about the document the guards need; built once per command."""

    reviewer_count: int
    all_reviewers_approved: bool
    any_reviewer_pending: bool
    # Decision of the reviewer attempting to sign; None when not on the roster.
    signer_status: Optional[DecisionStatus] = None

    @classmethod
    def for_document(cls, doc: Document, *, reviewer_id: Optional[str] = None) -> "GuardContext":
        signer = doc.find_reviewer(reviewer_id) if reviewer_id else None
        return cls(
            reviewer_count=len(doc.reviewers),
            all_reviewers_approved=doc.all_reviewers_approved(),
            any_reviewer_pending=any(r.status == DecisionStatus.PENDING for r in doc.reviewers),
            signer_status=signer.status if signer else None,
        )


@dataclass(frozen=True)
class Transition:
    action: DocumentAction
    source: DocumentStatus
    target: DocumentStatus
    effects: Tuple[Effect, ...] = ()
    # True when target is the status of a newly spawned document.
    spawns_document: bool = False


_TABLE: Dict[Tuple[DocumentStatus, DocumentAction], Tuple[DocumentStatus, Tuple[Effect, ...], bool]] = {
    (DocumentStatus.DRAFT, DocumentAction.START_REVIEW): (
        DocumentStatus.REVIEW, (Effect.RESET_REVIEWER_DECISIONS, Effect.NOTIFY_REVIEWERS), False),
    (DocumentStatus.REVIEW, DocumentAction.REVIEWER_APPROVE): (
        DocumentStatus.REVIEW, (Effect.STAMP_REVIEWER,), False),
    (DocumentStatus.REVIEW, DocumentAction.REVIEWER_REJECT): (
        DocumentStatus.DRAFT, (Effect.RESET_ALL_DECISIONS,), False),
    (DocumentStatus.REVIEW, DocumentAction.SUBMIT_FINAL_APPROVAL): (
        DocumentStatus.APPROVING, (Effect.NOTIFY_APPROVER,), False),
    (DocumentStatus.APPROVING, DocumentAction.APPROVER_APPROVE): (
        DocumentStatus.APPROVED, (Effect.STAMP_APPROVER, Effect.WRITE_APPROVAL_LOG), False),
    (DocumentStatus.APPROVING, DocumentAction.APPROVER_REJECT): (
        DocumentStatus.DRAFT, (Effect.RESET_ALL_DECISIONS,), False),
    (DocumentStatus.APPROVED, DocumentAction.CREATE_MAJOR_REVISION): (
        DocumentStatus.DRAFT, (), True),
    (DocumentStatus.APPROVED, DocumentAction.CREATE_MINOR_REVISION): (
        DocumentStatus.APPROVING, (Effect.NOTIFY_APPROVER,), True),
}


class WorkflowEngine:
    """Stateless rules engine; the document store applies the resulting effects."""

    def transition(self, status: DocumentStatus, action: DocumentAction, guard: GuardContext) -> Transition:
        """
        Resolve (status, action) into a Transition or raise.

        Raises:
            InvalidTransitionError: pair undefined, or the signer is not a pending reviewer.
            ValidationError: start review with an empty roster, or final approval
                requested while reviewers are still pending.
        """
        rule = _TABLE.get((status, action))
        if rule is None:
            raise InvalidTransitionError(
                f"Action '{action.value}' is not allowed while the document is '{status.value}'."
            )
        self._check_guard(action, guard)
        target, effects, spawns = rule
        return Transition(action=action, source=status, target=target, effects=effects, spawns_document=spawns)

    def allowed_actions(self, status: DocumentStatus, guard: GuardContext) -> List[DocumentAction]:
        """Actions defined for *status* whose document-level guard currently passes."""
        actions: List[DocumentAction] = []
        for (src, action) in _TABLE:
            if src != status:
                continue
            if action == DocumentAction.START_REVIEW and guard.reviewer_count == 0:
                continue
            if action == DocumentAction.REVIEWER_APPROVE and not guard.any_reviewer_pending:
                continue
            if action == DocumentAction.REVIEWER_REJECT and guard.reviewer_count == 0:
                continue
            if action == DocumentAction.SUBMIT_FINAL_APPROVAL and not guard.all_reviewers_approved:
                continue
            actions.append(action)
        return actions

    # ----------------- Guards ------------------------------------------------
    @staticmethod
    def _check_guard(action: DocumentAction, guard: GuardContext) -> None:
        if action == DocumentAction.START_REVIEW and guard.reviewer_count == 0:
            raise ValidationError("Add at least one reviewer before starting the review.")

        if action in (DocumentAction.REVIEWER_APPROVE, DocumentAction.REVIEWER_REJECT):
            if guard.signer_status is None:
                raise InvalidTransitionError("The signer is not on this document's reviewer roster.")
            if action == DocumentAction.REVIEWER_APPROVE and guard.signer_status != DecisionStatus.PENDING:
                raise InvalidTransitionError("This reviewer has already signed off.")

        if action == DocumentAction.SUBMIT_FINAL_APPROVAL and not guard.all_reviewers_approved:
            raise ValidationError("All reviewers must approve before final approval can be requested.")
