"""Transition table and guards of the workflow engine."""
from __future__ import annotations

import pytest

from doccontrol.enum.decision_status import DecisionStatus
from doccontrol.enum.document_action import DocumentAction as A
from doccontrol.enum.document_status import DocumentStatus as S
from doccontrol.exceptions.errors import InvalidTransitionError, ValidationError
from doccontrol.logic.workflow_engine import Effect, GuardContext, WorkflowEngine

engine = WorkflowEngine()

ONE_PENDING = GuardContext(reviewer_count=1, all_reviewers_approved=False, any_reviewer_pending=True,
                           signer_status=DecisionStatus.PENDING)
ALL_APPROVED = GuardContext(reviewer_count=2, all_reviewers_approved=True, any_reviewer_pending=False,
                            signer_status=DecisionStatus.APPROVED)
EMPTY = GuardContext(reviewer_count=0, all_reviewers_approved=False, any_reviewer_pending=False)


@pytest.mark.parametrize(
    "status, action, guard, target",
    [
        (S.DRAFT, A.START_REVIEW, ONE_PENDING, S.REVIEW),
        (S.REVIEW, A.REVIEWER_APPROVE, ONE_PENDING, S.REVIEW),
        (S.REVIEW, A.REVIEWER_REJECT, ONE_PENDING, S.DRAFT),
        (S.REVIEW, A.SUBMIT_FINAL_APPROVAL, ALL_APPROVED, S.APPROVING),
        (S.APPROVING, A.APPROVER_APPROVE, ALL_APPROVED, S.APPROVED),
        (S.APPROVING, A.APPROVER_REJECT, ALL_APPROVED, S.DRAFT),
        (S.APPROVED, A.CREATE_MAJOR_REVISION, ALL_APPROVED, S.DRAFT),
        (S.APPROVED, A.CREATE_MINOR_REVISION, ALL_APPROVED, S.APPROVING),
    ],
)
def test_defined_transitions(status, action, guard, target):
    t = engine.transition(status, action, guard)
    assert t.source == status
    assert t.target == target


def test_revisions_spawn_new_documents():
    assert engine.transition(S.APPROVED, A.CREATE_MAJOR_REVISION, ALL_APPROVED).spawns_document
    assert engine.transition(S.APPROVED, A.CREATE_MINOR_REVISION, ALL_APPROVED).spawns_document
    assert not engine.transition(S.DRAFT, A.START_REVIEW, ONE_PENDING).spawns_document


def test_rejections_reset_all_decisions():
    for status, action in ((S.REVIEW, A.REVIEWER_REJECT), (S.APPROVING, A.APPROVER_REJECT)):
        assert Effect.RESET_ALL_DECISIONS in engine.transition(status, action, ONE_PENDING).effects


def test_final_approval_writes_log():
    effects = engine.transition(S.APPROVING, A.APPROVER_APPROVE, ALL_APPROVED).effects
    assert effects == (Effect.STAMP_APPROVER, Effect.WRITE_APPROVAL_LOG)


@pytest.mark.parametrize(
    "status, action",
    [
        (S.DRAFT, A.REVIEWER_APPROVE),
        (S.DRAFT, A.APPROVER_APPROVE),
        (S.DRAFT, A.CREATE_MAJOR_REVISION),
        (S.REVIEW, A.START_REVIEW),
        (S.REVIEW, A.APPROVER_APPROVE),
        (S.APPROVING, A.REVIEWER_APPROVE),
        (S.APPROVED, A.START_REVIEW),
        (S.APPROVED, A.APPROVER_REJECT),
    ],
)
def test_undefined_pairs_are_rejected(status, action):
    with pytest.raises(InvalidTransitionError):
        engine.transition(status, action, ALL_APPROVED)


def test_start_review_needs_reviewers():
    with pytest.raises(ValidationError):
        engine.transition(S.DRAFT, A.START_REVIEW, EMPTY)


def test_submit_needs_all_reviewers_approved():
    with pytest.raises(ValidationError):
        engine.transition(S.REVIEW, A.SUBMIT_FINAL_APPROVAL, ONE_PENDING)


def test_reviewer_sign_off_guards():
    outsider = GuardContext(reviewer_count=1, all_reviewers_approved=False, any_reviewer_pending=True)
    with pytest.raises(InvalidTransitionError):
        engine.transition(S.REVIEW, A.REVIEWER_APPROVE, outsider)
    with pytest.raises(InvalidTransitionError):
        engine.transition(S.REVIEW, A.REVIEWER_REJECT, outsider)
    already = GuardContext(reviewer_count=2, all_reviewers_approved=False, any_reviewer_pending=True,
                           signer_status=DecisionStatus.APPROVED)
    with pytest.raises(InvalidTransitionError):
        engine.transition(S.REVIEW, A.REVIEWER_APPROVE, already)
    # an approved reviewer may still reject the round
    assert engine.transition(S.REVIEW, A.REVIEWER_REJECT, already).target == S.DRAFT


def test_allowed_actions():
    assert engine.allowed_actions(S.DRAFT, EMPTY) == []
    assert engine.allowed_actions(S.DRAFT, ONE_PENDING) == [A.START_REVIEW]
    assert A.SUBMIT_FINAL_APPROVAL not in engine.allowed_actions(S.REVIEW, ONE_PENDING)
    in_review = engine.allowed_actions(S.REVIEW, ALL_APPROVED)
    assert A.SUBMIT_FINAL_APPROVAL in in_review
    assert A.REVIEWER_APPROVE not in in_review
    assert set(engine.allowed_actions(S.APPROVED, ALL_APPROVED)) == {A.CREATE_MAJOR_REVISION,
                                                                    A.CREATE_MINOR_REVISION}
