from __future__ import annotations

import pytest

from doccontrol.enum.revision_type import RevisionType
from doccontrol.services.policy.edit_policy import EditPolicy
from doccontrol.services.ui_state_service import UIStateService


@pytest.fixture
def ui():
    return UIStateService(edit_policy=EditPolicy("strict"))


def test_no_document(ui):
    state = ui.build_controls_state(None)
    assert not state.can_edit and not state.can_export


def test_draft_without_reviewers(ui, store):
    state = ui.build_controls_state(store.create_blank())
    assert state.can_edit and state.can_edit_roster
    assert not state.can_start_review
    assert state.status_text == "Draft"
    assert state.next_text == "Add at least one reviewer"
    assert state.can_export


def test_review_progress(ui, store):
    doc = store.create_blank()
    a = store.add_reviewer(doc.id, "Alice")
    store.add_reviewer(doc.id, "Bob")
    assert ui.build_controls_state(store.get(doc.id)).next_text == "Start review"

    store.start_review(doc.id)
    state = ui.build_controls_state(store.get(doc.id))
    assert not state.can_edit and not state.can_edit_roster
    assert state.can_sign_review and not state.can_submit_final
    assert state.next_text == "Waiting for 2 reviewer(s)"

    store.reviewer_sign_off(doc.id, a.id, approve=True)
    assert ui.build_controls_state(store.get(doc.id)).next_text == "Waiting for 1 reviewer(s)"


def test_ready_for_submission(ui, store):
    doc = store.create_blank()
    rid = store.add_reviewer(doc.id, "Alice").id
    store.start_review(doc.id)
    store.reviewer_sign_off(doc.id, rid, approve=True)
    state = ui.build_controls_state(store.get(doc.id))
    assert state.can_submit_final and not state.can_sign_review
    assert state.next_text == "Submit for final approval"

    store.submit_for_final_approval(doc.id)
    state = ui.build_controls_state(store.get(doc.id))
    assert state.can_sign_final
    assert state.status_text == "Awaiting Final Approval"
    assert state.next_text == "Waiting for Management Representative"


def test_approved_and_minor_revision(ui, store, approved_doc):
    state = ui.build_controls_state(store.get(approved_doc.id))
    assert state.can_revise and not state.can_edit
    assert state.status_text == "Approved"
    assert state.next_text == "Create a revision to change this document"

    minor = store.create_revision(approved_doc.id, RevisionType.MINOR)
    state = ui.build_controls_state(minor)
    assert state.can_sign_final and not state.can_revise


def test_permissive_policy_allows_edit_in_review(store):
    ui = UIStateService(edit_policy=EditPolicy("permissive"))
    doc = store.create_blank()
    store.add_reviewer(doc.id, "Alice")
    store.start_review(doc.id)
    state = ui.build_controls_state(store.get(doc.id))
    assert state.can_edit and not state.can_edit_roster
