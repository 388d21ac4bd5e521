"""Document store: creation, editing, lifecycle and revisions."""
from __future__ import annotations

import pytest

from doccontrol.dto.audit_event import AuditAction, AuditSeverity
from doccontrol.dto.generated_outline import OutlineSection
from doccontrol.enum.decision_status import DecisionStatus
from doccontrol.enum.doc_level import DocLevel
from doccontrol.enum.document_action import DocumentAction
from doccontrol.enum.document_status import DocumentStatus
from doccontrol.enum.revision_type import RevisionType
from doccontrol.exceptions.errors import (
    DocumentLockedError,
    DocumentNotFoundError,
    InvalidTransitionError,
    ValidationError,
)
from doccontrol.tests.conftest import approve_document, revise


# --------------------------------------------------------------------------- #
#  Creation
# --------------------------------------------------------------------------- #
def test_create_blank_defaults(store):
    doc = store.create_blank()
    assert doc.status == DocumentStatus.DRAFT
    assert doc.version == "1.0"
    assert doc.doc_number == "DOC-2026-001"
    assert doc.category == "iso"
    assert doc.final_approver.name == "Management Representative"
    assert [s.title for s in doc.sections] == ["1.0 Purpose", "2.0 Scope"]
    assert len({s.id for s in doc.sections}) == 2
    assert store.create_blank().doc_number == "DOC-2026-002"


def test_create_blank_validates_category_and_number(store):
    with pytest.raises(ValidationError):
        store.create_blank(category="nope")
    store.create_blank(doc_number="QP-001")
    with pytest.raises(ValidationError):
        store.create_blank(doc_number="QP-001")
    with pytest.raises(ValidationError):
        store.create_blank(doc_number="   ")
    with pytest.raises(ValidationError):
        store.create_blank(title="")
    assert len(store.list_documents()) == 1


def test_generated_number_skips_taken_numbers(store):
    store.create_blank(doc_number="DOC-2026-001")
    assert store.create_blank().doc_number == "DOC-2026-002"


def test_create_from_template(store, templates):
    doc = store.create_from_template("tpl-sop", doc_number="SOP-010", author="Writer")
    template = templates.get("tpl-sop").document
    assert doc.title == template.title
    assert doc.level == DocLevel.PROCEDURE
    assert doc.status == DocumentStatus.DRAFT
    assert doc.author == "Writer"
    assert [s.title for s in doc.sections] == [s.title for s in template.sections]
    assert {s.id for s in doc.sections}.isdisjoint({s.id for s in template.sections})
    assert not doc.is_template and doc.revisions == [] and doc.reviewers == []

    store.update_section(doc.id, doc.sections[0].id, content="changed")
    assert templates.get("tpl-sop").document.sections[0].content != "changed"


def test_create_from_unknown_template(store):
    with pytest.raises(ValidationError):
        store.create_from_template("tpl-missing")


def test_get_returns_detached_copy(store):
    doc = store.create_blank()
    doc.title = "hacked"
    doc.sections.clear()
    fresh = store.get(doc.id)
    assert fresh.title != "hacked"
    assert len(fresh.sections) == 2


def test_unknown_document(store):
    with pytest.raises(DocumentNotFoundError):
        store.get("missing")
    with pytest.raises(DocumentNotFoundError):
        store.start_review("missing")


def test_delete_document(store, central_logger):
    doc = store.create_blank()
    store.delete_document(doc.id)
    assert not store.exists(doc.id)
    assert central_logger.query_logs(event=AuditAction.DOCUMENT_DELETED.value, reference_id=doc.id)


# --------------------------------------------------------------------------- #
#  Editing
# --------------------------------------------------------------------------- #
def test_section_commands(store):
    doc = store.create_blank()
    first, second = (s.id for s in doc.sections)
    added = store.add_section(doc.id, "3.0 Definitions", "Terms")
    store.add_section(doc.id, "0.5 Foreword", index=0)
    store.move_section(doc.id, added.id, 1)
    store.update_section(doc.id, first, title="1.0 Objective", content="Why")
    store.remove_section(doc.id, second)

    titles = [s.title for s in store.get(doc.id).sections]
    assert titles == ["0.5 Foreword", "3.0 Definitions", "1.0 Objective"]

    with pytest.raises(ValidationError):
        store.move_section(doc.id, added.id, 5)
    with pytest.raises(ValidationError):
        store.update_section(doc.id, "nope", content="x")
    with pytest.raises(ValidationError):
        store.add_section(doc.id, index=9)


def test_update_title_and_metadata(store):
    doc = store.create_blank(doc_number="QP-001")
    other = store.create_blank(doc_number="QP-002")
    store.update_title(doc.id, "  Calibration  ")
    store.update_metadata(doc.id, department="Quality", level=DocLevel.WORK_INSTRUCTION, category="hr")
    got = store.get(doc.id)
    assert got.title == "Calibration"
    assert (got.department, got.level, got.category) == ("Quality", DocLevel.WORK_INSTRUCTION, "hr")

    with pytest.raises(ValidationError):
        store.update_metadata(doc.id, doc_number=other.doc_number, department="Sales")
    with pytest.raises(ValidationError):
        store.update_metadata(doc.id, category="unknown", department="Sales")
    # nothing written by the rejected updates
    assert store.get(doc.id).department == "Quality"
    store.update_metadata(doc.id, doc_number="QP-001")


def test_replace_sections_all_or_nothing(store):
    doc = store.create_blank()
    with pytest.raises(ValidationError):
        store.replace_sections(doc.id, [])
    assert len(store.get(doc.id).sections) == 2
    new = store.replace_sections(doc.id, [OutlineSection("A", "a"), OutlineSection("B", "b"), OutlineSection("C", "c")])
    assert [s.title for s in store.get(doc.id).sections] == ["A", "B", "C"]
    assert [s.id for s in new] == [s.id for s in store.get(doc.id).sections]


def test_token_insertion_keeps_raw_tokens(store):
    target = store.create_blank(title="Machine Operation", doc_number="WI-001")
    doc = store.create_blank()
    sid = doc.sections[0].id
    store.update_section(doc.id, sid, content="Issued by ")
    store.insert_variable_token(doc.id, sid, "COMPANY_NAME")
    raw = store.insert_reference_token(doc.id, sid, target.id)
    assert raw == f"Issued by {{{{COMPANY_NAME}}}}[[REF:{target.id}]]"
    assert store.get(doc.id).sections[0].content == raw

    with pytest.raises(ValidationError):
        store.insert_reference_token(doc.id, sid, "missing")
    with pytest.raises(ValidationError):
        store.insert_reference_token(doc.id, sid, doc.id)


def test_broken_references_query(store):
    target = store.create_blank(doc_number="WI-001")
    doc = store.create_blank()
    sid = doc.sections[0].id
    store.insert_reference_token(doc.id, sid, target.id)
    assert store.broken_references(doc.id) == []
    store.delete_document(target.id)
    assert store.broken_references(doc.id) == [(sid, target.id)]


# --------------------------------------------------------------------------- #
#  Lifecycle
# --------------------------------------------------------------------------- #
def test_end_to_end_approval(store, notifier):
    doc = store.create_blank(title="Control of Records", doc_number="QP-004")

    with pytest.raises(ValidationError):
        store.start_review(doc.id)
    assert store.get(doc.id).status == DocumentStatus.DRAFT

    reviewer = store.add_reviewer(doc.id, "Alice", "alice@example.com")
    assert store.start_review(doc.id).status == DocumentStatus.REVIEW
    assert notifier.reviewer_calls == [(doc.id, ["Alice"])]

    signed = store.reviewer_sign_off(doc.id, reviewer.id, approve=True, note="ok")
    assert signed.reviewers[0].status == DecisionStatus.APPROVED
    assert signed.reviewers[0].date == "2026-03-14"
    assert signed.reviewers[0].note == "ok"
    assert signed.status == DocumentStatus.REVIEW

    assert store.submit_for_final_approval(doc.id).status == DocumentStatus.APPROVING
    assert notifier.approver_calls == [(doc.id, "Management Representative")]

    approved = store.approver_sign_off(doc.id, approve=True, note="released")
    assert approved.status == DocumentStatus.APPROVED
    assert approved.final_approver.status == DecisionStatus.APPROVED
    assert approved.approval_log is not None
    assert approved.approval_log.reviewer_names == ("Alice",)
    assert approved.approval_log.integrity_hash == approved.content_fingerprint()

    with pytest.raises(DocumentLockedError):
        store.update_title(doc.id, "Changed")
    with pytest.raises(DocumentLockedError):
        store.update_section(doc.id, approved.sections[0].id, content="Changed")
    with pytest.raises(DocumentLockedError):
        store.add_section(doc.id, "More")
    with pytest.raises(DocumentLockedError):
        store.update_metadata(doc.id, department="Other")
    with pytest.raises(DocumentLockedError):
        store.add_reviewer(doc.id, "Bob")
    assert store.get(doc.id).title == "Control of Records"


def test_submit_rejected_while_reviewer_pending(store):
    doc = store.create_blank()
    a = store.add_reviewer(doc.id, "Alice")
    store.add_reviewer(doc.id, "Bob")
    store.start_review(doc.id)
    store.reviewer_sign_off(doc.id, a.id, approve=True)
    assert DocumentAction.SUBMIT_FINAL_APPROVAL not in store.allowed_actions(doc.id)
    with pytest.raises(ValidationError):
        store.submit_for_final_approval(doc.id)
    assert store.get(doc.id).status == DocumentStatus.REVIEW


def test_reviewer_reject_resets_every_decision(store):
    doc = store.create_blank()
    ids = [store.add_reviewer(doc.id, n).id for n in ("Alice", "Bob", "Carol")]
    store.start_review(doc.id)
    store.reviewer_sign_off(doc.id, ids[0], approve=True, note="fine")
    store.reviewer_sign_off(doc.id, ids[1], approve=True)

    back = store.reviewer_sign_off(doc.id, ids[2], approve=False, note="missing scope")
    assert back.status == DocumentStatus.DRAFT
    assert [r.status for r in back.reviewers] == [DecisionStatus.PENDING] * 3
    assert all(r.date is None and r.note is None for r in back.reviewers)
    # roster kept, editable again
    store.update_title(doc.id, "Reworked")


def test_approver_reject_resets_approver_and_reviewers(store):
    doc = store.create_blank()
    rid = store.add_reviewer(doc.id, "Alice").id
    store.start_review(doc.id)
    store.reviewer_sign_off(doc.id, rid, approve=True)
    store.submit_for_final_approval(doc.id)
    back = store.approver_sign_off(doc.id, approve=False, note="not yet")
    assert back.status == DocumentStatus.DRAFT
    assert back.reviewers[0].status == DecisionStatus.PENDING
    assert back.final_approver.status == DecisionStatus.PENDING
    assert back.approval_log is None


def test_start_review_clears_stale_decisions(store):
    doc = store.create_blank()
    rid = store.add_reviewer(doc.id, "Alice").id
    store.start_review(doc.id)
    store.reviewer_sign_off(doc.id, rid, approve=True)
    store.reviewer_sign_off(doc.id, rid, approve=False)
    again = store.start_review(doc.id)
    assert again.reviewers[0].status == DecisionStatus.PENDING


def test_sign_off_guards(store):
    doc = store.create_blank()
    rid = store.add_reviewer(doc.id, "Alice").id
    store.add_reviewer(doc.id, "Bob")

    with pytest.raises(InvalidTransitionError):
        store.reviewer_sign_off(doc.id, rid, approve=True)       # still draft
    store.start_review(doc.id)
    with pytest.raises(InvalidTransitionError):
        store.reviewer_sign_off(doc.id, "stranger", approve=True)
    store.reviewer_sign_off(doc.id, rid, approve=True)
    with pytest.raises(InvalidTransitionError):
        store.reviewer_sign_off(doc.id, rid, approve=True)       # already signed
    with pytest.raises(InvalidTransitionError):
        store.approver_sign_off(doc.id, approve=True)            # wrong role for state
    with pytest.raises(DocumentLockedError):
        store.remove_reviewer(doc.id, rid)                       # roster frozen during review


def test_rejected_transition_is_audited(store, central_logger):
    doc = store.create_blank()
    with pytest.raises(ValidationError):
        store.start_review(doc.id)
    hits = central_logger.query_logs(event=AuditAction.VALIDATION_FAILED.value, reference_id=doc.id)
    assert hits and hits[0].log_level == "WARNING"


def test_roster_commands(store):
    doc = store.create_blank()
    r = store.add_reviewer(doc.id, " Alice ", " ")
    assert (r.name, r.email) == ("Alice", None)
    with pytest.raises(ValidationError):
        store.add_reviewer(doc.id, "")
    store.set_final_approver(doc.id, "Quality Manager")
    store.remove_reviewer(doc.id, r.id)
    got = store.get(doc.id)
    assert got.reviewers == []
    assert got.final_approver.name == "Quality Manager"
    with pytest.raises(ValidationError):
        store.remove_reviewer(doc.id, r.id)


def test_permissive_discipline(permissive_store):
    store = permissive_store
    doc = store.create_blank()
    rid = store.add_reviewer(doc.id, "Alice").id
    store.start_review(doc.id)
    store.update_title(doc.id, "Edited in review")
    with pytest.raises(DocumentLockedError):
        store.add_reviewer(doc.id, "Bob")
    store.reviewer_sign_off(doc.id, rid, approve=True)
    store.submit_for_final_approval(doc.id)
    store.update_section(doc.id, store.get(doc.id).sections[0].id, content="still editable")
    store.approver_sign_off(doc.id, approve=True)
    with pytest.raises(DocumentLockedError):
        store.update_title(doc.id, "Too late")


# --------------------------------------------------------------------------- #
#  Revisions
# --------------------------------------------------------------------------- #
def test_major_revision(store, approved_doc):
    new = revise(store, approved_doc.id, RevisionType.MAJOR)
    assert new.id != approved_doc.id
    assert new.version == "2.0"
    assert new.status == DocumentStatus.DRAFT
    assert new.reviewers == []
    assert new.final_approver.name == approved_doc.final_approver.name
    assert new.final_approver.status == DecisionStatus.PENDING
    assert new.approval_log is None
    assert new.revision_of == approved_doc.id
    assert new.doc_number == approved_doc.doc_number
    assert len(new.revisions) == 1
    entry = new.revisions[0]
    assert entry.version == "1.0"
    assert entry.date == "2026-03-14"
    assert entry.author == "Editor"
    assert "1.0" in entry.description

    # source untouched
    source = store.get(approved_doc.id)
    assert source.status == DocumentStatus.APPROVED
    assert source.revisions == []
    # new document is editable and sections are independent copies
    store.update_section(new.id, new.sections[0].id, content="new text")
    assert store.get(approved_doc.id).sections[0].content != "new text"


def test_minor_revision_fast_tracks_to_approving(store, approved_doc, notifier):
    major = revise(store, approved_doc.id, RevisionType.MAJOR)
    approve_document(store, major.id)
    minor = revise(store, major.id, RevisionType.MINOR)
    assert minor.version == "2.1"
    assert minor.status == DocumentStatus.APPROVING
    assert minor.reviewers == []
    assert [e.version for e in minor.revisions] == ["1.0", "2.0"]
    assert notifier.approver_calls[-1] == (minor.id, approved_doc.final_approver.name)

    released = store.approver_sign_off(minor.id, approve=True)
    assert released.status == DocumentStatus.APPROVED
    assert released.approval_log.reviewer_names == ()


def test_revision_only_from_approved(store):
    doc = store.create_blank()
    with pytest.raises(InvalidTransitionError):
        store.create_revision(doc.id, RevisionType.MAJOR)
    assert len(store.list_documents()) == 1


def test_versions_of_and_uniqueness_exemption(store, approved_doc):
    major = revise(store, approved_doc.id, RevisionType.MAJOR)
    store.update_metadata(major.id, doc_number=approved_doc.doc_number)
    assert [d.version for d in store.versions_of(approved_doc.doc_number)] == ["1.0", "2.0"]
    with pytest.raises(ValidationError):
        store.create_blank(doc_number=approved_doc.doc_number)


# --------------------------------------------------------------------------- #
#  Queries / templates
# --------------------------------------------------------------------------- #
def test_list_and_funnel(store, approved_doc):
    store.create_blank(category="hr")
    reviewing = store.create_blank()
    store.add_reviewer(reviewing.id, "Alice")
    store.start_review(reviewing.id)

    stats = store.funnel_stats()
    assert (stats.drafts, stats.in_review, stats.approving, stats.approved) == (1, 1, 0, 1)
    assert stats.total == 3
    assert [d.category for d in store.list_documents(category="hr")] == ["hr"]
    assert [d.id for d in store.list_documents(status=DocumentStatus.APPROVED)] == [approved_doc.id]


def test_save_as_template(store, templates, approved_doc):
    entry = store.save_as_template(approved_doc.id, description="Reusable control procedure")
    tpl = entry.document
    assert tpl.is_template and not entry.is_system
    assert tpl.status == DocumentStatus.DRAFT
    assert tpl.revisions == [] and tpl.approval_log is None and tpl.reviewers == []
    assert templates.list()[0].id == entry.id

    doc = store.create_from_template(entry.id, doc_number="QP-099")
    assert [s.content for s in doc.sections] == [s.content for s in approved_doc.sections]


def test_audit_messages_describe_changes(store, central_logger):
    doc = store.create_blank(title="Old title")
    store.add_reviewer(doc.id, "Alice")
    store.update_title(doc.id, "New title")
    roster = central_logger.query_logs(event=AuditAction.ROSTER_UPDATED.value, reference_id=doc.id)
    assert "reviewer_added: Alice" in roster[0].message
    titles = central_logger.query_logs(event=AuditAction.METADATA_UPDATED.value, reference_id=doc.id)
    assert "title: Old title -> New title" in titles[0].message


def test_wrong_state_sign_off_is_audited(store, central_logger):
    doc = store.create_blank()
    with pytest.raises(InvalidTransitionError):
        store.approver_sign_off(doc.id, approve=True)
    with pytest.raises(InvalidTransitionError):
        store.create_revision(doc.id, RevisionType.MAJOR)

    hits = central_logger.query_logs(event=AuditAction.VALIDATION_FAILED.value, reference_id=doc.id)
    assert len(hits) == 2
    assert all(h.log_level == "WARNING" for h in hits)


def test_second_revision_of_same_version_is_flagged(store, audit, approved_doc):
    first = revise(store, approved_doc.id, RevisionType.MAJOR)
    second = revise(store, approved_doc.id, RevisionType.MAJOR)

    assert first.version == second.version == "2.0"
    [event] = audit.events_for(first.id)
    assert event.severity == AuditSeverity.INFO
    [event] = audit.events_for(second.id)
    assert event.severity == AuditSeverity.WARNING
    assert event.metadata["earlier_revisions"] == [first.id]
