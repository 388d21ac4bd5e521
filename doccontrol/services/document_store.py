"""
===============================================================================
Document Store – owner of the in-memory document collection
-------------------------------------------------------------------------------
Command methods validate first and mutate afterwards; a raised error always
means nothing changed. Lifecycle commands go through the WorkflowEngine,
which answers with the target status and the effects applied here.

Queries return detached copies so callers cannot bypass the edit lock.
Nothing is persisted; the collection lives as long as the process.
===============================================================================
"""
from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from core.helpers import date_time_helper as dt
from doccontrol.dto.audit_event import AuditAction, AuditSeverity
from doccontrol.dto.funnel_stats import FunnelStats
from doccontrol.dto.generated_outline import OutlineSection
from doccontrol.enum.decision_status import DecisionStatus
from doccontrol.enum.doc_level import DocLevel
from doccontrol.enum.document_action import DocumentAction
from doccontrol.enum.document_status import DocumentStatus
from doccontrol.enum.revision_type import RevisionType
from doccontrol.exceptions.errors import DocumentNotFoundError, DocumentsError, ValidationError
from doccontrol.logic import substitution
from doccontrol.logic.id_generator import IdGenerator, new_id, short_id
from doccontrol.logic.versioning import next_version, parse_version
from doccontrol.logic.workflow_engine import Effect, GuardContext, Transition, WorkflowEngine
from doccontrol.models.document_models import ApprovalLog, Document, FinalApprover, Reviewer, RevisionEntry, Section
from doccontrol.services.audit_service import AuditService
from doccontrol.services.category_registry import CategoryRegistry
from doccontrol.services.notifier import LoggingNotifier, Notifier
from doccontrol.services.policy.edit_policy import EditPolicy
from doccontrol.services.template_library import TemplateEntry, TemplateLibrary

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "New Document Draft"
DEFAULT_DEPARTMENT = "Unassigned"
DEFAULT_SECTIONS = (
    ("1.0 Purpose", "Describe the purpose of this document..."),
    ("2.0 Scope", "Describe the scope of application..."),
)

_REVISION_ACTIONS = {
    RevisionType.MAJOR: (DocumentAction.CREATE_MAJOR_REVISION, AuditAction.MAJOR_VERSION_CREATED),
    RevisionType.MINOR: (DocumentAction.CREATE_MINOR_REVISION, AuditAction.MINOR_VERSION_CREATED),
}


class DocumentStore:
    """Application-state owner exposing document commands and queries."""

    def __init__(
        self,
        *,
        categories: CategoryRegistry,
        templates: TemplateLibrary,
        edit_policy: Optional[EditPolicy] = None,
        audit: Optional[AuditService] = None,
        notifier: Optional[Notifier] = None,
        doc_numbers: Optional[IdGenerator] = None,
        engine: Optional[WorkflowEngine] = None,
        default_approver: str = "Management Representative",
        clock: Callable[[], datetime] = dt.utc_now,
    ) -> None:
        self._docs: Dict[str, Document] = {}
        self._categories = categories
        self._templates = templates
        self._policy = edit_policy or EditPolicy()
        self._audit = audit
        self._notifier = notifier or LoggingNotifier()
        self._doc_numbers = doc_numbers or IdGenerator("DOC", "{YYYY}-{seq:03d}")
        self._engine = engine or WorkflowEngine()
        self._default_approver = default_approver
        self._clock = clock

    @property
    def edit_policy(self) -> EditPolicy:
        return self._policy

    # ------------------------------------------------------------------ #
    #  Queries                                                           #
    # ------------------------------------------------------------------ #
    def get(self, doc_id: str) -> Document:
        return self._require(doc_id).copy()

    def exists(self, doc_id: str) -> bool:
        return doc_id in self._docs

    def list_documents(
        self,
        *,
        category: Optional[str] = None,
        status: Optional[DocumentStatus] = None,
    ) -> List[Document]:
        """Newest first, optionally filtered by category and/or status."""
        docs = sorted(self._docs.values(), key=lambda d: d.created_at, reverse=True)
        return [
            d.copy() for d in docs
            if (category is None or d.category == category)
            and (status is None or d.status == status)
        ]

    def all_documents(self) -> List[Document]:
        """Every document in the collection; the reference resolution universe."""
        return [d.copy() for d in self._docs.values()]

    def funnel_stats(self) -> FunnelStats:
        counts = Counter(d.status for d in self._docs.values())
        return FunnelStats(
            drafts=counts[DocumentStatus.DRAFT],
            in_review=counts[DocumentStatus.REVIEW],
            approving=counts[DocumentStatus.APPROVING],
            approved=counts[DocumentStatus.APPROVED],
        )

    def versions_of(self, doc_number: str) -> List[Document]:
        """All documents sharing *doc_number*, oldest version first."""
        docs = [d for d in self._docs.values() if d.doc_number == doc_number]
        return [d.copy() for d in sorted(docs, key=lambda d: (parse_version(d.version), d.created_at))]

    def broken_references(self, doc_id: str) -> List[Tuple[str, str]]:
        """(section_id, referenced id) for every reference to a missing document."""
        doc = self._require(doc_id)
        known = list(self._docs.values())
        return [
            (s.id, ref)
            for s in doc.sections
            for ref in substitution.broken_references(s.content, known)
        ]

    def allowed_actions(self, doc_id: str) -> List[DocumentAction]:
        doc = self._require(doc_id)
        return self._engine.allowed_actions(doc.status, GuardContext.for_document(doc))

    # ------------------------------------------------------------------ #
    #  Creation / deletion                                               #
    # ------------------------------------------------------------------ #
    def create_blank(
        self,
        *,
        title: str = DEFAULT_TITLE,
        doc_number: Optional[str] = None,
        category: Optional[str] = None,
        level: DocLevel = DocLevel.PROCEDURE,
        department: str = DEFAULT_DEPARTMENT,
        author: str = "User",
        approver_name: Optional[str] = None,
    ) -> Document:
        category = category if category is not None else self._default_category()
        self._categories.ensure_exists(category)
        title = self._clean_title(title)
        doc_number = self._new_doc_number(doc_number)

        doc = Document(
            id=new_id(),
            title=title,
            doc_number=doc_number,
            category=category,
            level=level,
            department=department,
            author=author,
            created_at=self._now_iso(),
            sections=[Section(id=short_id(), title=t, content=c) for t, c in DEFAULT_SECTIONS],
            final_approver=FinalApprover(name=approver_name or self._default_approver),
        )
        return self._register(doc, actor=author)

    def create_from_template(
        self,
        template_id: str,
        *,
        doc_number: Optional[str] = None,
        author: str = "User",
        approver_name: Optional[str] = None,
    ) -> Document:
        entry = self._templates.require(template_id)
        self._categories.ensure_exists(entry.document.category)
        doc_number = self._new_doc_number(doc_number)
        doc = Document.from_template(
            entry.document,
            new_id=new_id(),
            doc_number=doc_number,
            author=author,
            approver_name=approver_name or entry.document.final_approver.name or self._default_approver,
            created_at=self._now_iso(),
        )
        # fresh section ids; template sections are shared by every copy
        for s in doc.sections:
            s.id = short_id()
        return self._register(doc, actor=author, metadata={"template_id": template_id})

    def create_revision(self, doc_id: str, revision_type: RevisionType, *, author: str = "User") -> Document:
        """Spawn a new version from an approved document; the source stays untouched."""
        source = self._require(doc_id)
        action, audit_action = _REVISION_ACTIONS[RevisionType(revision_type)]
        try:
            transition = self._engine.transition(source.status, action, GuardContext.for_document(source))
        except DocumentsError as ex:
            self._log_rejected(action, author, source, ex)
            raise

        now = self._clock()
        version = next_version(source.version, RevisionType(revision_type))
        if revision_type == RevisionType.MINOR:
            description = "Administrative correction / typo fix"
        else:
            description = f"Revision based on version {source.version}"
        entry = RevisionEntry(
            id=new_id("rev-"),
            version=source.version,
            date=dt.date_iso(now),
            description=description,
            author=author,
        )
        doc = source.as_revision(
            new_id=new_id(),
            version=version,
            status=transition.target,
            entry=entry,
            created_at=dt.utc_now_iso(now),
        )
        earlier = [d.id for d in self._docs.values() if d.revision_of == source.id]
        self._docs[doc.id] = doc
        logger.info("Revision %s v%s -> v%s (%s)", doc.doc_number, source.version, version, transition.target.value)
        metadata = {"source_id": source.id, "source_version": source.version}
        if earlier:
            logger.warning("Version %s of %s was already revised (%s)", source.version, doc.doc_number, ", ".join(earlier))
            self._log(audit_action, author, doc, metadata={**metadata, "earlier_revisions": earlier},
                      severity=AuditSeverity.WARNING, reason=f"v{source.version} already has a revision")
        else:
            self._log(audit_action, author, doc, metadata=metadata)
        self._notify(transition, doc)
        return doc.copy()

    def save_as_template(self, doc_id: str, *, description: str = "", actor: str = "User") -> TemplateEntry:
        doc = self._require(doc_id)
        template = doc.as_template(new_id=new_id("tpl-"), created_at=self._now_iso())
        entry = self._templates.add_user_template(template, description=description)
        self._log(AuditAction.TEMPLATE_SAVED, actor, doc, metadata={"template_id": template.id})
        return entry

    def delete_document(self, doc_id: str, *, actor: str = "User") -> None:
        doc = self._require(doc_id)
        del self._docs[doc_id]
        logger.info("Document deleted: %s (%s)", doc.doc_number, doc_id)
        self._log(AuditAction.DOCUMENT_DELETED, actor, doc)

    # ------------------------------------------------------------------ #
    #  Title / metadata                                                  #
    # ------------------------------------------------------------------ #
    def update_title(self, doc_id: str, title: str, *, actor: str = "User") -> None:
        doc = self._editable(doc_id)
        title = self._clean_title(title)
        old = doc.title
        doc.title = title
        self._log(AuditAction.METADATA_UPDATED, actor, doc, changes={"title": {"old": old, "new": title}})

    def update_metadata(
        self,
        doc_id: str,
        *,
        doc_number: Optional[str] = None,
        category: Optional[str] = None,
        level: Optional[DocLevel] = None,
        department: Optional[str] = None,
        author: Optional[str] = None,
        actor: str = "User",
    ) -> None:
        """Update the given fields only; all values are validated before any is written."""
        doc = self._editable(doc_id)
        changes: Dict[str, Dict[str, str]] = {}

        if doc_number is not None:
            doc_number = doc_number.strip()
            if not doc_number:
                raise ValidationError("Document number must not be empty.")
            if doc.revision_of is None:
                self._ensure_unique_number(doc_number, exclude_id=doc.id)
        if category is not None:
            self._categories.ensure_exists(category)
        if level is not None:
            level = DocLevel(level)

        for name, value in (("doc_number", doc_number), ("category", category), ("level", level),
                            ("department", department), ("author", author)):
            if value is None:
                continue
            old = getattr(doc, name)
            if old != value:
                setattr(doc, name, value)
                changes[name] = {"old": str(getattr(old, "value", old)), "new": str(getattr(value, "value", value))}

        if changes:
            self._log(AuditAction.METADATA_UPDATED, actor, doc, changes=changes)

    # ------------------------------------------------------------------ #
    #  Sections                                                          #
    # ------------------------------------------------------------------ #
    def add_section(
        self,
        doc_id: str,
        title: str = "New Section",
        content: str = "",
        *,
        index: Optional[int] = None,
        actor: str = "User",
    ) -> Section:
        doc = self._editable(doc_id)
        if index is not None and not 0 <= index <= len(doc.sections):
            raise ValidationError(f"Section index {index} is out of range.")
        section = Section(id=short_id(), title=title, content=content)
        if index is None:
            doc.sections.append(section)
        else:
            doc.sections.insert(index, section)
        self._log(AuditAction.CONTENT_UPDATED, actor, doc, metadata={"section_added": section.id})
        return section.copy()

    def update_section(
        self,
        doc_id: str,
        section_id: str,
        *,
        title: Optional[str] = None,
        content: Optional[str] = None,
        actor: str = "User",
    ) -> None:
        doc = self._editable(doc_id)
        section = self._section(doc, section_id)
        if title is not None:
            section.title = title
        if content is not None:
            section.content = content
        self._log(AuditAction.CONTENT_UPDATED, actor, doc, metadata={"section_updated": section_id})

    def remove_section(self, doc_id: str, section_id: str, *, actor: str = "User") -> None:
        doc = self._editable(doc_id)
        section = self._section(doc, section_id)
        doc.sections.remove(section)
        self._log(AuditAction.CONTENT_UPDATED, actor, doc, metadata={"section_removed": section_id})

    def move_section(self, doc_id: str, section_id: str, new_index: int, *, actor: str = "User") -> None:
        doc = self._editable(doc_id)
        section = self._section(doc, section_id)
        if not 0 <= new_index < len(doc.sections):
            raise ValidationError(f"Section index {new_index} is out of range.")
        doc.sections.remove(section)
        doc.sections.insert(new_index, section)
        self._log(AuditAction.CONTENT_UPDATED, actor, doc, metadata={"section_moved": section_id, "index": new_index})

    def replace_sections(
        self,
        doc_id: str,
        sections: Sequence[OutlineSection],
        *,
        actor: str = "User",
    ) -> List[Section]:
        """Swap the whole section list in one step (AI outline generation)."""
        doc = self._editable(doc_id)
        if not sections:
            raise ValidationError("A document needs at least one section.")
        new_sections = [Section(id=short_id(), title=s.title, content=s.content) for s in sections]
        doc.sections = new_sections
        self._log(AuditAction.CONTENT_UPDATED, actor, doc, metadata={"sections_replaced": len(new_sections)})
        return [s.copy() for s in new_sections]

    def insert_variable_token(self, doc_id: str, section_id: str, key: str, *, actor: str = "User") -> str:
        """Append ``{{KEY}}`` to the section text; returns the new raw text."""
        if not key:
            raise ValidationError("Variable key must not be empty.")
        doc = self._editable(doc_id)
        section = self._section(doc, section_id)
        section.content = substitution.append_variable_token(section.content, key)
        self._log(AuditAction.CONTENT_UPDATED, actor, doc, metadata={"variable_inserted": key})
        return section.content

    def insert_reference_token(self, doc_id: str, section_id: str, target_id: str, *, actor: str = "User") -> str:
        """Append ``[[REF:id]]`` to the section text; returns the new raw text."""
        doc = self._editable(doc_id)
        section = self._section(doc, section_id)
        if target_id == doc_id:
            raise ValidationError("A document cannot reference itself.")
        if target_id not in self._docs:
            raise ValidationError(f"Referenced document {target_id!r} does not exist.")
        section.content = substitution.append_reference_token(section.content, target_id)
        self._log(AuditAction.CONTENT_UPDATED, actor, doc, metadata={"reference_inserted": target_id})
        return section.content

    # ------------------------------------------------------------------ #
    #  Roster                                                            #
    # ------------------------------------------------------------------ #
    def add_reviewer(self, doc_id: str, name: str, email: Optional[str] = None, *, actor: str = "User") -> Reviewer:
        doc = self._roster_editable(doc_id)
        name = (name or "").strip()
        if not name:
            raise ValidationError("Reviewer name must not be empty.")
        reviewer = Reviewer(id=short_id(), name=name, email=(email or "").strip() or None)
        doc.reviewers.append(reviewer)
        self._log(AuditAction.ROSTER_UPDATED, actor, doc, changes={"reviewer_added": name})
        return reviewer.copy()

    def remove_reviewer(self, doc_id: str, reviewer_id: str, *, actor: str = "User") -> None:
        doc = self._roster_editable(doc_id)
        reviewer = doc.find_reviewer(reviewer_id)
        if reviewer is None:
            raise ValidationError(f"Reviewer {reviewer_id!r} is not on the roster.")
        doc.reviewers.remove(reviewer)
        self._log(AuditAction.ROSTER_UPDATED, actor, doc, changes={"reviewer_removed": reviewer.name})

    def set_final_approver(self, doc_id: str, name: str, *, actor: str = "User") -> None:
        doc = self._roster_editable(doc_id)
        name = (name or "").strip()
        if not name:
            raise ValidationError("Final approver name must not be empty.")
        old = doc.final_approver.name
        doc.final_approver = FinalApprover(name=name)
        self._log(AuditAction.ROSTER_UPDATED, actor, doc, changes={"final_approver": {"old": old, "new": name}})

    # ------------------------------------------------------------------ #
    #  Lifecycle                                                         #
    # ------------------------------------------------------------------ #
    def start_review(self, doc_id: str, *, actor: str = "User") -> Document:
        return self._run(doc_id, DocumentAction.START_REVIEW, actor=actor)

    def reviewer_sign_off(
        self,
        doc_id: str,
        reviewer_id: str,
        *,
        approve: bool,
        note: Optional[str] = None,
    ) -> Document:
        action = DocumentAction.REVIEWER_APPROVE if approve else DocumentAction.REVIEWER_REJECT
        doc = self._require(doc_id)
        signer = doc.find_reviewer(reviewer_id)
        return self._run(
            doc_id, action,
            actor=signer.name if signer else reviewer_id,
            reviewer_id=reviewer_id,
            note=note,
        )

    def submit_for_final_approval(self, doc_id: str, *, actor: str = "User") -> Document:
        return self._run(doc_id, DocumentAction.SUBMIT_FINAL_APPROVAL, actor=actor)

    def approver_sign_off(self, doc_id: str, *, approve: bool, note: Optional[str] = None) -> Document:
        action = DocumentAction.APPROVER_APPROVE if approve else DocumentAction.APPROVER_REJECT
        doc = self._require(doc_id)
        return self._run(doc_id, action, actor=doc.final_approver.name or "Approver", note=note)

    def _run(
        self,
        doc_id: str,
        action: DocumentAction,
        *,
        actor: str,
        reviewer_id: Optional[str] = None,
        note: Optional[str] = None,
    ) -> Document:
        doc = self._require(doc_id)
        guard = GuardContext.for_document(doc, reviewer_id=reviewer_id)
        try:
            transition = self._engine.transition(doc.status, action, guard)
        except DocumentsError as ex:
            self._log_rejected(action, actor, doc, ex)
            raise

        old_status = doc.status
        self._apply(doc, transition, reviewer_id=reviewer_id, note=note)
        doc.status = transition.target

        if action in (DocumentAction.REVIEWER_APPROVE, DocumentAction.REVIEWER_REJECT):
            self._log(AuditAction.REVIEWER_SIGNED, actor, doc, reason=note,
                      metadata={"decision": "approve" if action == DocumentAction.REVIEWER_APPROVE else "reject"})
        elif action in (DocumentAction.APPROVER_APPROVE, DocumentAction.APPROVER_REJECT):
            self._log(AuditAction.APPROVER_SIGNED, actor, doc, reason=note,
                      metadata={"decision": "approve" if action == DocumentAction.APPROVER_APPROVE else "reject"})
        if old_status != doc.status:
            logger.info("Status %s: %s -> %s (%s)", doc.doc_number, old_status.value, doc.status.value, action.value)
            if self._audit:
                self._audit.log_status_changed(doc=doc, actor=actor, old_status=old_status.value, reason=note)

        self._notify(transition, doc)
        return doc.copy()

    def _apply(self, doc: Document, transition: Transition, *, reviewer_id: Optional[str], note: Optional[str]) -> None:
        now = self._clock()
        for effect in transition.effects:
            if effect == Effect.RESET_REVIEWER_DECISIONS:
                for r in doc.reviewers:
                    r.reset()
            elif effect == Effect.STAMP_REVIEWER:
                reviewer = doc.find_reviewer(reviewer_id or "")
                reviewer.status = DecisionStatus.APPROVED
                reviewer.date = dt.date_iso(now)
                reviewer.note = note
            elif effect == Effect.RESET_ALL_DECISIONS:
                for r in doc.reviewers:
                    r.reset()
                doc.final_approver.reset()
                doc.approval_log = None
            elif effect == Effect.STAMP_APPROVER:
                doc.final_approver.status = DecisionStatus.APPROVED
                doc.final_approver.date = dt.date_iso(now)
                doc.final_approver.note = note
            elif effect == Effect.WRITE_APPROVAL_LOG:
                doc.approval_log = ApprovalLog(
                    approver_name=doc.final_approver.name,
                    reviewer_names=tuple(r.name for r in doc.reviewers),
                    timestamp=dt.utc_now_iso(now),
                    integrity_hash=doc.content_fingerprint(),
                )

    def _notify(self, transition: Transition, doc: Document) -> None:
        for effect in transition.effects:
            if effect == Effect.NOTIFY_REVIEWERS:
                self._notifier.notify_reviewers(doc.copy(), [r.copy() for r in doc.reviewers])
            elif effect == Effect.NOTIFY_APPROVER:
                self._notifier.notify_approver(doc.copy(), doc.final_approver.copy())

    # ------------------------------------------------------------------ #
    #  Helpers                                                           #
    # ------------------------------------------------------------------ #
    def _require(self, doc_id: str) -> Document:
        doc = self._docs.get(doc_id)
        if doc is None:
            raise DocumentNotFoundError(f"Document {doc_id!r} not found.")
        return doc

    def _editable(self, doc_id: str) -> Document:
        doc = self._require(doc_id)
        self._policy.ensure_editable(doc)
        return doc

    def _roster_editable(self, doc_id: str) -> Document:
        doc = self._require(doc_id)
        self._policy.ensure_roster_editable(doc)
        return doc

    @staticmethod
    def _section(doc: Document, section_id: str) -> Section:
        section = doc.find_section(section_id)
        if section is None:
            raise ValidationError(f"Section {section_id!r} not found in '{doc.title}'.")
        return section

    @staticmethod
    def _clean_title(title: str) -> str:
        title = (title or "").strip()
        if not title:
            raise ValidationError("Title must not be empty.")
        return title

    def _default_category(self) -> str:
        cats = self._categories.list()
        if not cats:
            raise ValidationError("No categories defined.")
        return cats[0].id

    def _new_doc_number(self, doc_number: Optional[str]) -> str:
        if doc_number is None:
            # skip generated numbers a user already took by hand
            number = self._doc_numbers.next_id(now=self._clock())
            while self._number_taken(number):
                number = self._doc_numbers.next_id(now=self._clock())
            return number
        doc_number = doc_number.strip()
        if not doc_number:
            raise ValidationError("Document number must not be empty.")
        self._ensure_unique_number(doc_number)
        return doc_number

    def _number_taken(self, doc_number: str, exclude_id: Optional[str] = None) -> bool:
        return any(d.doc_number == doc_number and d.id != exclude_id for d in self._docs.values())

    def _ensure_unique_number(self, doc_number: str, exclude_id: Optional[str] = None) -> None:
        if self._number_taken(doc_number, exclude_id):
            raise ValidationError(f"Document number {doc_number!r} is already in use.")

    def _now_iso(self) -> str:
        return dt.utc_now_iso(self._clock())

    def _register(self, doc: Document, *, actor: str, metadata: Optional[dict] = None) -> Document:
        self._docs[doc.id] = doc
        logger.info("Document created: %s '%s' (%s)", doc.doc_number, doc.title, doc.id)
        self._log(AuditAction.DOCUMENT_CREATED, actor, doc, metadata=metadata)
        return doc.copy()

    def _log(self, action: AuditAction, actor: str, doc: Document, **kwargs) -> None:
        if self._audit:
            self._audit.log_action(action=action, actor=actor, doc=doc, **kwargs)

    def _log_rejected(self, action: DocumentAction, actor: str, doc: Document, ex: Exception) -> None:
        logger.warning("Rejected %s on %s: %s", action.value, doc.doc_number, ex)
        if self._audit:
            self._audit.log_action(
                action=AuditAction.VALIDATION_FAILED,
                actor=actor,
                doc=doc,
                severity=AuditSeverity.WARNING,
                result="rejected",
                error_message=str(ex),
                metadata={"action": action.value},
            )
