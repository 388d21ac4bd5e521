"""
Document domain models for the doccontrol feature.

Keeps the data layer independent from UI and export details. Copies are made
through explicit constructors (``copy``, ``from_template``, ``as_revision``,
``as_template``) that name every field carried over and every field reset.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from doccontrol.enum.decision_status import DecisionStatus
from doccontrol.enum.doc_level import DocLevel
from doccontrol.enum.document_status import DocumentStatus


@dataclass
class Section:
    id: str
    title: str
    content: str = ""

    def copy(self) -> "Section":
        return Section(id=self.id, title=self.title, content=self.content)


@dataclass
class Reviewer:
    id: str
    name: str
    email: Optional[str] = None
    status: DecisionStatus = DecisionStatus.PENDING
    date: Optional[str] = None
    note: Optional[str] = None

    def reset(self) -> None:
        self.status = DecisionStatus.PENDING
        self.date = None
        self.note = None

    def copy(self) -> "Reviewer":
        return Reviewer(id=self.id, name=self.name, email=self.email,
                        status=self.status, date=self.date, note=self.note)


@dataclass
class FinalApprover:
    name: str
    status: DecisionStatus = DecisionStatus.PENDING
    date: Optional[str] = None
    note: Optional[str] = None

    def reset(self) -> None:
        self.status = DecisionStatus.PENDING
        self.date = None
        self.note = None

    def copy(self) -> "FinalApprover":
        return FinalApprover(name=self.name, status=self.status, date=self.date, note=self.note)


@dataclass(frozen=True)
class RevisionEntry:
    """History row; ``version`` is the label the document held before the revision."""

    id: str
    version: str
    date: str
    description: str
    author: str


@dataclass(frozen=True)
class ApprovalLog:
    """Written once, on final approval."""

    approver_name: str
    reviewer_names: Tuple[str, ...]
    timestamp: str
    integrity_hash: str


@dataclass
class Document:
    """
    Aggregate root for an authored document.

    Notes:
    - 'version'      holds the MAJOR.MINOR label like "1.3"
    - 'doc_number'   user-assigned, unique across non-revision documents
    - 'revision_of'  id of the approved document this one was spun off from
    - 'revisions'    append-only history, one entry per spun-off version
    """

    # Identity / classification
    id: str
    title: str
    doc_number: str
    category: str
    level: DocLevel = DocLevel.PROCEDURE
    department: str = ""
    author: str = ""

    # Lifecycle
    version: str = "1.0"
    status: DocumentStatus = DocumentStatus.DRAFT
    created_at: str = ""

    # Content
    sections: List[Section] = field(default_factory=list)

    # People
    reviewers: List[Reviewer] = field(default_factory=list)
    final_approver: FinalApprover = field(default_factory=lambda: FinalApprover(name=""))

    # History
    revisions: List[RevisionEntry] = field(default_factory=list)
    approval_log: Optional[ApprovalLog] = None

    # Flags
    is_template: bool = False
    revision_of: Optional[str] = None

    # ------------------------------------------------------------------ #
    #  Lookups                                                           #
    # ------------------------------------------------------------------ #
    def find_section(self, section_id: str) -> Optional[Section]:
        return next((s for s in self.sections if s.id == section_id), None)

    def find_reviewer(self, reviewer_id: str) -> Optional[Reviewer]:
        return next((r for r in self.reviewers if r.id == reviewer_id), None)

    def all_reviewers_approved(self) -> bool:
        return bool(self.reviewers) and all(r.status == DecisionStatus.APPROVED for r in self.reviewers)

    def content_fingerprint(self) -> str:
        """SHA-256 over title and ordered sections; stamped into the approval log."""
        h = hashlib.sha256()
        h.update(self.title.encode("utf-8"))
        for s in self.sections:
            h.update(b"\x1e")
            h.update(s.id.encode("utf-8"))
            h.update(b"\x1f")
            h.update(s.title.encode("utf-8"))
            h.update(b"\x1f")
            h.update(s.content.encode("utf-8"))
        return h.hexdigest()

    # ------------------------------------------------------------------ #
    #  Explicit copy constructors                                        #
    # ------------------------------------------------------------------ #
    def copy(self) -> "Document":
        """Detached deep copy with identical identity (used for snapshots)."""
        return Document(
            id=self.id,
            title=self.title,
            doc_number=self.doc_number,
            category=self.category,
            level=self.level,
            department=self.department,
            author=self.author,
            version=self.version,
            status=self.status,
            created_at=self.created_at,
            sections=[s.copy() for s in self.sections],
            reviewers=[r.copy() for r in self.reviewers],
            final_approver=self.final_approver.copy(),
            revisions=list(self.revisions),
            approval_log=self.approval_log,
            is_template=self.is_template,
            revision_of=self.revision_of,
        )

    @classmethod
    def from_template(
        cls,
        template: "Document",
        *,
        new_id: str,
        doc_number: str,
        author: str,
        approver_name: str,
        created_at: str,
    ) -> "Document":
        """
        New draft from a template.

        Carried: title, category, level, department, sections (copied).
        Reset:   id, doc_number, version "1.0", status, roster, history, approval log.
        """
        return cls(
            id=new_id,
            title=template.title,
            doc_number=doc_number,
            category=template.category,
            level=template.level,
            department=template.department,
            author=author,
            version="1.0",
            status=DocumentStatus.DRAFT,
            created_at=created_at,
            sections=[s.copy() for s in template.sections],
            reviewers=[],
            final_approver=FinalApprover(name=approver_name),
            revisions=[],
            approval_log=None,
            is_template=False,
            revision_of=None,
        )

    def as_revision(
        self,
        *,
        new_id: str,
        version: str,
        status: DocumentStatus,
        entry: RevisionEntry,
        created_at: str,
    ) -> "Document":
        """
        New version spun off from this (approved) document.

        Carried: title, doc_number, category, level, department, author,
                 sections (copied), approver name, history (+ ``entry``).
        Reset:   id, version, status, reviewers (emptied), approver decision,
                 approval log.
        """
        return Document(
            id=new_id,
            title=self.title,
            doc_number=self.doc_number,
            category=self.category,
            level=self.level,
            department=self.department,
            author=self.author,
            version=version,
            status=status,
            created_at=created_at,
            sections=[s.copy() for s in self.sections],
            reviewers=[],
            final_approver=FinalApprover(name=self.final_approver.name),
            revisions=[*self.revisions, entry],
            approval_log=None,
            is_template=False,
            revision_of=self.id,
        )

    def as_template(self, *, new_id: str, created_at: str) -> "Document":
        """
        Reusable template from this document.

        Carried: title, doc_number, category, level, department, author, sections.
        Reset:   id, version, status, roster, history, approval log.
        """
        return Document(
            id=new_id,
            title=self.title,
            doc_number=self.doc_number,
            category=self.category,
            level=self.level,
            department=self.department,
            author=self.author,
            version="1.0",
            status=DocumentStatus.DRAFT,
            created_at=created_at,
            sections=[s.copy() for s in self.sections],
            reviewers=[],
            final_approver=FinalApprover(name=self.final_approver.name),
            revisions=[],
            approval_log=None,
            is_template=True,
            revision_of=None,
        )
