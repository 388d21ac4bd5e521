"""Shared fixtures and in-test fakes for the doccontrol tests."""
from __future__ import annotations

import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import pytest

from core.logging.logic.logger import Logger
from doccontrol.dto.export_result import ExportArtifact
from doccontrol.dto.generated_outline import GeneratedOutline, GenerationRequest, OutlineSection
from doccontrol.dto.render_view import RenderedDocumentView
from doccontrol.enum.ai_options import RefineAction
from doccontrol.enum.revision_type import RevisionType
from doccontrol.exceptions.errors import ExportError, GenerationError, RefineError
from doccontrol.logic.id_generator import IdGenerator
from doccontrol.models.document_models import Document, FinalApprover, Reviewer
from doccontrol.services.audit_service import AuditService
from doccontrol.services.category_registry import CategoryRegistry
from doccontrol.services.document_store import DocumentStore
from doccontrol.services.policy.edit_policy import EditPolicy
from doccontrol.services.template_library import TemplateLibrary
from doccontrol.services.variable_profile_store import VariableProfileStore

FIXED_NOW = datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)


# --------------------------------------------------------------------------- #
#  Fakes
# --------------------------------------------------------------------------- #
class RecordingNotifier:
    def __init__(self) -> None:
        self.reviewer_calls: List[Tuple[str, List[str]]] = []
        self.approver_calls: List[Tuple[str, str]] = []

    def notify_reviewers(self, doc: Document, reviewers: Sequence[Reviewer]) -> None:
        self.reviewer_calls.append((doc.id, [r.name for r in reviewers]))

    def notify_approver(self, doc: Document, approver: FinalApprover) -> None:
        self.approver_calls.append((doc.id, approver.name))


class FakeGenerator:
    """Scripted ContentGenerator; optional delay and failure switches."""

    def __init__(
        self,
        sections: Optional[List[Tuple[str, str]]] = None,
        refined: str = "Refined text.",
        fail: bool = False,
        delay: float = 0.0,
    ) -> None:
        self.sections = sections if sections is not None else [("1.0 Purpose", "Generated purpose."),
                                                                ("2.0 Scope", "Generated scope.")]
        self.refined = refined
        self.fail = fail
        self.delay = delay
        self.requests: List[GenerationRequest] = []
        self.refine_calls: List[Tuple[str, RefineAction]] = []
        self.release = threading.Event()

    def _wait(self) -> None:
        if self.delay:
            self.release.wait(self.delay)

    def generate(self, request: GenerationRequest) -> GeneratedOutline:
        self.requests.append(request)
        self._wait()
        if self.fail:
            raise GenerationError("model unavailable")
        return GeneratedOutline(sections=tuple(OutlineSection(title=t, content=c) for t, c in self.sections))

    def refine(self, text: str, action: RefineAction) -> str:
        self.refine_calls.append((text, action))
        self._wait()
        if self.fail:
            raise RefineError("model unavailable")
        return self.refined


class FakeExporter:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: List[Tuple[RenderedDocumentView, str]] = []

    def export(self, view: RenderedDocumentView, filename: str) -> ExportArtifact:
        self.calls.append((view, filename))
        if self.fail:
            raise ExportError("renderer not ready")
        return ExportArtifact(path=Path("/virtual") / filename, filename=filename, size_bytes=1234)


# --------------------------------------------------------------------------- #
#  Fixtures
# --------------------------------------------------------------------------- #
@pytest.fixture
def central_logger() -> Logger:
    log = Logger()
    log.configure(level="INFO", db_path=None, max_entries=5000)
    log.clear_logs()
    yield log
    log.clear_logs()


@pytest.fixture
def audit(central_logger) -> AuditService:
    return AuditService(central_logger)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def categories() -> CategoryRegistry:
    return CategoryRegistry()


@pytest.fixture
def profiles() -> VariableProfileStore:
    return VariableProfileStore()


@pytest.fixture
def templates() -> TemplateLibrary:
    return TemplateLibrary()


def make_store(categories, templates, audit, notifier, discipline: str = "strict") -> DocumentStore:
    return DocumentStore(
        categories=categories,
        templates=templates,
        edit_policy=EditPolicy(discipline),
        audit=audit,
        notifier=notifier,
        doc_numbers=IdGenerator("DOC", "{YYYY}-{seq:03d}"),
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def store(categories, templates, audit, notifier) -> DocumentStore:
    return make_store(categories, templates, audit, notifier)


@pytest.fixture
def permissive_store(categories, templates, audit, notifier) -> DocumentStore:
    return make_store(categories, templates, audit, notifier, discipline="permissive")


def approve_document(store: DocumentStore, doc_id: str, reviewers: Sequence[str] = ("Alice",)) -> Document:
    """Drive a draft through review and final approval."""
    ids = [store.add_reviewer(doc_id, name).id for name in reviewers]
    store.start_review(doc_id)
    for rid in ids:
        store.reviewer_sign_off(doc_id, rid, approve=True)
    store.submit_for_final_approval(doc_id)
    return store.approver_sign_off(doc_id, approve=True)


@pytest.fixture
def approved_doc(store) -> Document:
    doc = store.create_blank(title="Document Control", doc_number="QP-001")
    return approve_document(store, doc.id)


def revise(store: DocumentStore, doc_id: str, kind: RevisionType) -> Document:
    return store.create_revision(doc_id, kind, author="Editor")
