"""
Rendering view and export.

``build_view`` resolves variables and references at render time and parses
the result into presentation blocks; stored section text is never touched.
``export`` hands the view to a DocumentExporter under the standard filename.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional

from core.helpers import date_time_helper as dt
from doccontrol.adapters.pdf_exporter import DocumentExporter
from doccontrol.dto.audit_event import AuditAction, AuditSeverity
from doccontrol.dto.export_result import ExportResult
from doccontrol.dto.render_view import RenderedDocumentView, RenderedSection, SignatureRow
from doccontrol.enum.decision_status import DecisionStatus
from doccontrol.exceptions.errors import ExportError
from doccontrol.logic import substitution
from doccontrol.logic.filenames import standard_filename
from doccontrol.logic.markup import parse_blocks
from doccontrol.models.document_models import Document
from doccontrol.services.audit_service import AuditService
from doccontrol.services.category_registry import CategoryRegistry
from doccontrol.services.document_store import DocumentStore
from doccontrol.services.request_guard import RequestGuard
from doccontrol.services.variable_profile_store import VariableProfileStore

logger = logging.getLogger(__name__)


def signature_rows(doc: Document) -> List[SignatureRow]:
    rows = [SignatureRow(role="Author", name=doc.author, date=doc.created_at[:10], signed=True)]
    rows += [
        SignatureRow(role="Reviewer", name=r.name, date=r.date or "", signed=r.status == DecisionStatus.APPROVED)
        for r in doc.reviewers
    ]
    approver = doc.final_approver
    rows.append(SignatureRow(role="Approver", name=approver.name, date=approver.date or "",
                             signed=approver.status == DecisionStatus.APPROVED))
    return rows


class ExportService:
    def __init__(
        self,
        *,
        store: DocumentStore,
        profiles: VariableProfileStore,
        categories: CategoryRegistry,
        exporter: DocumentExporter,
        audit: Optional[AuditService] = None,
        guard: Optional[RequestGuard] = None,
        clock: Callable[[], datetime] = dt.utc_now,
    ) -> None:
        self._store = store
        self._profiles = profiles
        self._categories = categories
        self._exporter = exporter
        self._audit = audit
        self._guard = guard or RequestGuard()
        self._clock = clock

    @property
    def guard(self) -> RequestGuard:
        return self._guard

    def build_view(self, doc_id: str, profile_id: Optional[str] = None) -> RenderedDocumentView:
        doc = self._store.get(doc_id)
        profile = self._profiles.resolve(profile_id)
        known = self._store.all_documents()

        sections = []
        broken: List[str] = []
        for s in doc.sections:
            for ref in substitution.broken_references(s.content, known):
                if ref not in broken:
                    broken.append(ref)
            text = substitution.resolve(s.content, profile, known)
            sections.append(RenderedSection(id=s.id, title=substitution.resolve(s.title, profile, known),
                                            text=text, blocks=tuple(parse_blocks(text))))

        return RenderedDocumentView(
            doc_id=doc.id,
            title=substitution.resolve(doc.title, profile, known),
            doc_number=doc.doc_number,
            version=doc.version,
            status=doc.status.value,
            level_label=doc.level.label,
            category_name=self._categories.name_of(doc.category),
            department=doc.department,
            organisation=profile.variables.get("COMPANY_NAME") or profile.name,
            sections=tuple(sections),
            signatures=tuple(signature_rows(doc)),
            revisions=tuple(doc.revisions),
            approval_hash=doc.approval_log.integrity_hash if doc.approval_log else None,
            broken_references=tuple(broken),
        )

    def suggested_filename(self, doc_id: str, *, ext: str = "pdf") -> str:
        doc = self._store.get(doc_id)
        return standard_filename(doc, ext=ext, day=dt.local_date(self._clock()))

    def export(self, doc_id: str, profile_id: Optional[str] = None, *, actor: str = "User") -> ExportResult:
        """
        Render and export one document.

        Broken references do not block the export; they are logged and
        returned so the caller can show them.

        Raises:
            ExportError: the exporter failed; nothing is reported as exported.
            RequestInProgressError: an export of this document is still running.
        """
        with self._guard.hold(doc_id, "export"):
            view = self.build_view(doc_id, profile_id)
            filename = self.suggested_filename(doc_id)
            doc = self._store.get(doc_id)

            if view.broken_references:
                logger.warning("%s exported with broken references: %s",
                               view.doc_number, ", ".join(view.broken_references))
                self._log(AuditAction.BROKEN_REFERENCE, actor, doc, severity=AuditSeverity.WARNING,
                          metadata={"references": list(view.broken_references)})
            try:
                artifact = self._exporter.export(view, filename)
            except ExportError as ex:
                self._log_failure(actor, doc, ex)
                raise
            except Exception as ex:
                self._log_failure(actor, doc, ex)
                raise ExportError(f"Export of {filename} failed: {ex}") from ex

        self._log(AuditAction.DOCUMENT_EXPORTED, actor, doc,
                  metadata={"filename": artifact.filename, "size_bytes": artifact.size_bytes})
        return ExportResult(doc_id=doc_id, artifact=artifact, broken_references=view.broken_references)

    def _log(self, action: AuditAction, actor: str, doc: Document, **kwargs) -> None:
        if self._audit:
            self._audit.log_action(action=action, actor=actor, doc=doc, **kwargs)

    def _log_failure(self, actor: str, doc: Document, ex: Exception) -> None:
        logger.error("Export of %s failed: %s", doc.doc_number, ex)
        if self._audit:
            self._audit.log_failure(action=AuditAction.DOCUMENT_EXPORTED, actor=actor, doc=doc, error_message=str(ex))
