"""
AI-assisted authoring.

Collaborator calls run on a worker thread and are bounded by an explicit
timeout. Stored content changes only after a call returned a usable result;
any failure leaves the document as it was.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from dataclasses import dataclass
from typing import Callable, List, Optional, Type, TypeVar

from doccontrol.adapters.content_generator import ContentGenerator
from doccontrol.dto.audit_event import AuditAction
from doccontrol.dto.generated_outline import GenerationRequest
from doccontrol.enum.ai_options import ApplyMode, RefineAction, Tone
from doccontrol.exceptions.errors import DocumentsError, GenerationError, RefineError, ValidationError
from doccontrol.models.document_models import Section
from doccontrol.services.audit_service import AuditService
from doccontrol.services.document_store import DocumentStore
from doccontrol.services.request_guard import RequestGuard

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RefinementProposal:
    """Refined text awaiting the author's decision; nothing is stored yet."""

    doc_id: str
    section_id: str
    action: RefineAction
    original: str
    result: str


class AuthoringService:
    def __init__(
        self,
        *,
        store: DocumentStore,
        generator: ContentGenerator,
        timeout_seconds: float = 90.0,
        audit: Optional[AuditService] = None,
        guard: Optional[RequestGuard] = None,
        max_workers: int = 2,
    ) -> None:
        self._store = store
        self._generator = generator
        self._timeout = timeout_seconds
        self._audit = audit
        self._guard = guard or RequestGuard()
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="authoring")

    @property
    def guard(self) -> RequestGuard:
        return self._guard

    def shutdown(self) -> None:
        self._pool.shutdown(wait=False, cancel_futures=True)

    # ------------------------------------------------------------------ #
    #  Outline generation                                                #
    # ------------------------------------------------------------------ #
    def generate_outline(
        self,
        doc_id: str,
        topic: str,
        *,
        tone: Tone = Tone.STANDARD,
        guidance: Optional[str] = None,
        actor: str = "User",
    ) -> List[Section]:
        """Generate sections for *doc_id* and replace its section list on success."""
        topic = (topic or "").strip()
        if not topic:
            raise ValidationError("Enter a topic before generating content.")
        doc = self._store.get(doc_id)
        self._store.edit_policy.ensure_editable(doc)

        extra = {"guidance": guidance} if guidance else {}
        request = GenerationRequest(topic=topic, level=doc.level, category=doc.category, tone=tone, **extra)

        with self._guard.hold(doc_id, "generation request"):
            try:
                outline = self._call(lambda: self._generator.generate(request), GenerationError, "Generation")
            except GenerationError as ex:
                self._log_failure(AuditAction.CONTENT_GENERATED, actor, doc_id, ex)
                raise
            sections = self._store.replace_sections(doc_id, outline.sections, actor=actor)

        logger.info("Generated %d sections for %s", len(sections), doc_id)
        self._log(AuditAction.CONTENT_GENERATED, actor, doc_id, {"topic": topic, "sections": len(sections)})
        return sections

    # ------------------------------------------------------------------ #
    #  Refinement                                                        #
    # ------------------------------------------------------------------ #
    def refine_section(
        self,
        doc_id: str,
        section_id: str,
        action: RefineAction,
        *,
        actor: str = "User",
    ) -> RefinementProposal:
        """Ask the generator for a refinement; the section itself is not changed."""
        action = RefineAction(action)
        doc = self._store.get(doc_id)
        self._store.edit_policy.ensure_editable(doc)
        section = doc.find_section(section_id)
        if section is None:
            raise ValidationError(f"Section {section_id!r} not found in '{doc.title}'.")
        if not section.content.strip():
            raise ValidationError("The section is empty; nothing to refine.")

        with self._guard.hold(doc_id, "refinement request"):
            try:
                result = self._call(lambda: self._generator.refine(section.content, action), RefineError, "Refinement")
            except RefineError as ex:
                self._log_failure(AuditAction.CONTENT_REFINED, actor, doc_id, ex)
                raise
        return RefinementProposal(doc_id=doc_id, section_id=section_id, action=action,
                                  original=section.content, result=result)

    def apply_refinement(
        self,
        proposal: RefinementProposal,
        mode: ApplyMode = ApplyMode.REPLACE,
        *,
        actor: str = "User",
    ) -> str:
        """
        Write an accepted proposal back; returns the new raw section text.

        Rejected with ValidationError when the section was edited after the
        proposal was made, so a later edit is never overwritten.
        """
        doc = self._store.get(proposal.doc_id)
        section = doc.find_section(proposal.section_id)
        if section is None:
            raise ValidationError(f"Section {proposal.section_id!r} no longer exists.")
        if section.content != proposal.original:
            raise ValidationError("The section changed since the refinement was requested.")
        if ApplyMode(mode) == ApplyMode.APPEND:
            content = f"{section.content}\n\n{proposal.result}"
        else:
            content = proposal.result
        self._store.update_section(proposal.doc_id, proposal.section_id, content=content, actor=actor)
        self._log(AuditAction.CONTENT_REFINED, actor, proposal.doc_id,
                  {"section_id": proposal.section_id, "action": proposal.action.value, "mode": ApplyMode(mode).value})
        return content

    # ------------------------------------------------------------------ #
    #  Helpers                                                           #
    # ------------------------------------------------------------------ #
    def _call(self, fn: Callable[[], T], error: Type[DocumentsError], what: str) -> T:
        future = self._pool.submit(fn)
        try:
            return future.result(timeout=self._timeout)
        except FutureTimeout as ex:
            future.cancel()
            raise error(f"{what} timed out after {self._timeout:g} seconds.") from ex
        except DocumentsError as ex:
            if isinstance(ex, error):
                raise
            raise error(str(ex)) from ex
        except Exception as ex:
            logger.exception("%s failed", what)
            raise error(f"{what} failed: {ex}") from ex

    def _log(self, action: AuditAction, actor: str, doc_id: str, metadata: dict) -> None:
        if self._audit:
            self._audit.log_action(action=action, actor=actor, doc=self._store.get(doc_id), metadata=metadata)

    def _log_failure(self, action: AuditAction, actor: str, doc_id: str, ex: Exception) -> None:
        if self._audit:
            self._audit.log_failure(action=action, actor=actor, doc=self._store.get(doc_id), error_message=str(ex))
