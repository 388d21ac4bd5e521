"""Doccontrol feature exceptions.

Every class carries its own ``notice_title`` so the presentation layer can
show a distinct notice per failure kind (see :func:`to_notice`).
"""
from __future__ import annotations

from doccontrol.dto.notice import Notice, NoticeLevel


class DocumentsError(Exception):
    """Base exception for the doccontrol feature."""

    notice_title = "Operation failed"
    notice_level = NoticeLevel.ERROR


class ValidationError(DocumentsError):
    """Input rejected before any state was touched (empty roster, duplicate docNumber, ...)."""

    notice_title = "Validation failed"
    notice_level = NoticeLevel.WARNING


class InvalidTransitionError(DocumentsError):
    """Action not defined for the current state, or signed by the wrong role."""

    notice_title = "Action not allowed"
    notice_level = NoticeLevel.WARNING


class DocumentLockedError(InvalidTransitionError):
    """Edit attempted on a document whose status does not permit editing."""

    notice_title = "Document is locked"


class DocumentNotFoundError(DocumentsError):
    notice_title = "Document not found"


class RequestInProgressError(DocumentsError):
    """A generate/refine/export request for the same document is still outstanding."""

    notice_title = "Please wait"
    notice_level = NoticeLevel.INFO


class GenerationError(DocumentsError):
    """Content generator failed or returned malformed/empty output."""

    notice_title = "AI generation failed"


class RefineError(DocumentsError):
    """Content refinement failed; the original section text is unchanged."""

    notice_title = "AI refinement failed"


class ExportError(DocumentsError):
    """The exporter could not produce the artifact."""

    notice_title = "Export failed"


def to_notice(exc: DocumentsError) -> Notice:
    return Notice(level=exc.notice_level, title=exc.notice_title, message=str(exc) or exc.notice_title)
