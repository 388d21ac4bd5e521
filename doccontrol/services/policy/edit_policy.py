"""
===============================================================================
Edit Policy – which lifecycle states permit editing
-------------------------------------------------------------------------------
Disciplines:
    strict      title, sections and metadata are writable only in DRAFT
    permissive  only APPROVED documents are locked

The chosen discipline is applied uniformly to title, sections and metadata.
The reviewer/approver roster is writable only in DRAFT under both, because
the review guards read it.
===============================================================================
"""
from __future__ import annotations

from enum import Enum

from doccontrol.enum.document_status import DocumentStatus
from doccontrol.exceptions.errors import DocumentLockedError, ValidationError
from doccontrol.models.document_models import Document


class EditDiscipline(str, Enum):
    STRICT = "strict"
    PERMISSIVE = "permissive"


class EditPolicy:
    def __init__(self, discipline: EditDiscipline | str = EditDiscipline.STRICT) -> None:
        try:
            self._discipline = EditDiscipline(str(getattr(discipline, "value", discipline)).strip().lower())
        except ValueError:
            raise ValidationError(f"Unknown edit discipline: {discipline!r}") from None

    @property
    def discipline(self) -> EditDiscipline:
        return self._discipline

    def is_editable(self, doc: Document) -> bool:
        if self._discipline == EditDiscipline.STRICT:
            return doc.status == DocumentStatus.DRAFT
        return doc.status != DocumentStatus.APPROVED

    def ensure_editable(self, doc: Document) -> None:
        if not self.is_editable(doc):
            raise DocumentLockedError(
                f"'{doc.title}' is {doc.status.value} and cannot be edited."
                + (" Create a revision to change it." if doc.status == DocumentStatus.APPROVED else "")
            )

    @staticmethod
    def is_roster_editable(doc: Document) -> bool:
        return doc.status == DocumentStatus.DRAFT

    def ensure_roster_editable(self, doc: Document) -> None:
        if not self.is_roster_editable(doc):
            raise DocumentLockedError(f"The sign-off roster of '{doc.title}' can only be changed in draft.")
