"""Resolved, render-ready view of a document (input of the exporter)."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from doccontrol.logic.markup import Block
from doccontrol.models.document_models import RevisionEntry


@dataclass(frozen=True)
class RenderedSection:
    id: str
    title: str
    text: str                       # resolved text
    blocks: Tuple[Block, ...]


@dataclass(frozen=True)
class SignatureRow:
    role: str
    name: str
    date: str
    signed: bool


@dataclass(frozen=True)
class RenderedDocumentView:
    doc_id: str
    title: str
    doc_number: str
    version: str
    status: str
    level_label: str
    category_name: str
    department: str
    organisation: str
    sections: Tuple[RenderedSection, ...]
    signatures: Tuple[SignatureRow, ...]
    revisions: Tuple[RevisionEntry, ...] = ()
    approval_hash: Optional[str] = None
    broken_references: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_controlled(self) -> bool:
        return self.status == "approved"
