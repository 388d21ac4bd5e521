"""
Standard export filename: ``<docNumber>_<title>_v<version>_<YYYYMMDD>.<ext>``.

Deterministic for a given document and calendar day; docNumber and title are
sanitised so the name is legal on common filesystems.
"""
from __future__ import annotations

import re
from datetime import date
from typing import Optional

from core.helpers import date_time_helper as dt
from doccontrol.models.document_models import Document

_ILLEGAL = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
_RESERVED = {
    "CON", "PRN", "AUX", "NUL",
    *(f"COM{i}" for i in range(1, 10)),
    *(f"LPT{i}" for i in range(1, 10)),
}


def sanitize_component(value: str, *, fallback: str = "untitled") -> str:
    cleaned = _ILLEGAL.sub("_", value or "").strip().rstrip(". ")
    if not cleaned:
        return fallback
    if cleaned.upper() in _RESERVED:
        return f"_{cleaned}"
    return cleaned


def standard_filename(doc: Document, *, ext: str = "pdf", day: Optional[date] = None) -> str:
    day = day or dt.local_date()
    return (
        f"{sanitize_component(doc.doc_number, fallback='NO-NUMBER')}"
        f"_{sanitize_component(doc.title)}"
        f"_v{sanitize_component(doc.version, fallback='0.0')}"
        f"_{dt.date_stamp(day)}.{ext.lstrip('.')}"
    )
