from __future__ import annotations

from datetime import datetime, timezone

import pytest

from doccontrol.dto.notice import NoticeLevel
from doccontrol.exceptions.errors import (
    DocumentLockedError,
    ExportError,
    InvalidTransitionError,
    RequestInProgressError,
    ValidationError,
    to_notice,
)
from doccontrol.logic.id_generator import IdGenerator, new_id, short_id


def test_doc_numbers_restart_each_year():
    gen = IdGenerator("QP", "{YYYY}-{seq:03d}")
    jan = datetime(2026, 1, 5, tzinfo=timezone.utc)
    assert gen.next_id(now=jan) == "QP-2026-001"
    assert gen.next_id(now=jan) == "QP-2026-002"
    assert gen.next_id(now=datetime(2027, 1, 1, tzinfo=timezone.utc)) == "QP-2027-001"


def test_plain_sequence_pattern():
    gen = IdGenerator("FORM", "{seq}")
    assert gen.next_id() == "FORM-1"


def test_ids_are_unique():
    assert new_id("rev-").startswith("rev-")
    assert len({short_id() for _ in range(50)}) == 50


@pytest.mark.parametrize("exc, level, title", [
    (ValidationError("x"), NoticeLevel.WARNING, "Validation failed"),
    (InvalidTransitionError("x"), NoticeLevel.WARNING, "Action not allowed"),
    (DocumentLockedError("x"), NoticeLevel.WARNING, "Document is locked"),
    (RequestInProgressError("x"), NoticeLevel.INFO, "Please wait"),
    (ExportError("x"), NoticeLevel.ERROR, "Export failed"),
])
def test_to_notice(exc, level, title):
    notice = to_notice(exc)
    assert (notice.level, notice.title, notice.message) == (level, title, "x")


def test_locked_is_a_transition_error():
    assert issubclass(DocumentLockedError, InvalidTransitionError)
    assert to_notice(ExportError()).message == "Export failed"
