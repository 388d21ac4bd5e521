"""Document hierarchy level (informational only, does not gate workflow)."""
from __future__ import annotations

from enum import Enum


class DocLevel(str, Enum):
    """Four ranked tiers of the document pyramid."""

    MANUAL = "manual"
    PROCEDURE = "procedure"
    WORK_INSTRUCTION = "work_instruction"
    FORM = "form"

    @property
    def rank(self) -> int:
        return list(DocLevel).index(self) + 1

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    DocLevel.MANUAL: "Level 1: Quality Manual",
    DocLevel.PROCEDURE: "Level 2: Procedure",
    DocLevel.WORK_INSTRUCTION: "Level 3: Work Instruction",
    DocLevel.FORM: "Level 4: Form / Record",
}
