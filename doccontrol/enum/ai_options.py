"""Options accepted by the content generator."""
from __future__ import annotations

from enum import Enum


class Tone(str, Enum):
    STANDARD = "standard"
    HR = "hr"
    OFFICIAL = "official"


class RefineAction(str, Enum):
    POLISH = "polish"
    CHECK = "check"
    REPHRASE_FORMAL = "rephrase_formal"


class ApplyMode(str, Enum):
    """How a refinement proposal is written back into a section."""

    REPLACE = "replace"
    APPEND = "append"
