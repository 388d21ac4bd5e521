"""Content generator input/output DTOs."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from doccontrol.enum.ai_options import Tone
from doccontrol.enum.doc_level import DocLevel


@dataclass(frozen=True)
class GenerationRequest:
    topic: str
    level: DocLevel
    category: str
    tone: Tone = Tone.STANDARD
    guidance: str = "ISO 9001:2015 documentation practice"


@dataclass(frozen=True)
class OutlineSection:
    title: str
    content: str


@dataclass(frozen=True)
class GeneratedOutline:
    sections: Tuple[OutlineSection, ...]
