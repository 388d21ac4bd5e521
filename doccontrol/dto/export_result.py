from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Tuple


@dataclass(frozen=True)
class ExportArtifact:
    path: Path
    filename: str
    size_bytes: int


@dataclass(frozen=True)
class ExportResult:
    doc_id: str
    artifact: ExportArtifact
    broken_references: Tuple[str, ...] = ()
