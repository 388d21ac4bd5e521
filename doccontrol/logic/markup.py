"""
Structural parsing of resolved section text into presentation blocks.

Runs after substitution so inserted variable/reference text takes part in
formatting like any other text. Supported syntax:

    ## / ###          headings
    - item, * item    bullet list
    1. item           numbered list
    > text            blockquote (notes, warnings)
    | a | b |         pipe table, optional header + |---|:---:|---:| row
    ```mermaid        diagram source (kept verbatim)
    other lines       paragraphs

Inline ``**bold**`` is left in the text; renderers decide how to show it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

_MERMAID = re.compile(r"```mermaid\s*\n([\s\S]*?)\n```")
_NUMBERED = re.compile(r"^(\d+)\.\s+(.*)")
_BOLD = re.compile(r"\*\*(.*?)\*\*")


class BlockKind(str, Enum):
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    BULLET = "bullet"
    NUMBERED = "numbered"
    QUOTE = "quote"
    TABLE = "table"
    DIAGRAM = "diagram"


class Align(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


@dataclass(frozen=True)
class Block:
    kind: BlockKind
    text: str = ""
    level: int = 0                      # heading level
    number: Optional[int] = None        # numbered list index
    header: Optional[Tuple[str, ...]] = None
    rows: Tuple[Tuple[str, ...], ...] = field(default_factory=tuple)
    alignments: Tuple[Align, ...] = field(default_factory=tuple)


def split_bold(text: str) -> List[Tuple[str, bool]]:
    """'a **b** c' -> [('a ', False), ('b', True), (' c', False)]."""
    parts: List[Tuple[str, bool]] = []
    pos = 0
    for m in _BOLD.finditer(text):
        if m.start() > pos:
            parts.append((text[pos:m.start()], False))
        parts.append((m.group(1), True))
        pos = m.end()
    if pos < len(text):
        parts.append((text[pos:], False))
    return parts


def _cells(row: str) -> Tuple[str, ...]:
    return tuple(c.strip() for c in re.sub(r"^\||\|$", "", row.strip()).split("|"))


def _alignment(cell: str) -> Align:
    c = cell.strip()
    if c.startswith(":") and c.endswith(":"):
        return Align.CENTER
    if c.endswith(":"):
        return Align.RIGHT
    return Align.LEFT


def _table(buffer: List[str]) -> Block:
    has_header = len(buffer) >= 2 and "---" in buffer[1]
    rows = [_cells(r) for r in buffer]
    if has_header:
        return Block(
            kind=BlockKind.TABLE,
            header=rows[0],
            rows=tuple(rows[2:]),
            alignments=tuple(_alignment(c) for c in _cells(buffer[1])),
        )
    return Block(kind=BlockKind.TABLE, rows=tuple(rows))


def _text_blocks(chunk: str) -> List[Block]:
    blocks: List[Block] = []
    table: List[str] = []

    def flush() -> None:
        if table:
            blocks.append(_table(table))
            table.clear()

    for line in chunk.split("\n"):
        trimmed = line.strip()
        if trimmed.startswith("|"):
            table.append(trimmed)
            continue
        flush()
        if not trimmed:
            continue
        if trimmed.startswith("- ") or trimmed.startswith("* "):
            blocks.append(Block(kind=BlockKind.BULLET, text=trimmed[2:].strip()))
        elif _NUMBERED.match(trimmed):
            m = _NUMBERED.match(trimmed)
            blocks.append(Block(kind=BlockKind.NUMBERED, text=m.group(2), number=int(m.group(1))))
        elif trimmed.startswith("> "):
            blocks.append(Block(kind=BlockKind.QUOTE, text=trimmed[2:].strip()))
        elif trimmed.startswith("### "):
            blocks.append(Block(kind=BlockKind.HEADING, text=trimmed[4:].strip(), level=3))
        elif trimmed.startswith("## "):
            blocks.append(Block(kind=BlockKind.HEADING, text=trimmed[3:].strip(), level=2))
        else:
            blocks.append(Block(kind=BlockKind.PARAGRAPH, text=trimmed))
    flush()
    return blocks


def parse_blocks(text: str) -> List[Block]:
    """Split resolved text into ordered presentation blocks."""
    blocks: List[Block] = []
    last = 0
    for m in _MERMAID.finditer(text or ""):
        blocks.extend(_text_blocks(text[last:m.start()]))
        blocks.append(Block(kind=BlockKind.DIAGRAM, text=m.group(1)))
        last = m.end()
    blocks.extend(_text_blocks((text or "")[last:]))
    return blocks
