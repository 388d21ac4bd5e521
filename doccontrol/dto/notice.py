"""Notice DTO: one user-facing message produced from a success or failure."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class NoticeLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    level: NoticeLevel
    title: str
    message: str
