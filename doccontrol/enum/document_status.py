"""Document status enumeration."""
from __future__ import annotations

from enum import Enum


class DocumentStatus(str, Enum):
    """Closed set of lifecycle states: draft -> review -> approving -> approved."""

    DRAFT = "draft"
    REVIEW = "review"
    APPROVING = "approving"
    APPROVED = "approved"
