"""Sign-off decision of a reviewer or the final approver."""
from __future__ import annotations

from enum import Enum


class DecisionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
