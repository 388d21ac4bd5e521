from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FunnelStats:
    """Dashboard counters per lifecycle status (templates excluded)."""

    drafts: int
    in_review: int
    approving: int
    approved: int

    @property
    def total(self) -> int:
        return self.drafts + self.in_review + self.approving + self.approved
