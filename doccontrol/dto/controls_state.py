"""ControlsState DTO for UI button enablement."""

from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class ControlsState:
    """
    UI state for button enablement and text.

    Immutable DTO - computed by UIStateService.
    """

    can_edit: bool
    can_edit_roster: bool
    can_start_review: bool
    can_sign_review: bool
    can_submit_final: bool
    can_sign_final: bool
    can_revise: bool
    can_export: bool
    status_text: str
    next_text: str

    @staticmethod
    def disabled() -> "ControlsState":
        """Factory for fully disabled state (no document selected)."""
        return ControlsState(
            can_edit=False,
            can_edit_roster=False,
            can_start_review=False,
            can_sign_review=False,
            can_submit_final=False,
            can_sign_final=False,
            can_revise=False,
            can_export=False,
            status_text="-",
            next_text="-",
        )
