"""Policy evaluation for the doccontrol feature (pure, no IO)."""

from doccontrol.services.policy.edit_policy import EditDiscipline, EditPolicy

__all__ = ["EditDiscipline", "EditPolicy"]
