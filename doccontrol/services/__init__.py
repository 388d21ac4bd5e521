"""Services layer for the doccontrol feature.

Stateful command/query objects and policy evaluation.
"""

from doccontrol.services.document_store import DocumentStore
from doccontrol.services.ui_state_service import UIStateService
from doccontrol.services.policy.edit_policy import EditPolicy

__all__ = [
    "DocumentStore",
    "UIStateService",
    "EditPolicy",
]
