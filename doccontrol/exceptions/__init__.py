from doccontrol.exceptions.errors import (
    DocumentLockedError,
    DocumentNotFoundError,
    DocumentsError,
    ExportError,
    GenerationError,
    InvalidTransitionError,
    RefineError,
    RequestInProgressError,
    ValidationError,
    to_notice,
)

__all__ = [
    "DocumentLockedError",
    "DocumentNotFoundError",
    "DocumentsError",
    "ExportError",
    "GenerationError",
    "InvalidTransitionError",
    "RefineError",
    "RequestInProgressError",
    "ValidationError",
    "to_notice",
]
