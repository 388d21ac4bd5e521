"""Data Transfer Objects for the doccontrol feature.

DTOs are immutable data containers for transferring data between layers.
"""

from doccontrol.dto.audit_event import AuditEvent, AuditAction, AuditSeverity
from doccontrol.dto.controls_state import ControlsState
from doccontrol.dto.export_result import ExportArtifact, ExportResult
from doccontrol.dto.funnel_stats import FunnelStats
from doccontrol.dto.generated_outline import GeneratedOutline, GenerationRequest, OutlineSection
from doccontrol.dto.notice import Notice, NoticeLevel

__all__ = [
    "AuditEvent",
    "AuditAction",
    "AuditSeverity",
    "ControlsState",
    "ExportArtifact",
    "ExportResult",
    "FunnelStats",
    "GeneratedOutline",
    "GenerationRequest",
    "Notice",
    "NoticeLevel",
    "OutlineSection",
]
