"""doccontrol/enum/document_action.py
================================

Canonical action identifiers accepted by the workflow engine.

The UI and services should use these ids instead of hardcoding strings.
"""
from __future__ import annotations

from enum import Enum


class DocumentAction(str, Enum):
    """Supported lifecycle actions."""

    START_REVIEW = "start_review"
    REVIEWER_APPROVE = "reviewer_approve"
    REVIEWER_REJECT = "reviewer_reject"
    SUBMIT_FINAL_APPROVAL = "submit_final_approval"
    APPROVER_APPROVE = "approver_approve"
    APPROVER_REJECT = "approver_reject"

    CREATE_MAJOR_REVISION = "create_major_revision"
    CREATE_MINOR_REVISION = "create_minor_revision"
