"""Sign-off notifications (reviewers on start review, approver on submit)."""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

from doccontrol.models.document_models import Document, FinalApprover, Reviewer

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify_reviewers(self, doc: Document, reviewers: Sequence[Reviewer]) -> None: ...

    def notify_approver(self, doc: Document, approver: FinalApprover) -> None: ...


class LoggingNotifier:
    """Default notifier: there is no mail transport, so notifications are logged."""

    def notify_reviewers(self, doc: Document, reviewers: Sequence[Reviewer]) -> None:
        for r in reviewers:
            logger.info("Review requested: %s v%s -> %s <%s>", doc.doc_number, doc.version, r.name, r.email or "-")

    def notify_approver(self, doc: Document, approver: FinalApprover) -> None:
        logger.info("Final approval requested: %s v%s -> %s", doc.doc_number, doc.version, approver.name or "-")
