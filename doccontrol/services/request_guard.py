"""Per-document in-flight registry for generate/refine/export requests."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator, Set

from doccontrol.exceptions.errors import RequestInProgressError


class RequestGuard:
    """At most one outstanding collaborator request per document."""

    def __init__(self) -> None:
        self._busy: Set[str] = set()
        self._lock = threading.Lock()

    def is_busy(self, doc_id: str) -> bool:
        with self._lock:
            return doc_id in self._busy

    @contextmanager
    def hold(self, doc_id: str, what: str = "request") -> Iterator[None]:
        with self._lock:
            if doc_id in self._busy:
                raise RequestInProgressError(f"A {what} for this document is still running.")
            self._busy.add(doc_id)
        try:
            yield
        finally:
            with self._lock:
                self._busy.discard(doc_id)
