from __future__ import annotations

import re
import threading
import uuid
from datetime import datetime, timezone
from typing import Dict, Tuple

_SEQ = re.compile(r"\{seq:(\d+)d\}")


def new_id(prefix: str = "") -> str:
    """Opaque unique id, optionally prefixed ("sec-", "rev-", ...)."""
    return f"{prefix}{uuid.uuid4().hex}"


def short_id() -> str:
    return uuid.uuid4().hex[:9]


class IdGenerator:
    """Per-year sequence numbers rendered through a pattern like ``{YYYY}-{seq:03d}``."""

    def __init__(self, prefix: str, pattern: str) -> None:
        self._prefix = prefix
        self._pattern = pattern
        self._seq: Dict[Tuple[int, str], int] = {}
        self._lock = threading.Lock()

    def next_id(self, *, now: datetime | None = None) -> str:
        year = (now or datetime.now(timezone.utc)).year
        with self._lock:
            seq = self._seq.get((year, self._prefix), 0) + 1
            self._seq[(year, self._prefix)] = seq
        token = self._pattern.replace("{YYYY}", str(year))
        m = _SEQ.search(token)
        if m:
            width = int(m.group(1))
            token = _SEQ.sub(f"{seq:0{width}d}", token)
        else:
            token = token.replace("{seq}", str(seq))
        return f"{self._prefix}-{token}"
