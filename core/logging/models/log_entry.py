"""
log_entry.py

Dataclass for one log entry.

• from_dict()  – builds the object from a SQLite row / JSON dict
• to_row()     – column values for the SQLite sink, in ROW_COLUMNS order
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

ROW_COLUMNS = ("timestamp", "username", "feature", "event", "reference_id", "message", "log_level")


@dataclass
class LogEntry:
    id: Optional[int]
    timestamp: datetime          # always UTC
    log_level: str
    username: Optional[str]
    feature: str
    event: str
    reference_id: Optional[str]
    message: Optional[str]

    # -------------------- Factory ------------------------------------ #
    @classmethod
    def from_dict(cls, data: dict) -> "LogEntry":
        ts = data["timestamp"]
        if isinstance(ts, str):
            ts = datetime.fromisoformat(ts)
        return cls(
            id=data.get("id"),
            timestamp=ts,
            log_level=data.get("log_level", "INFO"),
            username=data.get("username"),
            feature=data.get("feature", ""),
            event=data.get("event", ""),
            reference_id=data.get("reference_id"),
            message=data.get("message"),
        )

    # -------------------- SQLite row --------------------------------- #
    def to_row(self) -> Tuple:
        return (
            self.timestamp.isoformat(),
            self.username,
            self.feature,
            self.event,
            self.reference_id,
            self.message,
            self.log_level,
        )
