"""
core/logging/logic/logger.py
============================

Thread-safe singleton feature/event logger.

- Keeps the newest entries in memory (bounded by ``max_entries``).
- Forwards every entry to the stdlib logger ``<feature>.events``.
- Optionally appends to a SQLite file when a ``db_path`` is configured.
"""

from __future__ import annotations

import logging
import os
import sqlite3
import threading
from collections import deque
from datetime import datetime, timezone
from pathlib import Path
from typing import Deque, List, Optional

from core.logging.models.log_entry import ROW_COLUMNS, LogEntry

_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


# --------------------------------------------------------------------------- #
#  Singleton class                                                            #
# --------------------------------------------------------------------------- #
class Logger:
    """Thread-safe singleton logger for feature events."""

    _instance: "Logger | None" = None
    _instance_lock = threading.Lock()

    def __new__(cls) -> "Logger":  # noqa: D401
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False  # type: ignore[attr-defined]
        return cls._instance  # type: ignore[return-value]

    def __init__(self) -> None:
        if getattr(self, "_initialized", False):
            return
        self._initialized = True

        self._lock = threading.Lock()
        self._next_id = 1
        self.db_path: Optional[Path] = None
        self.entries: Deque[LogEntry] = deque(maxlen=5000)
        self._conn: sqlite3.Connection | None = None

    # ------------------------------------------------------------------ #
    #  Configuration                                                     #
    # ------------------------------------------------------------------ #
    def configure(self, *, level: str = "INFO", db_path: str | Path | None = None, max_entries: int = 5000) -> None:
        """Apply the [Logging] config section. Existing entries are kept up to the new bound."""
        logging.getLogger().setLevel(level.upper() if level.upper() in _LEVELS else "INFO")
        with self._lock:
            self.entries = deque(self.entries, maxlen=max(1, int(max_entries)))
            self._close_locked()
            self.db_path = Path(db_path) if db_path else None
            if self.db_path is not None:
                self._ensure_db_locked()

    def close(self) -> None:
        """Close the database connection and release resources."""
        with self._lock:
            self._close_locked()

    # ------------------------------------------------------------------ #
    #  Public API: log                                                   #
    # ------------------------------------------------------------------ #
    def log(
        self,
        feature: str,
        event: str,
        *,
        username: Optional[str] = None,
        level: str = "INFO",
        reference_id: Optional[str] = None,
        message: Optional[str] = None,
    ) -> LogEntry:
        """Record one entry and return it."""
        level = level.upper() if level.upper() in _LEVELS else "INFO"
        with self._lock:
            entry = LogEntry(
                id=self._next_id,
                timestamp=datetime.now(timezone.utc),
                log_level=level,
                username=username or "unknown",
                feature=feature,
                event=event,
                reference_id=reference_id,
                message=message,
            )
            self._next_id += 1
            self.entries.append(entry)
            if self._conn is not None:
                self._insert_log_locked(entry)

        logging.getLogger(f"{feature}.events").log(
            logging.getLevelName(level),
            "%s ref=%s user=%s %s",
            event,
            reference_id or "-",
            entry.username,
            message or "",
        )
        return entry

    # ------------------------------------------------------------------ #
    #  Query / Clear                                                     #
    # ------------------------------------------------------------------ #
    def fetch_logs(self, limit: int = 100) -> List[LogEntry]:
        with self._lock:
            return list(reversed(self.entries))[:limit]

    def query_logs(
        self,
        *,
        username: Optional[str] = None,
        feature: Optional[str] = None,
        event: Optional[str] = None,
        reference_id: Optional[str] = None,
        level: Optional[str] = None,
        limit: int = 1_000,
    ) -> List[LogEntry]:
        """Newest-first entries matching every given filter."""
        with self._lock:
            rows = list(reversed(self.entries))

        result: List[LogEntry] = []
        for e in rows:
            if username is not None and e.username != username:
                continue
            if feature is not None and e.feature != feature:
                continue
            if event is not None and e.event != event:
                continue
            if reference_id is not None and e.reference_id != reference_id:
                continue
            if level is not None and e.log_level != level.upper():
                continue
            result.append(e)
            if len(result) >= limit:
                break
        return result

    def read_db(self, limit: int = 100) -> List[LogEntry]:
        """Newest-first entries from the SQLite sink, including earlier runs; [] without a sink."""
        with self._lock:
            if self._conn is None:
                return []
            cur = self._conn.execute(
                f"SELECT id, {', '.join(ROW_COLUMNS)} FROM logs ORDER BY id DESC LIMIT ?", (limit,)
            )
            names = [c[0] for c in cur.description]
            return [LogEntry.from_dict(dict(zip(names, row))) for row in cur.fetchall()]

    def clear_logs(self) -> None:
        with self._lock:
            self.entries.clear()
            if self._conn is not None:
                self._conn.execute("DELETE FROM logs")
                self._conn.commit()

    # ------------------------------------------------------------------ #
    #  Internal helpers (caller holds self._lock)                        #
    # ------------------------------------------------------------------ #
    def _close_locked(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _ensure_db_locked(self) -> None:
        assert self.db_path is not None
        os.makedirs(self.db_path.parent, exist_ok=True)
        self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                timestamp TEXT NOT NULL,
                username TEXT,
                feature TEXT NOT NULL,
                event TEXT NOT NULL,
                reference_id TEXT,
                message TEXT,
                log_level TEXT NOT NULL DEFAULT 'INFO'
            )
            """
        )
        self._conn.commit()

    def _insert_log_locked(self, entry: LogEntry) -> None:
        assert self._conn is not None
        self._conn.execute(
            f"INSERT INTO logs ({', '.join(ROW_COLUMNS)}) VALUES ({', '.join('?' * len(ROW_COLUMNS))})",
            entry.to_row(),
        )
        self._conn.commit()


# --------------------------------------------------------------------------- #
#  Global instance                                                            #
# --------------------------------------------------------------------------- #
logger: Logger = Logger()
