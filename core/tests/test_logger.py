"""
core/tests/test_logger.py

Feature/event logger: in-memory ring, filtering and optional SQLite sink.
"""

from __future__ import annotations

import sqlite3
import tempfile
import unittest
from pathlib import Path

from core.logging.logic.logger import Logger


class TestLogger(unittest.TestCase):
    def setUp(self) -> None:
        self.log = Logger()
        self.log.configure(level="INFO", db_path=None, max_entries=5000)
        self.log.clear_logs()

    def tearDown(self) -> None:
        self.log.configure(level="INFO", db_path=None, max_entries=5000)
        self.log.clear_logs()

    def test_singleton(self) -> None:
        self.assertIs(Logger(), self.log)

    def test_log_and_query(self) -> None:
        self.log.log("doccontrol", "status_changed", username="alice", reference_id="d1", message="draft->review")
        self.log.log("doccontrol", "document_exported", username="bob", reference_id="d2", level="warning")
        self.log.log("other", "status_changed", username="alice", reference_id="d1")

        newest = self.log.fetch_logs(limit=1)
        self.assertEqual(newest[0].feature, "other")

        hits = self.log.query_logs(feature="doccontrol", reference_id="d1")
        self.assertEqual(len(hits), 1)
        self.assertEqual(hits[0].message, "draft->review")
        self.assertEqual(len(self.log.query_logs(level="WARNING")), 1)
        self.assertEqual(len(self.log.query_logs(username="alice")), 2)

    def test_unknown_level_falls_back_to_info(self) -> None:
        entry = self.log.log("doccontrol", "x", level="loud")
        self.assertEqual(entry.log_level, "INFO")

    def test_max_entries_bound(self) -> None:
        self.log.configure(max_entries=3)
        for i in range(5):
            self.log.log("doccontrol", f"e{i}")
        events = [e.event for e in self.log.fetch_logs()]
        self.assertEqual(events, ["e4", "e3", "e2"])

    def test_sqlite_sink(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            db = Path(tmp) / "logs" / "events.db"
            self.log.configure(db_path=db)
            self.log.log("doccontrol", "document_created", username="alice", reference_id="d1")
            self.log.log("doccontrol", "status_changed", username="alice", reference_id="d1", level="warning")

            # reopening the same file returns earlier entries, newest first
            self.log.configure(db_path=db)
            stored = self.log.read_db(limit=10)
            self.assertEqual([e.event for e in stored], ["status_changed", "document_created"])
            self.assertEqual(stored[0].log_level, "WARNING")
            self.assertIsNotNone(stored[1].timestamp.tzinfo)
            self.log.clear_logs()
            self.log.log("doccontrol", "document_created", username="alice", reference_id="d1")
            self.log.close()
            self.assertEqual(self.log.read_db(), [])
            with sqlite3.connect(str(db)) as conn:
                rows = conn.execute("SELECT feature, event, reference_id FROM logs").fetchall()
            self.assertEqual(rows, [("doccontrol", "document_created", "d1")])


if __name__ == "__main__":
    unittest.main()
