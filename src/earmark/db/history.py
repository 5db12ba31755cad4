# ABOUTME: Append-only audit log of import outcomes stored in SQLite.
# ABOUTME: Written by the import pipeline, read by the CLI; never consulted for import state.

import sqlite3
import threading
from pathlib import Path

from earmark.db.mapping import HistoryRecord, row_to_record

DEFAULT_LIMIT = 50


class ImportHistory:
    """Wraps a sqlite3 connection and provides typed access to import_history."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._lock = threading.Lock()

    def record(
        self,
        *,
        torrent_hash: str,
        name: str,
        status: str,
        category: str = "",
        reason: str | None = None,
        asin: str | None = None,
        title: str | None = None,
        destination: Path | None = None,
    ) -> int:
        """Append one outcome and return its row ID."""
        with self._lock:
            cursor = self._conn.execute(
                "INSERT INTO import_history "
                "(torrent_hash, name, category, status, reason, asin, title, destination) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    torrent_hash,
                    name,
                    category,
                    status,
                    reason,
                    asin,
                    title,
                    str(destination) if destination else None,
                ),
            )
            self._conn.commit()
        return cursor.lastrowid  # type: ignore[return-value]

    def list_recent(self, limit: int = DEFAULT_LIMIT) -> list[HistoryRecord]:
        """Newest outcomes first."""
        cursor = self._conn.execute(
            "SELECT * FROM import_history ORDER BY id DESC LIMIT ?", (limit,)
        )
        return [row_to_record(row) for row in cursor.fetchall()]

    def list_by_status(self, status: str, limit: int = DEFAULT_LIMIT) -> list[HistoryRecord]:
        cursor = self._conn.execute(
            "SELECT * FROM import_history WHERE status = ? ORDER BY id DESC LIMIT ?",
            (status, limit),
        )
        return [row_to_record(row) for row in cursor.fetchall()]

    def latest_for_hash(self, torrent_hash: str) -> HistoryRecord | None:
        """The most recent outcome recorded for a torrent, if any."""
        cursor = self._conn.execute(
            "SELECT * FROM import_history WHERE torrent_hash = ? ORDER BY id DESC LIMIT 1",
            (torrent_hash,),
        )
        row = cursor.fetchone()
        return row_to_record(row) if row else None

    def close(self) -> None:
        self._conn.close()
