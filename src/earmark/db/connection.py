# ABOUTME: SQLite connection management for the earmark import history.
# ABOUTME: Opens or creates the database, applies schema and pending migrations.

import sqlite3
from pathlib import Path

from earmark.db.schema import MIGRATIONS, SCHEMA_V1

DEFAULT_DB_PATH = Path.home() / ".earmark" / "history.db"


def _schema_version(conn: sqlite3.Connection) -> int | None:
    """Highest applied schema version, or None on a fresh database."""
    exists = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type='table' AND name='schema_version'"
    ).fetchone()
    if exists is None:
        return None
    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    return row[0] or 0


def _ensure_schema(conn: sqlite3.Connection) -> None:
    version = _schema_version(conn)
    if version is None:
        conn.executescript(SCHEMA_V1)
        version = 1
    for target, sql in MIGRATIONS:
        if target > version:
            conn.executescript(sql)


def open_history(path: Path | None = None) -> sqlite3.Connection:
    """Open or create the import history database.

    Creates parent directories as needed, applies the schema on first use,
    and sets WAL journal mode with a sqlite3.Row factory.

    Args:
        path: Database file. Defaults to ~/.earmark/history.db.
    """
    db_path = path or DEFAULT_DB_PATH
    db_path.parent.mkdir(parents=True, exist_ok=True)

    # The scheduler records outcomes from its worker thread.
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    _ensure_schema(conn)
    return conn
