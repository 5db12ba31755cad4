# ABOUTME: SQL DDL statements for the earmark import history database.
# ABOUTME: One append-only table of import outcomes plus schema versioning.

SCHEMA_V1 = """
-- One row per import attempt that reached a terminal outcome
CREATE TABLE import_history (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    torrent_hash TEXT NOT NULL,
    name         TEXT NOT NULL,
    category     TEXT NOT NULL DEFAULT '',
    status       TEXT NOT NULL,
    reason       TEXT,
    asin         TEXT,
    title        TEXT,
    destination  TEXT,
    recorded_at  TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
);

CREATE INDEX idx_import_history_hash ON import_history(torrent_hash);
CREATE INDEX idx_import_history_status ON import_history(status);

-- Schema versioning for future migrations
CREATE TABLE schema_version (
    version    INTEGER NOT NULL,
    applied_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
);

INSERT INTO schema_version (version) VALUES (1);
"""

# (version, sql) pairs applied in order on top of SCHEMA_V1.
MIGRATIONS: list[tuple[int, str]] = []
