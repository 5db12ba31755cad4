# ABOUTME: Public API for the earmark import history database layer.
# ABOUTME: Exports connection management, the history store, and its record type.

from earmark.db.connection import DEFAULT_DB_PATH, open_history
from earmark.db.history import ImportHistory
from earmark.db.mapping import HistoryRecord

__all__ = [
    "DEFAULT_DB_PATH",
    "HistoryRecord",
    "ImportHistory",
    "open_history",
]
