# ABOUTME: Converts import_history rows into HistoryRecord dataclasses.
# ABOUTME: Keeps sqlite3.Row access out of the query layer.

from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass
class HistoryRecord:
    """One recorded import outcome."""

    id: int
    torrent_hash: str
    name: str
    category: str
    status: str
    reason: str | None
    asin: str | None
    title: str | None
    destination: Path | None
    recorded_at: str


def row_to_record(row: Any) -> HistoryRecord:
    destination = row["destination"]
    return HistoryRecord(
        id=row["id"],
        torrent_hash=row["torrent_hash"],
        name=row["name"],
        category=row["category"],
        status=row["status"],
        reason=row["reason"],
        asin=row["asin"],
        title=row["title"],
        destination=Path(destination) if destination else None,
        recorded_at=row["recorded_at"],
    )
