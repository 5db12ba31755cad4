# ABOUTME: Torrent-client data structures as seen by the importer.
# ABOUTME: Torrent carries the comma-joined tag string exactly as the client reports it.

from dataclasses import dataclass
from typing import Any


def parse_tag_list(tags: str) -> set[str]:
    """Split a comma-joined tag string into tag names.

    Surrounding whitespace is dropped (qBittorrent reports "a, b") and empty
    entries are ignored.
    """
    return {tag.strip() for tag in tags.split(",") if tag.strip()}


@dataclass(frozen=True)
class Torrent:
    """A torrent as reported by the client. Paths are in the client's namespace."""

    hash: str
    name: str
    category: str = ""
    tags: str = ""
    save_path: str = ""
    content_path: str = ""

    @property
    def tag_set(self) -> set[str]:
        return parse_tag_list(self.tags)

    def has_tag(self, tag: str) -> bool:
        return tag in self.tag_set

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Torrent":
        """Build a Torrent from a qBittorrent torrents/info entry."""
        return cls(
            hash=str(data.get("hash", "")),
            name=str(data.get("name", "")),
            category=str(data.get("category") or ""),
            tags=str(data.get("tags") or ""),
            save_path=str(data.get("save_path") or ""),
            content_path=str(data.get("content_path") or ""),
        )


@dataclass(frozen=True)
class TorrentFile:
    """One file inside a torrent, named relative to the torrent's save path."""

    name: str
    size: int = 0
