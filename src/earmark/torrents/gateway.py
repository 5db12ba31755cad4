# ABOUTME: TorrentGateway protocol: the narrow surface the importer needs from a torrent client.
# ABOUTME: Tag-based selection of unimported and manual-intervention torrents lives here too.

import logging
from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from earmark.torrents.types import Torrent, TorrentFile

logger = logging.getLogger(__name__)

DEFAULT_IMPORTED_TAG = "imported"
DEFAULT_MANUAL_INTERVENTION_TAG = "manual-intervention"


class TorrentGatewayError(Exception):
    """Raised when the torrent client cannot be queried or updated."""


@runtime_checkable
class TorrentGateway(Protocol):
    """Protocol for torrent client operations used by the importer.

    Every method raises TorrentGatewayError on failure. An empty category
    means "no category filter".
    """

    def list_by_category(self, category: str) -> list[Torrent]: ...

    def get_torrent(self, torrent_hash: str) -> Torrent | None: ...

    def list_files(self, torrent_hash: str) -> list[TorrentFile]: ...

    def add_tags(self, hashes: list[str], tag: str) -> None: ...

    def remove_tags(self, hashes: list[str], tag: str) -> None: ...

    def set_category(self, hashes: list[str], category: str) -> None: ...


def filter_unimported(
    torrents: Iterable[Torrent],
    imported_tag: str = DEFAULT_IMPORTED_TAG,
    manual_tag: str = DEFAULT_MANUAL_INTERVENTION_TAG,
) -> list[Torrent]:
    """Keep torrents carrying neither terminal tag. Order is preserved.

    A torrent with the imported tag is always rejected, even when the
    manual-intervention tag is present as well.
    """
    return [
        torrent
        for torrent in torrents
        if not ({imported_tag, manual_tag} & torrent.tag_set)
    ]


def filter_manual_intervention(
    torrents: Iterable[Torrent],
    imported_tag: str = DEFAULT_IMPORTED_TAG,
    manual_tag: str = DEFAULT_MANUAL_INTERVENTION_TAG,
) -> list[Torrent]:
    """Keep torrents awaiting a human: manual-intervention and not imported."""
    return [
        torrent
        for torrent in torrents
        if manual_tag in torrent.tag_set and imported_tag not in torrent.tag_set
    ]


def get_unimported_in_category(
    gateway: TorrentGateway,
    category: str,
    imported_tag: str = DEFAULT_IMPORTED_TAG,
    manual_tag: str = DEFAULT_MANUAL_INTERVENTION_TAG,
) -> list[Torrent]:
    """Torrents in a category that still need an import attempt."""
    torrents = gateway.list_by_category(category)
    unimported = filter_unimported(torrents, imported_tag, manual_tag)
    logger.debug(
        "Category %r: %d torrent(s), %d unimported",
        category, len(torrents), len(unimported),
    )
    return unimported


def get_manual_intervention_in_category(
    gateway: TorrentGateway,
    category: str,
    imported_tag: str = DEFAULT_IMPORTED_TAG,
    manual_tag: str = DEFAULT_MANUAL_INTERVENTION_TAG,
) -> list[Torrent]:
    """Torrents in a category that were parked for manual intervention."""
    return filter_manual_intervention(gateway.list_by_category(category), imported_tag, manual_tag)
