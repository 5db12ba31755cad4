# ABOUTME: Torrent client package: data types, gateway protocol, path mapping, qBittorrent adapter.
# ABOUTME: Exports the pieces the import pipeline consumes.

from earmark.torrents.gateway import (
    DEFAULT_IMPORTED_TAG,
    DEFAULT_MANUAL_INTERVENTION_TAG,
    TorrentGateway,
    TorrentGatewayError,
    get_manual_intervention_in_category,
    get_unimported_in_category,
)
from earmark.torrents.paths import MappedFile, PathMapper
from earmark.torrents.types import Torrent, TorrentFile

__all__ = [
    "DEFAULT_IMPORTED_TAG",
    "DEFAULT_MANUAL_INTERVENTION_TAG",
    "MappedFile",
    "PathMapper",
    "Torrent",
    "TorrentFile",
    "TorrentGateway",
    "TorrentGatewayError",
    "get_manual_intervention_in_category",
    "get_unimported_in_category",
]
