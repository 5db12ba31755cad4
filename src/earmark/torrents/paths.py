# ABOUTME: Translates torrent-client filesystem paths into the importer's local view.
# ABOUTME: Pure string mapping between two configured roots; never touches the filesystem.

import posixpath
from dataclasses import dataclass
from pathlib import Path

from earmark.torrents.types import Torrent, TorrentFile


@dataclass(frozen=True)
class MappedFile:
    """A torrent file with its importer-visible location.

    base_name keeps the client's relative name, subdirectories included.
    """

    base_name: str
    local_path: Path


@dataclass(frozen=True)
class PathMapper:
    """Maps paths under remote_root (client view) to local_root (importer view).

    The remote root is matched as a plain prefix after dropping its trailing
    slash. Paths outside it are re-rooted whole under local_root.
    """

    remote_root: str
    local_root: str

    def relative_path(self, remote_path: str) -> str:
        """The part of remote_path below the remote root."""
        root = self.remote_root.rstrip("/")
        if root and remote_path.startswith(root):
            return remote_path[len(root):]
        return remote_path

    def to_local(self, remote_path: str) -> Path:
        relative = self.relative_path(remote_path).lstrip("/")
        return Path(posixpath.normpath(posixpath.join(self.local_root, relative)))

    def to_remote(self, local_path: str | Path) -> str:
        """Inverse of to_local for paths under the local root."""
        local = str(local_path)
        root = self.local_root.rstrip("/")
        relative = local[len(root):] if root and local.startswith(root) else local
        return self.remote_root.rstrip("/") + "/" + relative.lstrip("/")

    def map_content_path(self, torrent: Torrent) -> Path:
        return self.to_local(torrent.content_path)

    def map_save_path(self, torrent: Torrent) -> Path:
        return self.to_local(torrent.save_path)

    def map_files(self, torrent: Torrent, files: list[TorrentFile]) -> list[MappedFile]:
        """Locate every torrent file under the mapped save path, in client order."""
        save_path = self.map_save_path(torrent)
        return [
            MappedFile(base_name=file.name, local_path=save_path / file.name)
            for file in files
        ]
