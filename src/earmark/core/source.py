# ABOUTME: Classifies a torrent's mapped file list by audio container.
# ABOUTME: Picks the representative file whose tags identify the whole audiobook.

import enum
import posixpath
from dataclasses import dataclass, field

from earmark.torrents.paths import MappedFile

M4B_EXTENSION = ".m4b"
MP3_EXTENSION = ".mp3"


class NoAudioFilesError(Exception):
    """Raised when a torrent holds no recognizable audio files."""

    def __init__(self, count: int = 0) -> None:
        self.count = count
        super().__init__(f"no .m4b or .mp3 files among {count} file(s)")


class SourceKind(enum.Enum):
    M4B = "m4b"
    MP3 = "mp3"
    MIXED = "mixed"
    UNKNOWN = "unknown"


@dataclass
class SourceInfo:
    """A file list partitioned by audio container."""

    kind: SourceKind
    m4b_files: list[MappedFile] = field(default_factory=list)
    mp3_files: list[MappedFile] = field(default_factory=list)
    other_files: list[MappedFile] = field(default_factory=list)

    @property
    def audio_files(self) -> list[MappedFile]:
        return self.m4b_files + self.mp3_files

    def representative(self) -> MappedFile:
        """The file used as the tag source for the whole torrent.

        Raises:
            NoAudioFilesError: The source is UNKNOWN.
        """
        if self.kind in (SourceKind.M4B, SourceKind.MIXED):
            return self.m4b_files[0]
        if self.kind is SourceKind.MP3:
            return self.mp3_files[0]
        raise NoAudioFilesError(len(self.other_files))


def classify_source(files: list[MappedFile]) -> SourceInfo:
    """Partition files by case-sensitive extension on their base name.

    Never fails. An empty list, or one with no .m4b/.mp3 entries, is UNKNOWN.
    """
    m4b: list[MappedFile] = []
    mp3: list[MappedFile] = []
    other: list[MappedFile] = []

    for mapped in files:
        extension = posixpath.splitext(mapped.base_name)[1]
        if extension == M4B_EXTENSION:
            m4b.append(mapped)
        elif extension == MP3_EXTENSION:
            mp3.append(mapped)
        else:
            other.append(mapped)

    if m4b and mp3:
        kind = SourceKind.MIXED
    elif m4b:
        kind = SourceKind.M4B
    elif mp3:
        kind = SourceKind.MP3
    else:
        kind = SourceKind.UNKNOWN

    return SourceInfo(kind=kind, m4b_files=m4b, mp3_files=mp3, other_files=other)
