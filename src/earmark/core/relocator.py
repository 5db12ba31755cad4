# ABOUTME: Places a torrent's content into the library: hard link first, copy as fallback.
# ABOUTME: Writes the metadata.opf sidecar next to the relocated audio.

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from earmark.metadata.opf import SIDECAR_NAME, write_opf
from earmark.metadata.types import BookMetadata

logger = logging.getLogger(__name__)

_DIRECTORY_MODE = 0o777


class RelocationError(Exception):
    """Base class for failures while placing files into the library."""


class SourceMissingError(RelocationError):
    def __init__(self, source: Path) -> None:
        self.source = source
        super().__init__(f"source does not exist: {source}")


class DestinationUnwritableError(RelocationError):
    def __init__(self, destination: Path, detail: str) -> None:
        self.destination = destination
        super().__init__(f"cannot create destination {destination}: {detail}")


class LinkAndCopyFailedError(RelocationError):
    def __init__(self, source: Path, destination: Path, link_error: str, copy_error: str) -> None:
        self.source = source
        self.destination = destination
        super().__init__(
            f"failed to link or copy {source} to {destination}: "
            f"link: {link_error}; copy: {copy_error}"
        )


class SidecarWriteError(RelocationError):
    def __init__(self, path: Path, detail: str) -> None:
        self.path = path
        super().__init__(f"failed to write sidecar {path}: {detail}")


@dataclass
class RelocationResult:
    """Where the content landed and whether it shares inodes with the source."""

    destination: Path
    linked: bool


def _link_tree(source: Path, destination: Path) -> None:
    shutil.copytree(source, destination, copy_function=os.link)


def _copy_tree(source: Path, destination: Path) -> None:
    shutil.copytree(source, destination)


def _relocate_directory(source: Path, destination: Path) -> RelocationResult:
    """Recursive hard-link copy of the tree, falling back to a full copy.

    An existing destination fails both attempts; a prior partial import is
    never merged into.
    """
    existed = destination.exists()
    try:
        _link_tree(source, destination)
        return RelocationResult(destination=destination, linked=True)
    except OSError as exc:
        link_error = str(exc)
        logger.warning("Hard link of %s failed, falling back to copy: %s", source, exc)

    if not existed and destination.exists():
        shutil.rmtree(destination, ignore_errors=True)

    try:
        _copy_tree(source, destination)
    except OSError as exc:
        raise LinkAndCopyFailedError(source, destination, link_error, str(exc)) from exc
    return RelocationResult(destination=destination, linked=False)


def _relocate_file(source: Path, destination_dir: Path, base_name: str | None) -> RelocationResult:
    try:
        os.makedirs(destination_dir, mode=_DIRECTORY_MODE, exist_ok=True)
    except OSError as exc:
        raise DestinationUnwritableError(destination_dir, str(exc)) from exc

    target = destination_dir / os.path.basename(base_name or source.name)
    try:
        os.link(source, target)
        return RelocationResult(destination=destination_dir, linked=True)
    except FileExistsError as exc:
        # Never overwrite a file already in the library.
        raise LinkAndCopyFailedError(source, target, str(exc), "destination exists") from exc
    except OSError as exc:
        link_error = str(exc)
        logger.warning("Hard link of %s failed, falling back to copy: %s", source, exc)

    try:
        shutil.copyfile(source, target)
    except OSError as exc:
        raise LinkAndCopyFailedError(source, target, link_error, str(exc)) from exc
    return RelocationResult(destination=destination_dir, linked=False)


def relocate(source: Path, destination_dir: Path, base_name: str | None = None) -> RelocationResult:
    """Place source (a file or a directory) under destination_dir.

    A directory is reproduced as destination_dir itself. A single file is
    placed at destination_dir/<basename>, where the basename comes from
    base_name when given.

    Raises:
        SourceMissingError: source does not exist.
        DestinationUnwritableError: destination_dir cannot be created.
        LinkAndCopyFailedError: neither hard linking nor copying worked.
    """
    if not source.exists():
        raise SourceMissingError(source)

    if source.is_dir():
        parent = destination_dir.parent
        try:
            os.makedirs(parent, mode=_DIRECTORY_MODE, exist_ok=True)
        except OSError as exc:
            raise DestinationUnwritableError(parent, str(exc)) from exc
        result = _relocate_directory(source, destination_dir)
    else:
        result = _relocate_file(source, destination_dir, base_name)

    logger.debug(
        "Relocated %s -> %s (%s)",
        source, result.destination, "hard link" if result.linked else "copy",
    )
    return result


def write_sidecar(metadata: BookMetadata, destination_dir: Path) -> Path:
    """Write metadata.opf into destination_dir.

    Raises:
        SidecarWriteError: The file could not be written.
    """
    path = destination_dir / SIDECAR_NAME
    try:
        write_opf(metadata, path)
    except OSError as exc:
        raise SidecarWriteError(path, str(exc)) from exc
    return path
