# ABOUTME: Shared pytest fixtures for earmark tests.
# ABOUTME: Provides fake collaborators, library config, and a ready-to-run import pipeline.

import logging
from pathlib import Path

import pytest

from earmark.config import ImportTypeConfig, LibraryConfig
from earmark.core.importer import ImportPipeline
from earmark.metadata.resolver import MetadataResolver
from earmark.torrents.paths import PathMapper
from tests.fixtures.fakes import FakeCatalog, FakeGateway, FakeNotifier, FakeTagReader


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo any logging setup a CLI test performed on the earmark logger."""
    yield
    logger = logging.getLogger("earmark")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def library_root(tmp_path: Path) -> Path:
    root = tmp_path / "library"
    root.mkdir()
    return root


@pytest.fixture
def library(library_root: Path) -> LibraryConfig:
    return LibraryConfig(name="audiobooks", path=library_root)


@pytest.fixture
def import_type() -> ImportTypeConfig:
    return ImportTypeConfig(category="audiobooks", library="audiobooks", notification="discord")


@pytest.fixture
def downloads(tmp_path: Path) -> Path:
    """Local view of the torrent client's download root."""
    root = tmp_path / "downloads"
    root.mkdir()
    return root


@pytest.fixture
def mapper(downloads: Path) -> PathMapper:
    return PathMapper(remote_root="/remote", local_root=str(downloads))


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def tag_reader() -> FakeTagReader:
    return FakeTagReader()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def pipeline(
    gateway: FakeGateway,
    mapper: PathMapper,
    tag_reader: FakeTagReader,
    catalog: FakeCatalog,
    library: LibraryConfig,
    import_type: ImportTypeConfig,
    notifier: FakeNotifier,
) -> ImportPipeline:
    return ImportPipeline(
        gateway,
        mapper,
        tag_reader,
        MetadataResolver(catalog),
        libraries=[library],
        import_types=[import_type],
        notifiers={"discord": notifier},
    )
