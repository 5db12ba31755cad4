# ABOUTME: End-to-end tests for the earmark CLI.
# ABOUTME: Runs commands via Click's CliRunner with a real config file and fake torrent client, probe, and catalog.

from pathlib import Path

import pytest
from click.testing import CliRunner

from earmark.cli import cli, runtime
from earmark.db import ImportHistory, open_history
from earmark.metadata.resolver import MetadataResolver
from earmark.metadata.tags import TagSet
from earmark.torrents.types import Torrent
from tests.fixtures.fakes import TRANSPORT_ERROR, FakeCatalog, FakeGateway, FakeTagReader, make_metadata


@pytest.fixture
def config_file(tmp_path: Path, downloads: Path, library_root: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(
        f"""\
logging:
  level: none
qbit:
  url: http://qbit.invalid
  downloadPath: /remote
  localDownloadPath: {downloads}
importers:
  historyPath: {tmp_path / "history.db"}
  audiobooks:
    libraries:
      - name: audiobooks
        path: {library_root}
    importTypes:
      - category: audiobooks
        library: audiobooks
"""
    )
    return path


@pytest.fixture
def wired(
    monkeypatch: pytest.MonkeyPatch,
    gateway: FakeGateway,
    catalog: FakeCatalog,
    tag_reader: FakeTagReader,
) -> FakeGateway:
    """Swap the network- and process-facing collaborators for fakes."""
    monkeypatch.setattr(runtime, "build_gateway", lambda config: gateway)
    monkeypatch.setattr(runtime, "build_resolver", lambda config: MetadataResolver(catalog))
    monkeypatch.setattr(runtime, "FFProbeTagReader", lambda *args, **kwargs: tag_reader)
    return gateway


def _add_book(gateway: FakeGateway, downloads: Path, torrent_hash: str, tags: str = "") -> None:
    (downloads / "book.m4b").write_bytes(b"audio")
    gateway.add(
        Torrent(
            hash=torrent_hash,
            name="Book One",
            category="audiobooks",
            tags=tags,
            save_path="/remote",
            content_path="/remote/book.m4b",
        ),
        ["book.m4b"],
    )


class TestCliRun:
    """E2e tests for `earmark run`."""

    def test_imports_and_reports(
        self, config_file, wired, downloads, catalog, tag_reader, library_root,
    ) -> None:
        """A single sweep imports the torrent and prints the summary table."""
        _add_book(wired, downloads, "h1")
        tag_reader.tags = TagSet(audible_asin="B1")
        catalog.books["B1"] = make_metadata("B1", "Foo", ["Alice"])

        result = CliRunner().invoke(cli, ["run", "--config", str(config_file)])

        assert result.exit_code == 0, result.output
        assert "audiobooks" in result.output
        assert "Imported:" in result.output
        assert wired.tags_of("h1") == {"imported"}
        assert (library_root / "Foo" / "book.m4b").exists()

    def test_manual_reason_printed(self, config_file, wired, downloads, tag_reader) -> None:
        _add_book(wired, downloads, "h1")
        tag_reader.tags = TagSet(audible_asin="BAD")

        result = CliRunner().invoke(cli, ["run", "--config", str(config_file)])

        assert result.exit_code == 0
        assert "resolve: no usable ASIN" in result.output
        assert wired.tags_of("h1") == {"manual-intervention"}

    def test_unknown_category(self, config_file, wired) -> None:
        result = CliRunner().invoke(cli, ["run", "--category", "movies", "--config", str(config_file)])
        assert result.exit_code == 1
        assert "No import type configured" in result.output

    def test_invalid_config_exits_1(self, tmp_path: Path) -> None:
        """A config that fails validation is reported, not raised."""
        bad = tmp_path / "bad.yaml"
        bad.write_text("importers:\n  importedTag: x\n  manualInterventionTag: x\n")
        result = CliRunner().invoke(cli, ["run", "--config", str(bad)])
        assert result.exit_code == 1


class TestCliPending:
    """E2e tests for `earmark pending`."""

    def test_lists_parked_torrents(self, config_file, wired, downloads) -> None:
        _add_book(wired, downloads, "h1", tags="manual-intervention")
        result = CliRunner().invoke(cli, ["pending", "--config", str(config_file)])
        assert result.exit_code == 0
        assert "Book One" in result.output
        assert "1 torrent(s) pending" in result.output

    def test_nothing_pending(self, config_file, wired) -> None:
        result = CliRunner().invoke(cli, ["pending", "--config", str(config_file)])
        assert result.exit_code == 0
        assert "Nothing needs manual intervention" in result.output

    def test_gateway_error(self, config_file, wired) -> None:
        wired.fail_list = True
        result = CliRunner().invoke(cli, ["pending", "--config", str(config_file)])
        assert result.exit_code == 1
        assert "connection refused" in result.output


class TestCliSearch:
    """E2e tests for `earmark search`."""

    def test_shows_candidates(self, config_file, wired, catalog) -> None:
        catalog.searches["Foo"] = ["B1", "B2"]
        catalog.books["B1"] = make_metadata("B1", "Foo", ["Alice"])
        catalog.books["B2"] = make_metadata("B2", "Foo", ["Bob"], series=("Saga", "1"))

        result = CliRunner().invoke(cli, ["search", "Foo", "--config", str(config_file)])

        assert result.exit_code == 0
        assert "B1" in result.output
        assert "Foo - Saga - Book 1" in result.output
        assert "2 result(s)" in result.output

    def test_no_results(self, config_file, wired) -> None:
        result = CliRunner().invoke(cli, ["search", "Nothing", "--config", str(config_file)])
        assert result.exit_code == 0
        assert "No results found" in result.output

    def test_catalog_error(self, config_file, wired, catalog) -> None:
        catalog.searches["Foo"] = TRANSPORT_ERROR
        result = CliRunner().invoke(cli, ["search", "Foo", "--config", str(config_file)])
        assert result.exit_code == 1


class TestCliResolve:
    """E2e tests for `earmark resolve`."""

    def test_imports_with_asin(self, config_file, wired, downloads, catalog, library_root) -> None:
        """A parked torrent is imported under the chosen ASIN and unparked."""
        _add_book(wired, downloads, "h1", tags="manual-intervention")
        catalog.books["B1"] = make_metadata("B1", "Foo", ["Alice"])

        result = CliRunner().invoke(cli, ["resolve", "h1", "B1", "--config", str(config_file)])

        assert result.exit_code == 0, result.output
        assert "Imported" in result.output
        assert wired.tags_of("h1") == {"imported"}
        assert (library_root / "Foo" / "metadata.opf").exists()

    def test_unknown_asin_fails(self, config_file, wired, downloads) -> None:
        _add_book(wired, downloads, "h1", tags="manual-intervention")
        result = CliRunner().invoke(cli, ["resolve", "h1", "B404", "--config", str(config_file)])
        assert result.exit_code == 1
        assert "Import failed" in result.output
        assert wired.tags_of("h1") == {"manual-intervention"}


class TestCliHistory:
    """E2e tests for `earmark history`."""

    def test_shows_recorded_outcomes(self, config_file, tmp_path: Path) -> None:
        store = ImportHistory(open_history(tmp_path / "history.db"))
        store.record(torrent_hash="h1", name="Book One", status="imported", asin="B1")
        store.record(torrent_hash="h2", name="Book Two", status="manual_intervention", reason="extract: x")
        store.close()

        result = CliRunner().invoke(
            cli, ["history", "--status", "manual_intervention", "--config", str(config_file)],
        )

        assert result.exit_code == 0
        assert "Book Two" in result.output
        assert "Book One" not in result.output

    def test_empty_history(self, config_file) -> None:
        result = CliRunner().invoke(cli, ["history", "--config", str(config_file)])
        assert result.exit_code == 0
        assert "No history recorded" in result.output

    def test_rejects_unknown_status(self, config_file) -> None:
        result = CliRunner().invoke(cli, ["history", "--status", "done", "--config", str(config_file)])
        assert result.exit_code == 2


class TestCliVersion:
    def test_version(self) -> None:
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "earmark" in result.output
