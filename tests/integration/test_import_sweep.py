# ABOUTME: Integration tests for a full import sweep over the real HTTP clients and filesystem.
# ABOUTME: qBittorrent, the catalog, and Discord are httpx.MockTransport servers; files are hard-linked for real.

import json
import os
from pathlib import Path
from urllib.parse import parse_qs

import httpx
import pytest

from earmark.config import ImportTypeConfig, LibraryConfig
from earmark.core.importer import ImportPipeline, ImportStatus
from earmark.db import ImportHistory, open_history
from earmark.metadata.audible import AudibleCatalogClient
from earmark.metadata.http import CatalogHttpClient
from earmark.metadata.resolver import MetadataResolver
from earmark.metadata.tags import TagSet
from earmark.notifications import IMPORTED_TITLE, MANUAL_INTERVENTION_TITLE, DiscordWebhookNotifier
from earmark.torrents.paths import PathMapper
from earmark.torrents.qbittorrent import QBittorrentGateway
from earmark.torrents.types import parse_tag_list
from tests.fixtures.audnexus_responses import BOOK_RESPONSE, SEARCH_RESPONSE, SEARCH_RESPONSE_SINGLE
from tests.fixtures.fakes import FakeTagReader


class StatefulQbit:
    """In-memory qBittorrent that applies tag updates to its torrent list."""

    def __init__(self) -> None:
        self.torrents: dict[str, dict] = {}
        self.files: dict[str, list[dict]] = {}

    def add(self, torrent_hash: str, name: str, content_path: str, files: list[str]) -> None:
        self.torrents[torrent_hash] = {
            "hash": torrent_hash,
            "name": name,
            "category": "audiobooks",
            "tags": "",
            "save_path": "/data/torrents",
            "content_path": content_path,
        }
        self.files[torrent_hash] = [{"name": f, "size": 1} for f in files]

    def tags(self, torrent_hash: str) -> set[str]:
        return parse_tag_list(self.torrents[torrent_hash]["tags"])

    def handler(self, request: httpx.Request) -> httpx.Response:
        endpoint = request.url.path.removeprefix("/api/v2/")
        if endpoint == "auth/login":
            return httpx.Response(200, text="Ok.")
        if endpoint == "torrents/info":
            category = request.url.params.get("category")
            rows = [t for t in self.torrents.values() if not category or t["category"] == category]
            return httpx.Response(200, json=rows)
        if endpoint == "torrents/files":
            return httpx.Response(200, json=self.files[request.url.params["hash"]])
        if endpoint in ("torrents/addTags", "torrents/removeTags"):
            form = parse_qs(request.content.decode())
            for torrent_hash in form["hashes"][0].split("|"):
                current = self.tags(torrent_hash)
                tag = form["tags"][0]
                current = current | {tag} if endpoint.endswith("addTags") else current - {tag}
                self.torrents[torrent_hash]["tags"] = ", ".join(sorted(current))
            return httpx.Response(200)
        return httpx.Response(404)


def catalog_handler(request: httpx.Request) -> httpx.Response:
    """Audible search and Audnexus lookup, keyed on the request."""
    if request.url.path.endswith("/catalog/products"):
        title = request.url.params.get("title")
        if title == "The Way of Kings":
            return httpx.Response(200, json=SEARCH_RESPONSE_SINGLE)
        return httpx.Response(200, json=SEARCH_RESPONSE)
    if request.url.path == "/books/B0036UC2LO":
        return httpx.Response(200, json=BOOK_RESPONSE)
    return httpx.Response(404, json={"error": "Book not found"})


@pytest.fixture
def qbit() -> StatefulQbit:
    return StatefulQbit()


@pytest.fixture
def webhook_posts() -> list[dict]:
    return []


@pytest.fixture
def history(tmp_path: Path) -> ImportHistory:
    store = ImportHistory(open_history(tmp_path / "history.db"))
    yield store
    store.close()


@pytest.fixture
def sweep_pipeline(
    qbit: StatefulQbit,
    downloads: Path,
    library_root: Path,
    tag_reader: FakeTagReader,
    webhook_posts: list[dict],
    history: ImportHistory,
) -> ImportPipeline:
    def discord(request: httpx.Request) -> httpx.Response:
        webhook_posts.append(json.loads(request.content))
        return httpx.Response(204)

    gateway = QBittorrentGateway("http://qbit.test", "admin", "pw", transport=httpx.MockTransport(qbit.handler))
    catalog = AudibleCatalogClient(
        CatalogHttpClient(min_request_interval=0, transport=httpx.MockTransport(catalog_handler)),
    )
    notifier = DiscordWebhookNotifier("discord", "https://discord.test/hook", transport=httpx.MockTransport(discord))
    return ImportPipeline(
        gateway,
        PathMapper("/data/torrents/", str(downloads)),
        tag_reader,
        MetadataResolver(catalog),
        libraries=[LibraryConfig(name="audiobooks", path=library_root)],
        import_types=[ImportTypeConfig(category="audiobooks", library="audiobooks", notification="discord")],
        notifiers={"discord": notifier},
        history=history,
    )


def _write(path: Path, data: bytes = b"audio") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


class TestImportSweep:
    """A sweep from qBittorrent listing to library directory."""

    def test_asin_import_end_to_end(
        self, sweep_pipeline, qbit, downloads, library_root, tag_reader, webhook_posts, history,
    ) -> None:
        """Tagged by ASIN: hard-linked, sidecar written, tagged, notified, recorded."""
        source = _write(downloads / "Way of Kings" / "part1.m4b")
        _write(downloads / "Way of Kings" / "cover.jpg", b"jpg")
        qbit.add("h1", "Way of Kings", "/data/torrents/Way of Kings", ["Way of Kings/part1.m4b", "Way of Kings/cover.jpg"])
        tag_reader.tags = TagSet(audible_asin="http://www.audible.com/pd/B0036UC2LO")

        result = sweep_pipeline.run_all()[0]

        destination = library_root / "The Way of Kings - The Stormlight Archive - Book 1"
        assert result.imported == 1
        assert qbit.tags("h1") == {"imported"}
        assert os.stat(destination / "part1.m4b").st_ino == os.stat(source).st_ino
        assert (destination / "cover.jpg").exists()

        opf = (destination / "metadata.opf").read_text(encoding="utf-8")
        assert "<dc:title>The Way of Kings</dc:title>" in opf
        assert 'opf:role="nrt">Kate Reading</dc:creator>' in opf
        assert 'content="The Stormlight Archive"' in opf

        assert webhook_posts[0]["embeds"][0]["title"] == IMPORTED_TITLE
        record = history.latest_for_hash("h1")
        assert record.status == ImportStatus.IMPORTED.value
        assert record.asin == "B0036UC2LO"

    def test_title_search_single_match(
        self, sweep_pipeline, qbit, downloads, library_root, tag_reader,
    ) -> None:
        _write(downloads / "wok.mp3")
        qbit.add("h2", "wok", "/data/torrents/wok.mp3", ["wok.mp3"])
        tag_reader.tags = TagSet(title="The Way of Kings", artist="Brandon Sanderson")

        sweep_pipeline.run_all()

        assert (library_root / "The Way of Kings - The Stormlight Archive - Book 1" / "wok.mp3").exists()
        assert qbit.tags("h2") == {"imported"}

    def test_ambiguous_title_parks_torrent(
        self, sweep_pipeline, qbit, downloads, library_root, tag_reader, webhook_posts,
    ) -> None:
        """Several search hits park the torrent with candidate summaries in the reason."""
        _write(downloads / "book.m4b")
        qbit.add("h3", "book", "/data/torrents/book.m4b", ["book.m4b"])
        tag_reader.tags = TagSet(title="Stormlight")

        outcome = sweep_pipeline.run_all()[0].outcomes[0]

        assert qbit.tags("h3") == {"manual-intervention"}
        assert "The Way of Kings by Brandon Sanderson" in outcome.reason
        assert list(library_root.iterdir()) == []
        embed = webhook_posts[0]["embeds"][0]
        assert embed["title"] == MANUAL_INTERVENTION_TITLE
        assert embed["fields"][1]["value"] == "h3"

    def test_parked_torrent_not_retried(
        self, sweep_pipeline, qbit, downloads, tag_reader,
    ) -> None:
        _write(downloads / "book.m4b")
        qbit.add("h4", "book", "/data/torrents/book.m4b", ["book.m4b"])
        tag_reader.tags = TagSet()

        sweep_pipeline.run_all()
        second = sweep_pipeline.run_all()[0]

        assert second.outcomes == []
        assert tag_reader.paths == [downloads / "book.m4b"]

    def test_manual_resolution_after_parking(
        self, sweep_pipeline, qbit, downloads, library_root, tag_reader,
    ) -> None:
        """A parked torrent resolved by ASIN ends with only the imported tag."""
        _write(downloads / "book.m4b")
        qbit.add("h5", "book", "/data/torrents/book.m4b", ["book.m4b"])
        tag_reader.tags = TagSet(title="Stormlight")
        sweep_pipeline.run_all()
        assert [t.hash for t in sweep_pipeline.pending("audiobooks")] == ["h5"]

        sweep_pipeline.import_with_asin("h5", "B0036UC2LO")

        assert qbit.tags("h5") == {"imported"}
        assert sweep_pipeline.pending("audiobooks") == []
        assert (library_root / "The Way of Kings - The Stormlight Archive - Book 1" / "book.m4b").exists()
