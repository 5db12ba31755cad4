# ABOUTME: Audiobook import pipeline: extract tags, resolve metadata, relocate, then tag the torrent.
# ABOUTME: The torrent client's tag set is the only durable state; every run ends in a terminal tag or untagged.

import enum
import logging
import sqlite3
import threading
from dataclasses import dataclass, field
from pathlib import Path

from earmark.config import ConfigError, ImportTypeConfig, LibraryConfig, find_library_by_name
from earmark.core.relocator import RelocationError, relocate, write_sidecar
from earmark.core.source import NoAudioFilesError, classify_source
from earmark.db.history import ImportHistory
from earmark.metadata.provider import CatalogError
from earmark.metadata.resolver import AmbiguousMatchError, Candidate, MetadataResolver, ResolveError
from earmark.metadata.tags import ProbeError, TagReader, TagSet
from earmark.metadata.types import BookMetadata, canonical_directory_name
from earmark.notifications import (
    Notifier,
    NotifierError,
    WebhookMessage,
    build_imported_message,
    build_manual_intervention_message,
)
from earmark.torrents.gateway import (
    DEFAULT_IMPORTED_TAG,
    DEFAULT_MANUAL_INTERVENTION_TAG,
    TorrentGateway,
    TorrentGatewayError,
    get_manual_intervention_in_category,
    get_unimported_in_category,
)
from earmark.torrents.paths import PathMapper
from earmark.torrents.types import Torrent

logger = logging.getLogger(__name__)

STEP_EXTRACT = "extract"
STEP_RESOLVE = "resolve"
STEP_RELOCATE = "relocate"


class SweepCancelled(Exception):
    """Raised when the cancellation event is set mid-sweep."""


class ImportStatus(enum.Enum):
    IMPORTED = "imported"
    MANUAL_INTERVENTION = "manual_intervention"
    UNTAGGED = "untagged"


@dataclass
class ImportOutcome:
    """What happened to one torrent."""

    torrent: Torrent
    status: ImportStatus
    reason: str | None = None
    destination: Path | None = None
    metadata: BookMetadata | None = None


@dataclass
class SweepResult:
    """Outcomes of one sweep over one category, in processing order."""

    category: str
    outcomes: list[ImportOutcome] = field(default_factory=list)

    def _count(self, status: ImportStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status is status)

    @property
    def imported(self) -> int:
        return self._count(ImportStatus.IMPORTED)

    @property
    def manual(self) -> int:
        return self._count(ImportStatus.MANUAL_INTERVENTION)

    @property
    def untagged(self) -> int:
        return self._count(ImportStatus.UNTAGGED)


class _StepFailure(Exception):
    def __init__(self, step: str, cause: Exception) -> None:
        super().__init__(format_reason(step, cause))
        self.step = step
        self.cause = cause


def format_reason(step: str, error: Exception) -> str:
    """Single-line "<step>: <error>" text for tags, notifications, and history.

    Ambiguous matches carry their candidate summaries so a human can choose.
    """
    text = " ".join(str(error).split()) or type(error).__name__
    if isinstance(error, AmbiguousMatchError) and error.summaries:
        text += ": " + "; ".join(" ".join(s.split()) for s in error.summaries)
    return f"{step}: {text}"


class ImportPipeline:
    """Drives torrents from unprocessed to a terminal tag.

    Collaborators are injected so tests can substitute fakes for the torrent
    client, the probe, and the catalog.
    """

    def __init__(
        self,
        gateway: TorrentGateway,
        mapper: PathMapper,
        tag_reader: TagReader,
        resolver: MetadataResolver,
        *,
        libraries: list[LibraryConfig],
        import_types: list[ImportTypeConfig],
        notifiers: dict[str, Notifier] | None = None,
        imported_tag: str = DEFAULT_IMPORTED_TAG,
        manual_tag: str = DEFAULT_MANUAL_INTERVENTION_TAG,
        history: ImportHistory | None = None,
        cancel: threading.Event | None = None,
    ) -> None:
        self._gateway = gateway
        self._mapper = mapper
        self._tag_reader = tag_reader
        self._resolver = resolver
        self._libraries = libraries
        self._import_types = import_types
        self._notifiers = notifiers or {}
        self._imported_tag = imported_tag
        self._manual_tag = manual_tag
        self._history = history
        self.cancel = cancel or threading.Event()

    @property
    def import_types(self) -> list[ImportTypeConfig]:
        return list(self._import_types)

    # --- Sweeps ---

    def run_all(self) -> list[SweepResult]:
        """Sweep every configured import type in order.

        A category whose torrents cannot be listed is logged and skipped;
        the remaining categories still run.
        """
        results: list[SweepResult] = []
        for import_type in self._import_types:
            self._check_cancel()
            try:
                results.append(self.run_once(import_type))
            except (TorrentGatewayError, ConfigError) as exc:
                logger.error("Sweep failed for category %r: %s", import_type.category, exc)
        return results

    def run_once(self, import_type: ImportTypeConfig) -> SweepResult:
        """Import every unimported torrent in one category, sequentially.

        Raises:
            ConfigError: The import type names an unknown library.
            TorrentGatewayError: The category could not be listed.
            SweepCancelled: The cancellation event was set.
        """
        library = self._library(import_type.library)
        torrents = get_unimported_in_category(
            self._gateway, import_type.category, self._imported_tag, self._manual_tag,
        )
        logger.info("Sweeping category %r: %d torrent(s) to import", import_type.category, len(torrents))

        result = SweepResult(category=import_type.category)
        for torrent in torrents:
            self._check_cancel()
            result.outcomes.append(self.import_one(torrent, import_type, library))

        logger.info(
            "Category %r done: %d imported, %d manual intervention, %d untagged",
            import_type.category, result.imported, result.manual, result.untagged,
        )
        return result

    def pending(self, category: str) -> list[Torrent]:
        """Torrents in a category parked for manual intervention."""
        return get_manual_intervention_in_category(
            self._gateway, category, self._imported_tag, self._manual_tag,
        )

    # --- Single torrent ---

    def import_one(
        self, torrent: Torrent, import_type: ImportTypeConfig, library: LibraryConfig,
    ) -> ImportOutcome:
        """Run one torrent through extract, resolve, relocate, and tagging.

        Extract, resolve, and relocate failures tag the torrent for manual
        intervention. A failure to apply the imported tag leaves it untagged
        for the next sweep.

        Raises:
            SweepCancelled: The cancellation event was set between steps.
        """
        logger.info("Importing torrent name=%s hash=%s", torrent.name, torrent.hash)
        try:
            tags = self._extract(torrent)
            self._check_cancel()
            metadata = self._resolve(tags)
            self._check_cancel()
            destination = self._relocate(torrent, metadata, library)
        except _StepFailure as failure:
            logger.error(
                "Import failed name=%s hash=%s step=%s error=%s",
                torrent.name, torrent.hash, failure.step, failure.cause,
            )
            return self._mark_manual(torrent, import_type, str(failure))

        self._check_cancel()
        return self._mark_imported(torrent, import_type, metadata, destination)

    def import_with_asin(
        self, torrent_hash: str, asin: str, library_name: str | None = None,
    ) -> ImportOutcome:
        """Manually import a torrent as the book with the given ASIN.

        Skips tag extraction and the resolver ladder. Without library_name the
        library of the import type matching the torrent's category is used.
        On success the manual-intervention tag is removed; failures are
        raised, not tagged.

        Raises:
            TorrentGatewayError: The torrent does not exist or cannot be read.
            ConfigError: No library could be determined.
            CatalogError: The ASIN cannot be looked up.
            RelocationError: Files could not be placed into the library.
        """
        torrent = self._gateway.get_torrent(torrent_hash)
        if torrent is None:
            raise TorrentGatewayError(f"no torrent with hash {torrent_hash}")
        library = self._library(library_name or self._library_for_category(torrent.category))

        metadata = self._resolver.lookup(asin)
        destination = self._place(torrent, metadata, library)

        import_type = self._import_type_for(torrent.category, library.name)
        self._gateway.add_tags([torrent.hash], self._imported_tag)
        logger.info("Manually imported name=%s hash=%s asin=%s", torrent.name, torrent.hash, asin)
        self._remove_manual_tag(torrent)

        outcome = ImportOutcome(
            torrent=torrent,
            status=ImportStatus.IMPORTED,
            destination=destination,
            metadata=metadata,
        )
        self._record(outcome)
        if import_type is not None:
            self._notify(import_type.notification, build_imported_message(metadata))
        return outcome

    def search_candidates(self, title: str, author: str | None = None) -> list[Candidate]:
        return self._resolver.search_candidates(title, author)

    # --- Steps ---

    def _extract(self, torrent: Torrent) -> TagSet:
        try:
            files = self._mapper.map_files(torrent, self._gateway.list_files(torrent.hash))
            source = classify_source(files)
            representative = source.representative()
            logger.debug(
                "Source for name=%s hash=%s is %s, reading tags from %s",
                torrent.name, torrent.hash, source.kind.value, representative.local_path,
            )
            return self._tag_reader.read(representative.local_path, cancel=self.cancel)
        except ProbeError as exc:
            if exc.canceled:
                raise SweepCancelled(str(exc)) from exc
            raise _StepFailure(STEP_EXTRACT, exc) from exc
        except (NoAudioFilesError, TorrentGatewayError) as exc:
            raise _StepFailure(STEP_EXTRACT, exc) from exc

    def _resolve(self, tags: TagSet) -> BookMetadata:
        try:
            return self._resolver.resolve(tags)
        except (ResolveError, CatalogError) as exc:
            raise _StepFailure(STEP_RESOLVE, exc) from exc

    def _relocate(self, torrent: Torrent, metadata: BookMetadata, library: LibraryConfig) -> Path:
        try:
            return self._place(torrent, metadata, library)
        except RelocationError as exc:
            raise _StepFailure(STEP_RELOCATE, exc) from exc

    def _place(self, torrent: Torrent, metadata: BookMetadata, library: LibraryConfig) -> Path:
        destination = library.path / canonical_directory_name(metadata)
        source = self._mapper.map_content_path(torrent)
        relocate(source, destination, base_name=source.name)
        write_sidecar(metadata, destination)
        logger.info(
            "Relocated name=%s hash=%s to %s", torrent.name, torrent.hash, destination,
        )
        return destination

    # --- Terminal transitions ---

    def _mark_imported(
        self,
        torrent: Torrent,
        import_type: ImportTypeConfig,
        metadata: BookMetadata,
        destination: Path,
    ) -> ImportOutcome:
        try:
            self._gateway.add_tags([torrent.hash], self._imported_tag)
        except TorrentGatewayError as exc:
            logger.error(
                "Failed to mark as imported name=%s hash=%s error=%s",
                torrent.name, torrent.hash, exc,
            )
            outcome = ImportOutcome(
                torrent=torrent,
                status=ImportStatus.UNTAGGED,
                reason=f"tag imported: {exc}",
                destination=destination,
                metadata=metadata,
            )
            self._record(outcome)
            return outcome

        logger.info("Marked torrent as imported name=%s hash=%s", torrent.name, torrent.hash)
        if torrent.has_tag(self._manual_tag):
            self._remove_manual_tag(torrent)

        outcome = ImportOutcome(
            torrent=torrent,
            status=ImportStatus.IMPORTED,
            destination=destination,
            metadata=metadata,
        )
        self._record(outcome)
        self._notify(import_type.notification, build_imported_message(metadata))
        return outcome

    def _mark_manual(self, torrent: Torrent, import_type: ImportTypeConfig, reason: str) -> ImportOutcome:
        try:
            self._gateway.add_tags([torrent.hash], self._manual_tag)
        except TorrentGatewayError as exc:
            logger.error(
                "Failed to add manual intervention tag name=%s hash=%s error=%s",
                torrent.name, torrent.hash, exc,
            )
            outcome = ImportOutcome(torrent=torrent, status=ImportStatus.UNTAGGED, reason=reason)
            self._record(outcome)
            return outcome

        logger.info(
            "Marked torrent for manual intervention name=%s hash=%s reason=%s",
            torrent.name, torrent.hash, reason,
        )
        outcome = ImportOutcome(torrent=torrent, status=ImportStatus.MANUAL_INTERVENTION, reason=reason)
        self._record(outcome)
        self._notify(
            import_type.notification,
            build_manual_intervention_message(torrent.name, torrent.hash, reason),
        )
        return outcome

    def _remove_manual_tag(self, torrent: Torrent) -> None:
        try:
            self._gateway.remove_tags([torrent.hash], self._manual_tag)
        except TorrentGatewayError as exc:
            logger.warning(
                "Failed to remove manual intervention tag name=%s hash=%s error=%s",
                torrent.name, torrent.hash, exc,
            )

    # --- Side channels ---

    def _notify(self, notifier_name: str | None, message: WebhookMessage) -> None:
        if not notifier_name:
            return
        notifier = self._notifiers.get(notifier_name)
        if notifier is None:
            logger.error("Notifier %r not found", notifier_name)
            return
        try:
            notifier.send(message)
        except NotifierError as exc:
            logger.error("Failed to send notification via %s: %s", notifier_name, exc)

    def _record(self, outcome: ImportOutcome) -> None:
        if self._history is None:
            return
        metadata = outcome.metadata
        try:
            self._history.record(
                torrent_hash=outcome.torrent.hash,
                name=outcome.torrent.name,
                category=outcome.torrent.category,
                status=outcome.status.value,
                reason=outcome.reason,
                asin=metadata.asin if metadata else None,
                title=metadata.title if metadata else None,
                destination=outcome.destination,
            )
        except sqlite3.Error as exc:
            logger.error("Failed to record import history hash=%s: %s", outcome.torrent.hash, exc)

    # --- Helpers ---

    def _check_cancel(self) -> None:
        if self.cancel.is_set():
            raise SweepCancelled("import sweep cancelled")

    def _library(self, name: str) -> LibraryConfig:
        library = find_library_by_name(self._libraries, name)
        if library is None:
            raise ConfigError(f"unknown library {name!r}")
        return library

    def _import_type_for(self, category: str, library_name: str) -> ImportTypeConfig | None:
        for import_type in self._import_types:
            if import_type.category == category and import_type.library == library_name:
                return import_type
        return None

    def _library_for_category(self, category: str) -> str:
        for import_type in self._import_types:
            if import_type.category == category:
                return import_type.library
        raise ConfigError(f"no import type for category {category!r}; pass a library name")
