# ABOUTME: Resolves audio tags to a single BookMetadata via the ASIN -> title fallback ladder.
# ABOUTME: Refuses to guess: multiple title matches surface as AmbiguousMatchError with summaries.

import logging
from dataclasses import dataclass

from earmark.metadata.provider import (
    AsinNotFoundError,
    AudibleCatalog,
    CatalogError,
    CatalogTransportError,
)
from earmark.metadata.tags import TagSet
from earmark.metadata.types import BookMetadata, canonical_directory_name

logger = logging.getLogger(__name__)


class ResolveError(Exception):
    """Base class for tag -> book resolution failures."""


class NoIdentityError(ResolveError):
    """Neither a usable ASIN nor a title tag was available."""


class NoMatchError(ResolveError):
    """The title search returned no candidates."""


class AmbiguousMatchError(ResolveError):
    """The title search returned several candidates; a human must choose."""

    def __init__(self, title: str, asins: list[str], summaries: list[str]) -> None:
        super().__init__(
            f"multiple ASINs found for title {title!r}, manual selection required: "
            + ", ".join(asins)
        )
        self.title = title
        self.asins = asins
        self.summaries = summaries


def _checked(asin: str, metadata: BookMetadata) -> BookMetadata:
    """Reject catalog records that cannot name a library directory."""
    if not metadata.asin:
        raise AsinNotFoundError(asin, detail="catalog record has no ASIN")
    if not metadata.title.strip():
        raise AsinNotFoundError(asin, detail="catalog record has no title")
    return metadata


@dataclass
class Candidate:
    """A resolvable catalog match, pre-rendered for presentation."""

    metadata: BookMetadata
    summary: str
    directory_name: str


class MetadataResolver:
    """Strict two-rung ladder over an AudibleCatalog.

    1. ASIN rung: lookup the tagged ASIN; any failure falls through.
    2. Title rung: search by title (+ artist); exactly one hit is looked up,
       zero is NoMatch, several is Ambiguous.
    """

    def __init__(self, catalog: AudibleCatalog) -> None:
        self._catalog = catalog

    def resolve(self, tags: TagSet) -> BookMetadata:
        """Resolve a TagSet to exactly one BookMetadata.

        Raises:
            NoIdentityError: No title tag and the ASIN rung did not succeed.
            NoMatchError: Title search was empty.
            AmbiguousMatchError: Title search returned more than one ASIN.
            AsinNotFoundError: The single title match could not be looked up.
            CatalogTransportError: The title rung could not reach the catalog.
        """
        if tags.audible_asin:
            try:
                metadata = _checked(tags.audible_asin, self._catalog.lookup_by_asin(tags.audible_asin))
            except AsinNotFoundError as exc:
                logger.warning(
                    "ASIN %s not found, falling back to title lookup: %s",
                    tags.audible_asin, exc,
                )
            except CatalogTransportError as exc:
                logger.warning(
                    "ASIN lookup for %s failed, falling back to title lookup: %s",
                    tags.audible_asin, exc,
                )
            else:
                logger.info("Book metadata found by ASIN asin=%s title=%s", metadata.asin, metadata.title)
                return metadata

        if not tags.title:
            raise NoIdentityError("no usable ASIN and no title tag found in audio tags")

        return self.resolve_title(tags.title, tags.artist)

    def resolve_title(self, title: str, author: str | None = None) -> BookMetadata:
        """Run only the title rung of the ladder."""
        asins = self._catalog.search_by_title(title, author)

        if not asins:
            raise NoMatchError(f"no ASINs found for title {title!r}")

        if len(asins) == 1:
            metadata = _checked(asins[0], self._catalog.lookup_by_asin(asins[0]))
            logger.info("Book metadata found by title title=%s asin=%s", title, metadata.asin)
            return metadata

        summaries = [candidate.summary for candidate in self._lookup_many(asins)]
        logger.info(
            "Multiple ASINs found for title %r, manual selection required: %s",
            title, summaries,
        )
        raise AmbiguousMatchError(title, asins, summaries)

    def lookup(self, asin: str) -> BookMetadata:
        """Fetch a chosen ASIN directly, bypassing the ladder.

        Raises:
            AsinNotFoundError: No usable record for the ASIN.
            CatalogTransportError: The catalog could not be reached.
        """
        return _checked(asin, self._catalog.lookup_by_asin(asin))

    def search_candidates(self, title: str, author: str | None = None) -> list[Candidate]:
        """Every resolvable match for a title search, in catalog order."""
        return self._lookup_many(self._catalog.search_by_title(title, author))

    def _lookup_many(self, asins: list[str]) -> list[Candidate]:
        candidates: list[Candidate] = []
        for asin in asins:
            try:
                metadata = self._catalog.lookup_by_asin(asin)
            except CatalogError as exc:
                logger.warning("Failed to get metadata for ASIN %s: %s", asin, exc)
                continue
            if not metadata.asin or not metadata.title.strip():
                continue
            candidates.append(
                Candidate(
                    metadata=metadata,
                    summary=metadata.summarize(),
                    directory_name=canonical_directory_name(metadata),
                )
            )
        return candidates
