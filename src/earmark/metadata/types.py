# ABOUTME: Core metadata data structures for audiobook identity and catalog records.
# ABOUTME: BookMetadata is the interchange format between catalog lookup, naming, and sidecar writing.

from dataclasses import dataclass, field

_SUMMARY_TITLE_LIMIT = 80
_SUMMARY_TITLE_CUT = 77

AUDIBLE_PRODUCT_URL = "https://www.audible.com/pd/"


@dataclass(frozen=True)
class Person:
    """An author or narrator credit, with the catalog's own ID when known."""

    name: str
    catalog_id: str | None = None


@dataclass(frozen=True)
class Genre:
    name: str
    catalog_id: str | None = None
    kind: str | None = None


@dataclass(frozen=True)
class Series:
    """A series membership. Position is kept as the catalog's string ("2", "1.5")."""

    name: str
    catalog_id: str | None = None
    position: str | None = None


@dataclass
class BookMetadata:
    """Canonical per-book record returned by the audiobook catalog.

    This is the central data structure of the import pipeline:
    catalog lookup -> directory naming -> sidecar writing -> notification.
    An instance with an empty ASIN is never a successful lookup.
    """

    asin: str
    title: str
    authors: list[Person] = field(default_factory=list)
    narrators: list[Person] = field(default_factory=list)
    publisher_name: str = ""
    language: str = ""
    release_date: str | None = None
    primary_series: Series | None = None
    secondary_series: Series | None = None
    subtitle: str | None = None
    summary: str = ""
    description: str = ""
    genres: list[Genre] = field(default_factory=list)
    isbn: str | None = None
    image: str | None = None
    runtime_minutes: int | None = None
    format_type: str | None = None
    region: str | None = None

    @property
    def author(self) -> str:
        """Convenience property: comma-joined author names for display."""
        return ", ".join(person.name for person in self.authors)

    @property
    def narrator(self) -> str:
        return ", ".join(person.name for person in self.narrators)

    @property
    def series_label(self) -> str | None:
        """'Series - Book N' when the book belongs to a primary series."""
        if self.primary_series is None:
            return None
        label = self.primary_series.name
        if self.primary_series.position:
            label += f" - Book {self.primary_series.position}"
        return label

    @property
    def catalog_url(self) -> str:
        return f"{AUDIBLE_PRODUCT_URL}{self.asin}"

    def summarize(self) -> str:
        """One-line human-readable description used to present candidates.

        Format: "<title> by <a1> & <a2> - <series> <pos> (ASIN: <asin>)",
        with the title cut to 80 characters (ellipsis at 77).
        """
        title = self.title
        if len(title) > _SUMMARY_TITLE_LIMIT:
            title = title[:_SUMMARY_TITLE_CUT] + "..."

        if not self.authors:
            return title

        parts = [title, " by ", " & ".join(person.name for person in self.authors)]
        if self.primary_series is not None:
            parts.append(f" - {self.primary_series.name}")
            if self.primary_series.position:
                parts.append(f" {self.primary_series.position}")
        parts.append(f" (ASIN: {self.asin})")
        return "".join(parts)


def directory_name(metadata: BookMetadata) -> str:
    """Render the library directory name for a book, before sanitizing.

    "<Title>", then " - <Series>" and " - Book <Position>" when present.
    """
    name = metadata.title
    series = metadata.primary_series
    if series is not None:
        name += f" - {series.name}"
        if series.position:
            name += f" - Book {series.position}"
    return name


def sanitize_name(name: str) -> str:
    """Replace path separators so the name is a single directory component."""
    return name.replace("/", "-")


def canonical_directory_name(metadata: BookMetadata) -> str:
    """The sanitized directory name downstream library scanners key off."""
    return sanitize_name(directory_name(metadata))
