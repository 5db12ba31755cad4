# ABOUTME: Parsing functions for Audible search and Audnexus book JSON responses.
# ABOUTME: Converts catalog-specific data structures into BookMetadata instances.

from typing import Any

from earmark.metadata.types import BookMetadata, Genre, Person, Series


def _text(value: Any) -> str | None:
    """Return a stripped string, or None for missing/blank values."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_people(entries: Any) -> list[Person]:
    people: list[Person] = []
    for entry in entries or []:
        if not isinstance(entry, dict):
            continue
        name = _text(entry.get("name"))
        if name:
            people.append(Person(name=name, catalog_id=_text(entry.get("asin"))))
    return people


def _parse_series(entry: Any) -> Series | None:
    if not isinstance(entry, dict):
        return None
    name = _text(entry.get("name"))
    if not name:
        return None
    return Series(
        name=name,
        catalog_id=_text(entry.get("asin")),
        position=_text(entry.get("position")),
    )


def _parse_genres(entries: Any) -> list[Genre]:
    genres: list[Genre] = []
    for entry in entries or []:
        if not isinstance(entry, dict):
            continue
        name = _text(entry.get("name"))
        if name:
            genres.append(
                Genre(
                    name=name,
                    catalog_id=_text(entry.get("asin")),
                    kind=_text(entry.get("type")),
                )
            )
    return genres


def parse_book_response(data: dict[str, Any]) -> BookMetadata:
    """Parse an Audnexus /books/<asin> response into BookMetadata.

    Missing optional fields become None or empty lists. The ASIN is taken
    verbatim from the payload; callers decide whether an empty one is usable.
    """
    runtime = data.get("runtimeLengthMin")
    try:
        runtime_minutes = int(runtime) if runtime is not None else None
    except (TypeError, ValueError):
        runtime_minutes = None

    return BookMetadata(
        asin=_text(data.get("asin")) or "",
        title=_text(data.get("title")) or "",
        authors=_parse_people(data.get("authors")),
        narrators=_parse_people(data.get("narrators")),
        publisher_name=_text(data.get("publisherName")) or "",
        language=_text(data.get("language")) or "",
        release_date=_text(data.get("releaseDate")),
        primary_series=_parse_series(data.get("seriesPrimary")),
        secondary_series=_parse_series(data.get("seriesSecondary")),
        subtitle=_text(data.get("subtitle")),
        summary=_text(data.get("summary")) or "",
        description=_text(data.get("description")) or "",
        genres=_parse_genres(data.get("genres")),
        isbn=_text(data.get("isbn")),
        image=_text(data.get("image")),
        runtime_minutes=runtime_minutes,
        format_type=_text(data.get("formatType")),
        region=_text(data.get("region")),
    )


def parse_search_response(data: dict[str, Any], limit: int | None = None) -> list[str]:
    """Extract product ASINs from an Audible catalog search response.

    Order is preserved (the catalog sorts by relevance); entries without an
    ASIN and repeated ASINs are dropped.
    """
    asins: list[str] = []
    for product in data.get("products", []) or []:
        if not isinstance(product, dict):
            continue
        asin = _text(product.get("asin"))
        if asin and asin not in asins:
            asins.append(asin)
    if limit is not None:
        return asins[:limit]
    return asins
