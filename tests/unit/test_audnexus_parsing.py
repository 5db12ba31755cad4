# ABOUTME: Unit tests for Audible search and Audnexus book response parsing.
# ABOUTME: Validates field mapping, missing-field defaults, and ASIN list extraction.

from earmark.metadata.audnexus_parser import parse_book_response, parse_search_response
from earmark.metadata.types import Person, Series
from tests.fixtures.audnexus_responses import (
    BOOK_RESPONSE,
    BOOK_RESPONSE_MINIMAL,
    BOOK_RESPONSE_NO_ASIN,
    SEARCH_RESPONSE,
    SEARCH_RESPONSE_EMPTY,
)


class TestParseBookResponse:
    """Tests for parse_book_response."""

    def test_full_record(self) -> None:
        """Every Audnexus field lands on the matching BookMetadata attribute."""
        meta = parse_book_response(BOOK_RESPONSE)
        assert meta.asin == "B0036UC2LO"
        assert meta.title == "The Way of Kings"
        assert meta.authors == [Person(name="Brandon Sanderson", catalog_id="B000APZOQA")]
        assert [n.name for n in meta.narrators] == ["Michael Kramer", "Kate Reading"]
        assert meta.publisher_name == "Macmillan Audio"
        assert meta.primary_series == Series(
            name="The Stormlight Archive", catalog_id="B0035ZRAZ4", position="1",
        )
        assert meta.secondary_series is not None
        assert meta.secondary_series.name == "Cosmere"
        assert meta.subtitle == "Book One of the Stormlight Archive"
        assert [g.name for g in meta.genres] == ["Science Fiction & Fantasy", "Epic"]
        assert meta.genres[1].kind == "tag"
        assert meta.isbn == "9781427209733"
        assert meta.runtime_minutes == 2733
        assert meta.format_type == "unabridged"

    def test_minimal_record_defaults(self) -> None:
        """Absent optional fields become None or empty."""
        meta = parse_book_response(BOOK_RESPONSE_MINIMAL)
        assert meta.asin == "B00MINIMAL"
        assert meta.primary_series is None
        assert meta.narrators == []
        assert meta.genres == []
        assert meta.isbn is None
        assert meta.summary == ""

    def test_missing_asin_is_empty_string(self) -> None:
        assert parse_book_response(BOOK_RESPONSE_NO_ASIN).asin == ""

    def test_series_without_name_dropped(self) -> None:
        meta = parse_book_response({"asin": "B1", "title": "T", "seriesPrimary": {"position": "2"}})
        assert meta.primary_series is None

    def test_bad_runtime_ignored(self) -> None:
        meta = parse_book_response({"asin": "B1", "title": "T", "runtimeLengthMin": "long"})
        assert meta.runtime_minutes is None


class TestParseSearchResponse:
    """Tests for parse_search_response."""

    def test_keeps_order_and_drops_duplicates(self) -> None:
        """ASINs keep relevance order; repeats and entries without ASIN are skipped."""
        assert parse_search_response(SEARCH_RESPONSE) == ["B0036UC2LO", "B00DA6YEKS", "B07G5YCSCS"]

    def test_limit(self) -> None:
        assert parse_search_response(SEARCH_RESPONSE, limit=2) == ["B0036UC2LO", "B00DA6YEKS"]

    def test_empty(self) -> None:
        assert parse_search_response(SEARCH_RESPONSE_EMPTY) == []
        assert parse_search_response({}) == []
