# ABOUTME: Audible catalog implementation: title search on Audible, ASIN lookup on Audnexus.
# ABOUTME: Maps HTTP failures onto the catalog's NotFound/Transport error kinds.

import logging
from typing import Any

from earmark.metadata.audnexus_parser import parse_book_response, parse_search_response
from earmark.metadata.http import CatalogFetchError, HttpClient
from earmark.metadata.provider import AsinNotFoundError, CatalogTransportError
from earmark.metadata.types import BookMetadata

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_URL = "https://api.audible.com/1.0/catalog/products"
DEFAULT_METADATA_URL = "https://api.audnex.us/books"
DEFAULT_SEARCH_LIMIT = 10


class AudibleCatalogClient:
    """Catalog backed by the Audible products API and the Audnexus mirror.

    Uses dependency-injected HttpClient for testability.
    """

    def __init__(
        self,
        http_client: HttpClient,
        *,
        search_url: str = DEFAULT_SEARCH_URL,
        metadata_url: str = DEFAULT_METADATA_URL,
        search_limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> None:
        self._http = http_client
        self._search_url = search_url
        self._metadata_url = metadata_url.rstrip("/")
        self._search_limit = search_limit

    @property
    def name(self) -> str:
        return "audible"

    def lookup_by_asin(self, asin: str) -> BookMetadata:
        """Fetch the full record for an ASIN from Audnexus.

        Raises AsinNotFoundError on HTTP 404 or a payload with no ASIN, and
        CatalogTransportError for every other failure.
        """
        url = f"{self._metadata_url}/{asin}"
        logger.info("Looking up catalog metadata asin=%s", asin)
        try:
            data = self._http.get(url)
        except CatalogFetchError as exc:
            if exc.status_code == 404:
                raise AsinNotFoundError(asin) from exc
            raise CatalogTransportError(f"ASIN lookup failed for {asin}: {exc}") from exc

        if not isinstance(data, dict):
            raise CatalogTransportError(f"Unexpected ASIN payload for {asin}: {type(data).__name__}")

        metadata = parse_book_response(data)
        if not metadata.asin:
            raise AsinNotFoundError(asin, detail="catalog record has no ASIN")

        logger.info("Found catalog metadata asin=%s title=%s", metadata.asin, metadata.title)
        return metadata

    def search_by_title(self, title: str, author: str | None = None) -> list[str]:
        """Search the Audible catalog, returning at most search_limit ASINs."""
        params: dict[str, str] = {
            "num_results": str(self._search_limit),
            "products_sort_by": "Relevance",
            "title": title,
        }
        if author:
            params["author"] = author

        logger.info("Searching catalog title=%s author=%s", title, author)
        try:
            data: Any = self._http.get(self._search_url, params=params)
        except CatalogFetchError as exc:
            raise CatalogTransportError(f"Title search failed for {title!r}: {exc}") from exc

        if not isinstance(data, dict):
            raise CatalogTransportError(f"Unexpected search payload for {title!r}")

        asins = parse_search_response(data, limit=self._search_limit)
        logger.info(
            "Catalog search title=%s returned %d result(s) (total_results=%s)",
            title,
            len(asins),
            data.get("total_results"),
        )
        return asins
