# ABOUTME: AudibleCatalog protocol defining the contract for audiobook catalog sources.
# ABOUTME: Also declares the NotFound/Transport error kinds every catalog must raise.

from typing import Protocol, runtime_checkable

from earmark.metadata.types import BookMetadata


class CatalogError(Exception):
    """Base class for catalog lookup failures."""


class AsinNotFoundError(CatalogError):
    """The catalog has no usable record for the requested ASIN."""

    def __init__(self, asin: str, detail: str | None = None) -> None:
        message = f"no catalog record for ASIN {asin}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)
        self.asin = asin


class CatalogTransportError(CatalogError):
    """The catalog could not be reached or answered with garbage."""


@runtime_checkable
class AudibleCatalog(Protocol):
    """Protocol for audiobook catalog services.

    Implementations must provide ASIN lookup and title/author search.
    Neither operation has side effects; duplicate calls are allowed.
    """

    def lookup_by_asin(self, asin: str) -> BookMetadata:
        """Return the record for an ASIN.

        Raises:
            AsinNotFoundError: No record exists.
            CatalogTransportError: The catalog could not be queried.
        """
        ...

    def search_by_title(self, title: str, author: str | None = None) -> list[str]:
        """Return matching ASINs ordered by relevance (possibly empty).

        Raises:
            CatalogTransportError: The catalog could not be queried.
        """
        ...
