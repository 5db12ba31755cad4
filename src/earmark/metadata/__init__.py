# ABOUTME: Metadata package for audio tags, catalog lookup, resolution, and sidecar output.
# ABOUTME: Exports the core BookMetadata dataclass used throughout earmark.

from earmark.metadata.provider import (
    AsinNotFoundError,
    AudibleCatalog,
    CatalogError,
    CatalogTransportError,
)
from earmark.metadata.resolver import (
    AmbiguousMatchError,
    MetadataResolver,
    NoIdentityError,
    NoMatchError,
    ResolveError,
)
from earmark.metadata.tags import ProbeError, TagReader, TagSet
from earmark.metadata.types import BookMetadata, Person, Series, canonical_directory_name

__all__ = [
    "AmbiguousMatchError",
    "AsinNotFoundError",
    "AudibleCatalog",
    "BookMetadata",
    "CatalogError",
    "CatalogTransportError",
    "MetadataResolver",
    "NoIdentityError",
    "NoMatchError",
    "Person",
    "ProbeError",
    "ResolveError",
    "Series",
    "TagReader",
    "TagSet",
    "canonical_directory_name",
]
