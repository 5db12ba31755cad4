# ABOUTME: Renders the metadata.opf sidecar (Open Packaging Format 2.0) for library scanners.
# ABOUTME: Element presence follows what Audiobookshelf-style scanners read from dc:/opf: tags.

import xml.etree.ElementTree as ET
from pathlib import Path

from earmark.metadata.types import BookMetadata

OPF_NS = "http://www.idpf.org/2007/opf"
DC_NS = "http://purl.org/dc/elements/1.1/"

SIDECAR_NAME = "metadata.opf"

# Scanners expect the English language code regardless of catalog locale.
_LANGUAGE = "eng"

ET.register_namespace("opf", OPF_NS)
ET.register_namespace("dc", DC_NS)


def _dc(parent: ET.Element, name: str, text: str | None, **attrs: str) -> ET.Element:
    element = ET.SubElement(parent, f"{{{DC_NS}}}{name}", attrs)
    element.text = text or ""
    return element


def _meta(parent: ET.Element, name: str, content: str) -> ET.Element:
    return ET.SubElement(parent, f"{{{OPF_NS}}}meta", {"name": name, "content": content})


def build_opf(metadata: BookMetadata) -> ET.Element:
    """Build the OPF package element tree for a book.

    dc:subtitle, the ISBN identifier, and the calibre series metas are only
    emitted when the corresponding fields are set; everything else always is.
    """
    role = f"{{{OPF_NS}}}role"
    scheme = f"{{{OPF_NS}}}scheme"

    package = ET.Element(
        f"{{{OPF_NS}}}package",
        {"version": "2.0", "unique-identifier": "BookId"},
    )
    meta = ET.SubElement(package, f"{{{OPF_NS}}}metadata")

    _dc(meta, "title", metadata.title)
    if metadata.subtitle:
        _dc(meta, "subtitle", metadata.subtitle)
    _dc(meta, "description", metadata.summary)

    for person in metadata.authors:
        _dc(meta, "creator", person.name, **{role: "aut"})
    for person in metadata.narrators:
        _dc(meta, "creator", person.name, **{role: "nrt"})

    _dc(meta, "publisher", metadata.publisher_name)
    _dc(meta, "language", _LANGUAGE)
    for genre in metadata.genres:
        _dc(meta, "subject", genre.name)

    if metadata.isbn:
        _dc(meta, "identifier", metadata.isbn, **{scheme: "ISBN"})
    _dc(meta, "identifier", metadata.asin, **{scheme: "ASIN", "id": "BookId"})

    series = metadata.primary_series
    if series is not None:
        _meta(meta, "calibre:series", series.name)
        if series.position:
            _meta(meta, "calibre:series_index", series.position)

    return package


def render_opf(metadata: BookMetadata) -> bytes:
    """Serialize the OPF document as UTF-8 bytes with an XML declaration."""
    package = build_opf(metadata)
    ET.indent(package)
    return ET.tostring(package, encoding="utf-8", xml_declaration=True) + b"\n"


def write_opf(metadata: BookMetadata, path: Path) -> None:
    """Write the sidecar to path: create, write, close.

    A crash mid-write can leave a short file behind; the torrent stays
    untagged in that case and the import is retried.

    Raises:
        OSError: The file could not be created or written.
    """
    data = render_opf(metadata)
    with open(path, "wb") as handle:
        handle.write(data)
