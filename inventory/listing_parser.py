"""Parser for XML directory listings returned by the node REST endpoint."""

import logging
import xml.etree.ElementTree as ET

from common.exceptions import ProtocolError
from common.types import EntryKind, ListingEntry, ListingPage

logger = logging.getLogger(__name__)

NAME_ATTRIBUTES = ("urlName", "utf8Name", "name")
MARKER_TAGS = ("nextMarker", "NextMarker")


def _local_name(tag: str) -> str:
    """Strip an XML namespace ("{uri}entry" -> "entry")."""
    return tag.rsplit('}', 1)[-1]


def parse_listing(body: str) -> ListingPage:
    """
    Parse one XML listing page into typed entries and an optional marker.

    Entries are the <entry> elements in document order; their name comes from
    urlName (falling back to utf8Name/name) and their kind from the type
    attribute. Entries of an unknown kind are skipped.

    Args:
        body: Response body

    Returns:
        ListingPage

    Raises:
        ProtocolError: If the body is empty or is not well-formed XML
    """
    if not body or not body.strip():
        raise ProtocolError("Empty listing response")

    try:
        root = ET.fromstring(body)
    except ET.ParseError as e:
        raise ProtocolError(f"Unparseable listing response: {e}") from e

    entries = []
    next_marker = None
    has_marker_field = False

    for element in root.iter():
        tag = _local_name(element.tag)

        if tag == "entry":
            name = next((element.get(a) for a in NAME_ATTRIBUTES if element.get(a)), None)
            if not name:
                logger.debug("Skipping listing entry without a name")
                continue
            kind_value = (element.get("type") or "").lower()
            try:
                kind = EntryKind(kind_value)
            except ValueError:
                logger.debug(f"Skipping entry '{name}' with unknown type '{kind_value}'")
                continue
            entries.append(ListingEntry(name=name.rstrip('/'), kind=kind))

        elif tag in MARKER_TAGS and not has_marker_field:
            has_marker_field = True
            text = (element.text or "").strip()
            next_marker = text or None

    return ListingPage(
        entries=tuple(entries),
        next_marker=next_marker,
        has_marker_field=has_marker_field,
    )
