"""Shared data type definitions (ContainerPath helpers, listings, jobs, decisions)."""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from common.constants import NO_HTTP_STATUS
from common.exceptions import ValidationError

_FIELD_BREAKS = re.compile(r"[\t\r\n]")


def split_container_path(path: str) -> tuple[str, str]:
    """
    Split a container path into namespace and relative key.

    Args:
        path: Container path in "<namespace>/<relative-key>" form

    Returns:
        Tuple of (namespace, key)

    Raises:
        ValidationError: If either part is missing
    """
    namespace, sep, key = path.partition("/")
    if not sep or not namespace or not key:
        raise ValidationError(f"Invalid container path: '{path}'")
    return namespace, key


def join_container_path(namespace: str, key: str) -> str:
    """Build "<namespace>/<key>" from its parts."""
    return f"{namespace}/{key.lstrip('/')}"


class EntryKind(str, Enum):
    """Kind of an entry in a listing page."""

    DIRECTORY = "directory"
    OBJECT = "object"


@dataclass(frozen=True)
class ListingEntry:
    """
    One named entry of a listing page.
    """
    name: str
    kind: EntryKind


@dataclass(frozen=True)
class ListingPage:
    """
    One page of a paginated listing.

    Attributes:
        entries: Entries in server order
        next_marker: Continuation marker sent by the server, if any
        has_marker_field: Whether the response carried a marker element at all
    """
    entries: tuple[ListingEntry, ...]
    next_marker: Optional[str] = None
    has_marker_field: bool = False


@dataclass(frozen=True)
class ProbeResult:
    """
    Result of an existence probe (HEAD) against one node.

    status_code is None when the node could not be reached.
    """
    status_code: Optional[int]
    content_length: Optional[int] = None

    @property
    def exists(self) -> bool:
        return self.status_code is not None and 200 <= self.status_code < 300

    @property
    def reachable(self) -> bool:
        return self.status_code is not None

    def render(self) -> str:
        """Status as written to reports ("000" when unreachable)."""
        if self.status_code is None:
            return NO_HTTP_STATUS
        return str(self.status_code)


@dataclass(frozen=True)
class InventoryRecord:
    """
    Nodes reporting one container path.

    Attributes:
        path: Container path "<namespace>/<key>"
        nodes: Sorted, deduplicated, non-empty node identifiers
    """
    path: str
    nodes: tuple[str, ...]

    @property
    def is_multi_location(self) -> bool:
        return len(self.nodes) > 1

    def to_row(self) -> str:
        return f"{self.path}\t{','.join(self.nodes)}"


class Decision(str, Enum):
    """Terminal outcome of one replication job."""

    EXISTS = "exists"
    WOULD_COPY = "would-copy"
    COPIED = "copied"
    FAILED = "failed"
    MULTI_SOURCE = "multi-source"
    TARGET_LISTED_BUT_MISSING = "target-listed-but-missing"
    NOT_IN_SOURCES = "not-in-sources"
    NOT_FOUND_ON_SOURCE = "not-found-on-source"
    INVALID_FORMAT = "invalid-nodes-format"


@dataclass(frozen=True)
class ReplicationJob:
    """
    One input row of a replication run.

    namespace and key are empty when the path itself is malformed; the
    planner turns such jobs into InvalidFormat.
    """
    path: str
    raw_nodes: str
    namespace: str = ""
    key: str = ""
    declared_nodes: tuple[str, ...] = ()
    target: str = ""
    line_no: int = 0
    error: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class JobOutcome:
    """
    Immutable record of one job's terminal decision, as reported.
    """
    path: str
    source_nodes: str
    target: str
    target_status: str
    decision: Decision
    info: str = "-"

    def to_row(self) -> str:
        """One summary line; tabs and line breaks inside fields become spaces."""
        fields = [
            self.path,
            self.source_nodes,
            self.target,
            self.target_status,
            self.decision.value,
            self.info,
        ]
        return "\t".join(_FIELD_BREAKS.sub(" ", f) for f in fields)
