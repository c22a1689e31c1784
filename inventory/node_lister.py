"""
Paginated enumeration of one node's folders and objects.

A node is listed in two levels: a folder pass over the namespace root
(type=directory), then one object pass per folder (type=object). Each pass is
a marker-driven page loop. A failure on one resource truncates only that
resource; whatever was listed before the failure is kept.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterator, Optional

from common.constants import NO_HTTP_STATUS
from common.exceptions import HCPError, ProtocolError, TransportError
from common.node_client import NodeClient
from common.types import EntryKind, ListingPage
from inventory.inventory_writer import ListingCodeLog
from inventory.listing_parser import parse_listing

logger = logging.getLogger(__name__)

ROOT_RESOURCE = "root"


@dataclass
class NodeListing:
    """
    Result of listing one node.

    Attributes:
        node: Node identifier
        keys: Sorted, deduplicated "<folder>/<object>" keys
        folders: Number of folders discovered
        partial_resources: Resources ("root" or a folder) whose listing was truncated
    """
    node: str
    keys: list[str] = field(default_factory=list)
    folders: int = 0
    partial_resources: list[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.partial_resources


def next_marker(page: ListingPage, page_size: int) -> Optional[str]:
    """
    Decide the cursor for the page after `page`, or None to stop.

    - an empty page ends the sequence;
    - an explicit marker element wins: empty means done;
    - without a marker element, a short page ends the sequence and a full
      page continues after its last entry name.
    """
    if not page.entries:
        return None
    if page.has_marker_field:
        return page.next_marker
    if len(page.entries) < page_size:
        return None
    return page.entries[-1].name


class NodeLister:
    """Lists container keys of one namespace on any number of nodes."""

    def __init__(
        self,
        client: NodeClient,
        namespace: str,
        page_size: int,
        object_suffix: str = "",
        workers: int = 1,
        code_log: Optional[ListingCodeLog] = None,
    ):
        """
        Initialize the lister.

        Args:
            client: Node HTTP client
            namespace: Namespace to enumerate
            page_size: max-results per request
            object_suffix: Only objects whose name ends with this are kept ("" keeps all)
            workers: Folder listings run concurrently on this many threads
            code_log: Optional recorder for request status codes and raw pages
        """
        self.client = client
        self.namespace = namespace
        self.page_size = page_size
        self.object_suffix = object_suffix
        self.workers = max(1, workers)
        self.code_log = code_log

    def _record(self, node: str, status: str, info: str) -> None:
        if self.code_log is not None:
            self.code_log.record(node, status, info)

    def iter_pages(self, node: str, folder: str, kind: EntryKind) -> Iterator[ListingPage]:
        """
        Yield the non-empty pages of one (node, resource) listing in order.

        Raises:
            TransportError: If a page request cannot reach the node
            ProtocolError: On a non-200 status, an unparseable page, or a
                cursor that does not advance
        """
        resource = folder or ROOT_RESOURCE
        marker: Optional[str] = None
        seen_markers: set[str] = set()
        page_no = 0

        while True:
            page_no += 1
            try:
                status, body = self.client.fetch_listing(
                    node, self.namespace, folder, kind, self.page_size, marker
                )
            except TransportError:
                self._record(node, NO_HTTP_STATUS, f"{resource}_page_{page_no}")
                raise

            self._record(node, str(status), f"{resource}_page_{page_no}")
            if self.code_log is not None:
                self.code_log.save_raw(node, resource, page_no, body)

            if status != 200:
                raise ProtocolError(f"[{node}] {resource} page {page_no} returned HTTP {status}")

            page = parse_listing(body)
            if not page.entries:
                logger.debug(f"[{node}] {resource} page {page_no} is empty, stopping")
                return

            yield page

            following = next_marker(page, self.page_size)
            if following is None:
                return
            if following in seen_markers or following == marker:
                raise ProtocolError(
                    f"[{node}] {resource} cursor did not advance after page {page_no} (marker={following!r})"
                )
            seen_markers.add(following)
            marker = following

    def list_folders(self, node: str) -> tuple[list[str], bool]:
        """
        List the top-level folders of the namespace on a node.

        Returns:
            Tuple of (sorted unique folder names, complete flag)
        """
        folders: set[str] = set()
        try:
            for page in self.iter_pages(node, "", EntryKind.DIRECTORY):
                folders.update(e.name for e in page.entries if e.kind == EntryKind.DIRECTORY)
        except HCPError as e:
            logger.error(f"[{node}] Folder listing truncated ({len(folders)} folders so far): {e}")
            return sorted(folders), False
        return sorted(folders), True

    def list_objects(self, node: str, folder: str) -> tuple[list[str], bool]:
        """
        List matching objects of one folder as "<folder>/<object>" keys.

        Returns:
            Tuple of (keys in listing order, complete flag)
        """
        keys: list[str] = []
        try:
            for page in self.iter_pages(node, folder, EntryKind.OBJECT):
                for entry in page.entries:
                    if entry.kind != EntryKind.OBJECT:
                        continue
                    if self.object_suffix and not entry.name.endswith(self.object_suffix):
                        continue
                    keys.append(f"{folder}/{entry.name}")
        except HCPError as e:
            logger.error(f"[{node}] Object listing of folder {folder} truncated ({len(keys)} objects so far): {e}")
            return keys, False
        return keys, True

    def list_node(self, node: str) -> NodeListing:
        """
        List every matching object of the namespace on one node.

        Returns:
            NodeListing with the deduplicated union of all listed keys
        """
        logger.info(f"==> [{node}] Listing folders ...")
        result = NodeListing(node=node)

        folders, complete = self.list_folders(node)
        result.folders = len(folders)
        if not complete:
            result.partial_resources.append(ROOT_RESOURCE)
        logger.info(f"[{node}] Folders found: {len(folders)}")

        collected: set[str] = set()
        with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix=f"list-{node}") as pool:
            outcomes = pool.map(lambda f: (f, self.list_objects(node, f)), folders)
            for index, (folder, (keys, folder_complete)) in enumerate(outcomes, start=1):
                logger.debug(f"[{node}] ({index}/{len(folders)}) Folder: {folder} -> {len(keys)} objects")
                collected.update(keys)
                if not folder_complete:
                    result.partial_resources.append(folder)

        result.keys = sorted(collected)
        if result.complete:
            logger.info(f"[{node}] Containers collected: {len(result.keys)}")
        else:
            logger.warning(
                f"[{node}] Containers collected: {len(result.keys)} "
                f"(PARTIAL, {len(result.partial_resources)} resource(s) truncated)"
            )
        return result
