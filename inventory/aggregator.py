"""Merges per-node key lists into a path -> node-set inventory."""

import logging
from typing import Iterable, Mapping, Optional

from common.exceptions import ValidationError
from common.types import InventoryRecord, join_container_path

logger = logging.getLogger(__name__)


def aggregate(
    node_keys: Mapping[str, Iterable[str]],
    namespace: Optional[str] = None,
    allowed_nodes: Optional[Iterable[str]] = None,
) -> list[InventoryRecord]:
    """
    Build the merged inventory from per-node key lists.

    A key reported several times by the same node counts once. Output is
    ordered lexically by path so reports are reproducible.

    Args:
        node_keys: Mapping of node -> keys listed on that node
        namespace: When given, keys are prefixed to form "<namespace>/<key>" container paths
        allowed_nodes: Configured node set; a node outside it is rejected

    Returns:
        InventoryRecords sorted by path, each with a sorted unique node tuple

    Raises:
        ValidationError: If a node is not part of the configured node set
    """
    allowed = set(allowed_nodes) if allowed_nodes is not None else None
    locations: dict[str, set[str]] = {}

    for node, keys in node_keys.items():
        if allowed is not None and node not in allowed:
            raise ValidationError(f"Node '{node}' is not part of the configured node set")
        for key in keys:
            key = key.strip()
            if not key:
                continue
            path = join_container_path(namespace, key) if namespace else key
            locations.setdefault(path, set()).add(node)

    records = [
        InventoryRecord(path=path, nodes=tuple(sorted(nodes)))
        for path, nodes in sorted(locations.items())
    ]
    logger.debug(f"Aggregated {len(records)} paths from {len(node_keys)} node list(s)")
    return records


def multi_location(records: Iterable[InventoryRecord]) -> list[InventoryRecord]:
    """Subset of records reported by more than one node."""
    return [r for r in records if r.is_multi_location]
