"""Inventory run: list every node, write per-node lists, merge and report."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from common.constants import MULTI_LOCATION_NAME, RESULTS_FOUND_NAME, SCAN_LOG_NAME
from common.logging_config import add_run_log, remove_run_log
from common.node_client import NodeClient
from common.settings import ListingSettings
from common.utils import make_run_dir
from inventory.aggregator import aggregate
from inventory.inventory_writer import ListingCodeLog, write_inventory_outputs, write_node_list
from inventory.node_lister import NodeLister, NodeListing

logger = logging.getLogger(__name__)


@dataclass
class ScanSummary:
    """Counts and locations produced by one inventory run."""

    run_dir: Path
    node_counts: dict[str, int] = field(default_factory=dict)
    partial_nodes: list[str] = field(default_factory=list)
    paths: int = 0
    multi_location: int = 0

    def render(self) -> str:
        lines = [f"Inventory written to: {self.run_dir}"]
        for node, count in self.node_counts.items():
            flag = " (partial)" if node in self.partial_nodes else ""
            lines.append(f"  - {node:<8}: {count}{flag}")
        lines.append(f"  - {RESULTS_FOUND_NAME} : {self.paths} rows")
        lines.append(f"  - {MULTI_LOCATION_NAME}: {self.multi_location} rows")
        return '\n'.join(lines)


def run_inventory(settings: ListingSettings, client: Optional[NodeClient] = None) -> ScanSummary:
    """
    Run a full inventory scan.

    Nodes are listed concurrently, each node's folders on a bounded pool.
    Truncated resources are reported but never stop the run.

    Args:
        settings: Validated listing settings
        client: Optional NodeClient for dependency injection (testing)

    Returns:
        ScanSummary
    """
    run_dir = make_run_dir(settings.out_dir)
    log_handler = add_run_log(run_dir / SCAN_LOG_NAME, 'DEBUG' if settings.debug else None)
    owns_client = client is None
    if client is None:
        client = NodeClient(settings.connection)

    try:
        logger.info(f"Output directory: {run_dir}")
        logger.info(
            f"Namespace: {settings.namespace}, Tenant: {settings.connection.tenant}, "
            f"Domain: {settings.connection.domain}"
        )
        logger.info(f"Nodes: {' '.join(settings.nodes)}")
        logger.info(
            f"Page size: {settings.page_size} ; Suffix: {settings.object_suffix or '(any)'} ; "
            f"Insecure: {settings.connection.insecure} ; Debug: {settings.debug}"
        )

        code_log = ListingCodeLog(run_dir, capture_raw=settings.debug)
        lister = NodeLister(
            client,
            namespace=settings.namespace,
            page_size=settings.page_size,
            object_suffix=settings.object_suffix,
            workers=settings.workers,
            code_log=code_log,
        )

        with ThreadPoolExecutor(max_workers=len(settings.nodes), thread_name_prefix="node") as pool:
            listings: list[NodeListing] = list(pool.map(lister.list_node, settings.nodes))

        summary = ScanSummary(run_dir=run_dir)
        for listing in listings:
            write_node_list(run_dir, listing.node, listing.keys)
            summary.node_counts[listing.node] = len(listing.keys)
            if not listing.complete:
                summary.partial_nodes.append(listing.node)

        logger.info("Building merged reports ...")
        records = aggregate(
            {listing.node: listing.keys for listing in listings},
            namespace=settings.namespace,
            allowed_nodes=settings.nodes,
        )
        counts = write_inventory_outputs(run_dir, records)
        summary.paths = counts[RESULTS_FOUND_NAME]
        summary.multi_location = counts[MULTI_LOCATION_NAME]

        logger.info("SUMMARY:")
        for line in summary.render().splitlines()[1:]:
            logger.info(line)
        if summary.partial_nodes:
            logger.warning(f"Partial listings on: {', '.join(summary.partial_nodes)} (see {SCAN_LOG_NAME})")
        logger.info("Done.")
        return summary
    finally:
        if owns_client:
            client.close()
        remove_run_log(log_handler)
