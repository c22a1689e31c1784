"""Writers for listing-run artifacts (per-node lists, merged inventory, request codes)."""

import logging
import threading
from pathlib import Path
from typing import Iterable, Optional

from common.constants import (
    INVENTORY_HEADER,
    MULTI_LOCATION_NAME,
    RAW_DIR_NAME,
    RESULTS_CODES_NAME,
    RESULTS_FOUND_NAME,
)
from common.types import InventoryRecord
from common.utils import safe_file_part
from inventory.aggregator import multi_location

logger = logging.getLogger(__name__)


class ListingCodeLog:
    """
    Thread-safe recorder of every listing request of a run.

    Appends "node<TAB>http_code<TAB>info" lines to results_codes.tsv and, when
    raw capture is enabled, saves each XML page under raw/.
    """

    def __init__(self, run_dir: Path, capture_raw: bool = False):
        self.codes_path = run_dir / RESULTS_CODES_NAME
        self.raw_dir = run_dir / RAW_DIR_NAME
        self.capture_raw = capture_raw
        self._lock = threading.Lock()

        run_dir.mkdir(parents=True, exist_ok=True)
        self.codes_path.write_text("", encoding='utf-8')
        if capture_raw:
            self.raw_dir.mkdir(parents=True, exist_ok=True)

    def record(self, node: str, status: str, info: str) -> None:
        line = f"{node}\t{status}\t{info}\n"
        with self._lock:
            with open(self.codes_path, 'a', encoding='utf-8') as f:
                f.write(line)

    def save_raw(self, node: str, resource: str, page_no: int, body: str) -> Optional[Path]:
        if not self.capture_raw:
            return None
        path = self.raw_dir / f"{node}_{safe_file_part(resource)}_p{page_no}.xml"
        path.write_text(body, encoding='utf-8')
        return path


def write_node_list(run_dir: Path, node: str, keys: Iterable[str]) -> Path:
    """
    Write one node's raw key list ("<folder>/<object>" per line).

    Returns:
        Path of the written file
    """
    path = run_dir / f"{node}.txt"
    with open(path, 'w', encoding='utf-8') as f:
        for key in keys:
            f.write(f"{key}\n")
    return path


def write_inventory(path: Path, records: Iterable[InventoryRecord], header: bool = True) -> int:
    """
    Write "path<TAB>nodes" rows.

    Args:
        path: Output file
        records: Records in output order
        header: Whether to start with the "path<TAB>nodes" header

    Returns:
        Number of rows written (header excluded)
    """
    count = 0
    with open(path, 'w', encoding='utf-8') as f:
        if header:
            f.write(f"{INVENTORY_HEADER}\n")
        for record in records:
            f.write(f"{record.to_row()}\n")
            count += 1
    return count


def write_inventory_outputs(run_dir: Path, records: list[InventoryRecord]) -> dict:
    """
    Write results_found.tsv and multi_location.txt for a merged inventory.

    Returns:
        Dictionary of row counts keyed by file name
    """
    found = write_inventory(run_dir / RESULTS_FOUND_NAME, records)
    multi = write_inventory(
        run_dir / MULTI_LOCATION_NAME,
        multi_location(records),
    )
    logger.info(f"Wrote {RESULTS_FOUND_NAME} ({found} rows) and {MULTI_LOCATION_NAME} ({multi} rows)")
    return {RESULTS_FOUND_NAME: found, MULTI_LOCATION_NAME: multi}
