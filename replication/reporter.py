"""Append-only outputs of a replication run (summary TSV and per-decision lists)."""

import logging
import threading
from collections import Counter
from pathlib import Path

from common.constants import COPY_SUMMARY_NAME, SUMMARY_COLUMNS
from common.types import Decision, JobOutcome

logger = logging.getLogger(__name__)

DECISION_LIST_FILES: dict[Decision, str] = {
    Decision.COPIED: "copied.txt",
    Decision.EXISTS: "skipped_exists.txt",
    Decision.WOULD_COPY: "would_copy.txt",
    Decision.MULTI_SOURCE: "multi_source.txt",
    Decision.TARGET_LISTED_BUT_MISSING: "target_listed_but_missing.txt",
    Decision.NOT_IN_SOURCES: "not_in_sources.txt",
    Decision.NOT_FOUND_ON_SOURCE: "not_found_on_source.txt",
    Decision.FAILED: "failed.txt",
    Decision.INVALID_FORMAT: "invalid_nodes_format.txt",
}


class RunReporter:
    """
    Thread-safe sink for job outcomes.

    Every outcome becomes one copy_summary.tsv line and one line in the list
    file of its decision. Each line is written and flushed while holding the
    lock, so files can be tailed during a run and stay valid if it is
    interrupted.
    """

    def __init__(self, run_dir: Path):
        self.run_dir = run_dir
        self.summary_path = run_dir / COPY_SUMMARY_NAME
        self._lock = threading.Lock()
        self._counts: Counter = Counter()
        self._closed = False

        run_dir.mkdir(parents=True, exist_ok=True)
        self._summary = open(self.summary_path, 'w', encoding='utf-8')
        self._summary.write('\t'.join(SUMMARY_COLUMNS) + '\n')
        self._summary.flush()

        self._lists = {}
        for decision, name in DECISION_LIST_FILES.items():
            self._lists[decision] = open(run_dir / name, 'w', encoding='utf-8')

    def record(self, outcome: JobOutcome) -> None:
        """Append one outcome to the summary and to its decision list."""
        line = outcome.to_row() + '\n'
        with self._lock:
            if self._closed:
                raise RuntimeError("RunReporter is closed")
            self._summary.write(line)
            self._summary.flush()
            decision_list = self._lists[outcome.decision]
            decision_list.write(outcome.path + '\n')
            decision_list.flush()
            self._counts[outcome.decision] += 1

    @property
    def counts(self) -> dict[Decision, int]:
        """Per-decision counts, every decision present (zero if unused)."""
        with self._lock:
            return {decision: self._counts.get(decision, 0) for decision in Decision}

    @property
    def total(self) -> int:
        with self._lock:
            return sum(self._counts.values())

    def log_counts(self) -> None:
        counts = self.counts
        logger.info(f"Processed: {sum(counts.values())}")
        for decision, count in counts.items():
            logger.info(f"  {decision.value:<26}: {count}")

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._summary.close()
            for f in self._lists.values():
                f.close()

    def __enter__(self) -> 'RunReporter':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
