"""Reads "path<TAB>nodes" job files into ReplicationJobs."""

import logging
import re
from pathlib import Path
from typing import Iterator

from common.constants import INVENTORY_HEADER
from common.exceptions import ConfigurationError, ValidationError
from common.settings import NODE_ID_PATTERN, is_node_id
from common.types import ReplicationJob, split_container_path

logger = logging.getLogger(__name__)

NODES_FIELD_RE = re.compile(rf'^{NODE_ID_PATTERN}(?:,{NODE_ID_PATTERN})*$')


def parse_nodes_field(field: str) -> tuple[str, ...]:
    """
    Validate and split a declared-nodes field.

    The field must be "node" or "node,node,..." with no whitespace and no
    other separator.

    Raises:
        ValidationError: If the field does not match the grammar
    """
    if not NODES_FIELD_RE.match(field):
        raise ValidationError(f"'{field}'")
    return tuple(field.split(','))


def parse_row(line: str, target: str = "", line_no: int = 0) -> ReplicationJob:
    """
    Turn one input line into a ReplicationJob.

    Malformed rows are not rejected here: they come back with `error` set so
    the planner can record them as InvalidFormat.
    """
    columns = line.split('\t')
    path = columns[0]
    raw_nodes = columns[1] if len(columns) > 1 else ""

    def invalid(reason: str) -> ReplicationJob:
        return ReplicationJob(
            path=path,
            raw_nodes=raw_nodes,
            target=target,
            line_no=line_no,
            error=reason,
        )

    if len(columns) != 2:
        if len(columns) > 2:
            return invalid(f"{len(columns) - 2} extra column(s)")
        return invalid("missing nodes column")

    try:
        declared = parse_nodes_field(raw_nodes)
    except ValidationError as e:
        return invalid(str(e))

    try:
        namespace, key = split_container_path(path)
    except ValidationError as e:
        return invalid(str(e))
    if not is_node_id(namespace):
        return invalid(f"invalid namespace '{namespace}'")

    return ReplicationJob(
        path=path,
        raw_nodes=raw_nodes,
        namespace=namespace,
        key=key,
        declared_nodes=declared,
        target=target,
        line_no=line_no,
    )


def read_jobs(list_file: Path, target: str = "") -> Iterator[ReplicationJob]:
    """
    Yield one job per non-blank line of a job file.

    A "path<TAB>nodes" header on the first line is skipped; trailing CR/LF
    are stripped.

    Raises:
        ConfigurationError: If the file cannot be opened or decoded
    """
    try:
        f = open(list_file, 'r', encoding='utf-8-sig')
    except OSError as e:
        raise ConfigurationError(f"Cannot read list file {list_file}: {e}") from e

    with f:
        try:
            for line_no, raw in enumerate(f, start=1):
                line = raw.rstrip('\r\n')
                if line_no == 1 and line.strip() == INVENTORY_HEADER:
                    continue
                if not line.strip():
                    continue
                yield parse_row(line, target=target, line_no=line_no)
        except UnicodeDecodeError as e:
            raise ConfigurationError(f"Cannot decode list file {list_file}: {e}") from e
