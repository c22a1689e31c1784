"""Single-path diagnosis: what a replication run would do for one object."""

import logging
from dataclasses import dataclass, field
from typing import Optional

from common.types import ProbeResult, split_container_path
from replication.copier import NodeGateway

logger = logging.getLogger(__name__)

VERDICT_SKIP = "skip (already on target)"
VERDICT_NO_SOURCE = "no source on any node"


@dataclass
class Diagnosis:
    """Probe results for one path and the resulting verdict."""

    path: str
    target: str
    target_probe: ProbeResult
    source_probes: list[tuple[str, ProbeResult]] = field(default_factory=list)
    source: Optional[str] = None

    @property
    def verdict(self) -> str:
        if self.target_probe.exists:
            return VERDICT_SKIP
        if self.source is not None:
            return f"would copy from {self.source}"
        return VERDICT_NO_SOURCE

    def render(self) -> str:
        lines = [
            f"LINE       : {self.path}",
            f"DST check  : {self.target} -> HTTP {self.target_probe.render()}",
        ]
        for node, result in self.source_probes:
            lines.append(f"SRC check  : {node} -> HTTP {result.render()}")
        lines.append(f"DECISION   : {self.verdict}")
        return '\n'.join(lines)


def diagnose(gateway: NodeGateway, path: str, target: str, nodes: list[str]) -> Diagnosis:
    """
    Probe the target, then each candidate node in order until one has the object.

    Read-only: nothing is copied. Candidates equal to the target are skipped.

    Raises:
        ValidationError: If path is not "<namespace>/<key>"
    """
    namespace, key = split_container_path(path)
    result = Diagnosis(path=path, target=target, target_probe=gateway.probe(target, namespace, key))
    if result.target_probe.exists:
        logger.info(f"{path}: present on {target}")
        return result

    for node in nodes:
        if node == target:
            continue
        probe = gateway.probe(node, namespace, key)
        result.source_probes.append((node, probe))
        if probe.exists:
            result.source = node
            break

    logger.info(f"{path}: {result.verdict}")
    return result
