"""
Per-job replication decisions.

Each ReplicationJob goes through the same ordered checks and ends in exactly
one Decision:

    ParseValidate -> ProbeTarget -> ClassifyBySourceCount -> CopyOrPlan -> Copy -> PostVerify

The target is probed before anything else, so an object already present on
the target is never overwritten whatever sources the row declares. A copy
needs exactly one declared source that is allow-listed and answers its probe.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from common.exceptions import PolicyError, VerificationError
from common.types import Decision, JobOutcome, ProbeResult, ReplicationJob
from replication.copier import CopyFailed, NodeGateway, ObjectCopier

logger = logging.getLogger(__name__)

NO_TARGET_STATUS = "-"


class SourceRejected(PolicyError):
    """Raised when a job has no single eligible source; carries the Decision to record."""

    def __init__(self, decision: Decision, info: str = "-"):
        super().__init__(f"{decision.value}: {info}")
        self.decision = decision
        self.info = info


@dataclass(frozen=True)
class PlannerConfig:
    """
    Run-wide inputs of the decision pipeline.

    Attributes:
        target: Node receiving copies
        allowed_sources: Nodes allowed to act as copy sources
        target_namespace: Destination namespace, None to keep the source namespace
        dry_run: Stop at WouldCopy instead of transferring
    """
    target: str
    allowed_sources: frozenset
    target_namespace: Optional[str] = None
    dry_run: bool = False

    def destination_namespace(self, job: ReplicationJob) -> str:
        return self.target_namespace or job.namespace


class ReplicationPlanner:
    """Runs the decision pipeline for one job at a time (safe to share across threads)."""

    def __init__(
        self,
        config: PlannerConfig,
        gateway: NodeGateway,
        copier: Optional[ObjectCopier] = None,
    ):
        """
        Initialize the planner.

        Args:
            config: Target, allow-list, namespace override and dry-run flag
            gateway: Node operations used for probes
            copier: Object copier; may be None only for dry runs
        """
        if copier is None and not config.dry_run:
            raise ValueError("A copier is required unless running in dry-run mode")
        self.config = config
        self.gateway = gateway
        self.copier = copier

    def _outcome(
        self,
        job: ReplicationJob,
        decision: Decision,
        target_status: str,
        info: str = "-",
    ) -> JobOutcome:
        return JobOutcome(
            path=job.path,
            source_nodes=job.raw_nodes or "-",
            target=self.config.target,
            target_status=target_status,
            decision=decision,
            info=info,
        )

    def select_source(self, job: ReplicationJob) -> str:
        """
        Pick the single copy source of a job whose target probe came back negative.

        Raises:
            SourceRejected: When the job has no single eligible source
        """
        target = self.config.target
        if target in job.declared_nodes:
            raise SourceRejected(Decision.TARGET_LISTED_BUT_MISSING)
        if len(job.declared_nodes) > 1:
            raise SourceRejected(Decision.MULTI_SOURCE)
        source = job.declared_nodes[0]
        if source not in self.config.allowed_sources:
            allowed = ','.join(sorted(self.config.allowed_sources))
            raise SourceRejected(Decision.NOT_IN_SOURCES, f"allowed: {allowed}")
        return source

    def plan(self, job: ReplicationJob) -> JobOutcome:
        """
        Drive one job to its terminal Decision.

        Never raises for per-job problems: every failure becomes an outcome.
        """
        if not job.is_valid:
            logger.warning(f"Invalid row (line {job.line_no}): {job.path} {job.error}")
            return self._outcome(job, Decision.INVALID_FORMAT, NO_TARGET_STATUS, job.error or "-")

        target = self.config.target
        dest_ns = self.config.destination_namespace(job)

        target_probe: ProbeResult = self.gateway.probe(target, dest_ns, job.key)
        status = target_probe.render()
        if target_probe.exists:
            logger.info(f"SKIP exists on {target}: {dest_ns}/{job.key}")
            return self._outcome(job, Decision.EXISTS, status, "already on target")
        if not target_probe.reachable:
            logger.error(f"Target {target} unreachable for {dest_ns}/{job.key}")
            return self._outcome(job, Decision.FAILED, status, "target HEAD unreachable")

        try:
            source = self.select_source(job)
        except SourceRejected as e:
            logger.warning(f"{e.decision.value.upper()}: {job.path} [{job.raw_nodes}] {e.info}")
            return self._outcome(job, e.decision, status, e.info)

        source_probe = self.gateway.probe(source, job.namespace, job.key)
        if not source_probe.exists:
            logger.warning(f"NOT FOUND on {source}: {job.path} (HEAD {source_probe.render()})")
            return self._outcome(job, Decision.NOT_FOUND_ON_SOURCE, status, f"HEAD {source_probe.render()}")

        if self.config.dry_run:
            logger.info(f"DRY-RUN would copy {job.path} from {source} to {target}:{dest_ns}/{job.key}")
            return self._outcome(job, Decision.WOULD_COPY, status)

        logger.info(f"COPY {job.path}: {source} -> {target} ({dest_ns}/{job.key})")
        try:
            report = self.copier.copy(source, job.namespace, target, dest_ns, job.key)
        except CopyFailed as e:
            logger.error(f"FAILED {job.path}: {e}")
            return self._outcome(job, Decision.FAILED, status, f"{e.stage} error")
        except VerificationError as e:
            logger.error(f"FAILED {job.path}: {e}")
            return self._outcome(job, Decision.FAILED, status, str(e))
        except OSError as e:
            logger.error(f"FAILED {job.path}: scratch file error: {e}")
            return self._outcome(job, Decision.FAILED, status, "scratch file error")

        logger.info(
            f"COPIED {job.path} ({report.size} bytes, sha256={report.checksum}, "
            f"post-upload HEAD {report.target_status})"
        )
        return self._outcome(job, Decision.COPIED, status, "OK")
