"""Replication run: read jobs, plan/copy them on a worker pool, report."""

import logging
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from common.constants import COPY_LOG_NAME, COPY_SUMMARY_NAME, SCRATCH_DIR_NAME
from common.logging_config import add_run_log, remove_run_log
from common.node_client import NodeClient
from common.settings import ReplicationSettings
from common.types import Decision, JobOutcome, ReplicationJob
from common.utils import make_run_dir
from replication.copier import NodeGateway, ObjectCopier
from replication.job_reader import read_jobs
from replication.planner import NO_TARGET_STATUS, PlannerConfig, ReplicationPlanner
from replication.reporter import RunReporter

logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    """
    Everything one replication run shares between its workers.

    Only the reporter is mutated concurrently, and it locks internally.
    """
    settings: ReplicationSettings
    run_dir: Path
    planner: ReplicationPlanner
    reporter: RunReporter

    @property
    def allowed_sources(self) -> frozenset:
        return self.planner.config.allowed_sources


@dataclass
class ReplicationSummary:
    """Counts and locations produced by one replication run."""

    run_dir: Path
    counts: dict[Decision, int] = field(default_factory=dict)
    interrupted: bool = False

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def render(self) -> str:
        lines = [f"Replication results in: {self.run_dir}"]
        if self.interrupted:
            lines.append("  (interrupted: pending jobs were cancelled)")
        lines.append(f"  - processed : {self.total}")
        for decision, count in self.counts.items():
            lines.append(f"  - {decision.value:<26}: {count}")
        return '\n'.join(lines)


def build_context(settings: ReplicationSettings, gateway: NodeGateway, run_dir: Path) -> RunContext:
    """Wire planner, copier and reporter for one run directory."""
    config = PlannerConfig(
        target=settings.target,
        allowed_sources=settings.allowed_sources,
        target_namespace=settings.target_namespace,
        dry_run=settings.dry_run,
    )
    copier = None
    if not settings.dry_run:
        copier = ObjectCopier(
            gateway,
            scratch_dir=run_dir / SCRATCH_DIR_NAME,
            retries=settings.retries,
            retry_delay=settings.retry_delay,
        )
    return RunContext(
        settings=settings,
        run_dir=run_dir,
        planner=ReplicationPlanner(config, gateway, copier),
        reporter=RunReporter(run_dir),
    )


def process_job(context: RunContext, job: ReplicationJob) -> JobOutcome:
    """
    Plan one job and record its outcome.

    An unexpected error in the pipeline is recorded as Failed for this job
    only; the run goes on.
    """
    try:
        outcome = context.planner.plan(job)
    except Exception as e:
        logger.error(f"FAILED {job.path}: unexpected error: {e}", exc_info=True)
        outcome = JobOutcome(
            path=job.path,
            source_nodes=job.raw_nodes or "-",
            target=context.planner.config.target,
            target_status=NO_TARGET_STATUS,
            decision=Decision.FAILED,
            info=f"unexpected error: {type(e).__name__}",
        )
    context.reporter.record(outcome)
    return outcome


def run_jobs(context: RunContext, jobs: Iterable[ReplicationJob]) -> bool:
    """
    Execute jobs on a bounded pool.

    At most `workers * 2` jobs are queued at any time so large job files are
    not read into memory up front.

    Returns:
        True if the run was interrupted (KeyboardInterrupt) before all jobs ran
    """
    workers = context.settings.workers
    pending: set[Future] = set()
    interrupted = False
    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="copy")
    try:
        for job in jobs:
            if len(pending) >= workers * 2:
                done, pending = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    future.result()
            pending.add(executor.submit(process_job, context, job))
        for future in pending:
            future.result()
    except KeyboardInterrupt:
        logger.warning("Interrupted: cancelling pending jobs, waiting for running ones")
        interrupted = True
    finally:
        executor.shutdown(wait=True, cancel_futures=True)
    return interrupted


def run_replication(
    settings: ReplicationSettings,
    client: Optional[NodeGateway] = None,
) -> ReplicationSummary:
    """
    Run a full replication pass over a job file.

    Args:
        settings: Validated replication settings
        client: Optional node gateway for dependency injection (testing)

    Returns:
        ReplicationSummary with per-decision counts

    Raises:
        ConfigurationError: If the job file cannot be read
    """
    run_dir = make_run_dir(settings.out_dir, suffix=f"_copy_to_{settings.target}")
    log_handler = add_run_log(run_dir / COPY_LOG_NAME, 'DEBUG' if settings.debug else None)
    owns_client = client is None
    if client is None:
        client = NodeClient(settings.connection)

    context = None
    try:
        logger.info(f"Output directory: {run_dir}")
        logger.info(f"List file: {settings.list_file}")
        logger.info(
            f"Target: {settings.target} ; Sources: {','.join(settings.sources)} ; "
            f"Target namespace: {settings.target_namespace or '(same as source)'}"
        )
        logger.info(
            f"Dry-run: {settings.dry_run} ; Retries: {settings.retries} ; "
            f"Workers: {settings.workers} ; Insecure: {settings.connection.insecure}"
        )

        context = build_context(settings, client, run_dir)
        interrupted = run_jobs(context, read_jobs(settings.list_file, target=settings.target))

        summary = ReplicationSummary(
            run_dir=run_dir,
            counts=context.reporter.counts,
            interrupted=interrupted,
        )
        logger.info("SUMMARY:")
        context.reporter.log_counts()
        logger.info(f"Summary file: {run_dir / COPY_SUMMARY_NAME}")
        logger.info("Done.")
        return summary
    finally:
        if context is not None:
            context.reporter.close()
            scratch = run_dir / SCRATCH_DIR_NAME
            if scratch.is_dir() and not any(scratch.iterdir()):
                scratch.rmdir()
        if owns_client:
            client.close()
        remove_run_log(log_handler)
