"""
Byte-for-byte object transfer between nodes.

One scratch file per job: the source object is streamed into it, PUT to the
target, and the target is probed again to confirm the object is visible. The
scratch file is removed on every exit path.
"""

import logging
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Protocol

from common.exceptions import TransportError, VerificationError
from common.node_client import TransferResult
from common.types import ProbeResult
from common.utils import format_file_size, safe_file_part

logger = logging.getLogger(__name__)


class NodeGateway(Protocol):
    """The node operations used by replication (implemented by NodeClient)."""

    def probe(self, node: str, namespace: str, key: str) -> ProbeResult: ...

    def download(self, node: str, namespace: str, key: str, dest: Path) -> TransferResult: ...

    def upload(self, node: str, namespace: str, key: str, source: Path) -> int: ...


class CopyFailed(TransportError):
    """
    Raised when a fetch or upload still fails after every attempt.

    Attributes:
        stage: "download" or "upload"
    """

    def __init__(self, stage: str, message: str):
        super().__init__(message)
        self.stage = stage


@dataclass(frozen=True)
class CopyReport:
    """What a completed copy moved and what the target reported afterwards."""

    size: int
    checksum: str
    target_status: int
    uploaded: bool = True


class ObjectCopier:
    """Copies single objects from a source node to a target node."""

    def __init__(
        self,
        gateway: NodeGateway,
        scratch_dir: Path,
        retries: int,
        retry_delay: float,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the copier.

        Args:
            gateway: Node operations (NodeClient or a test double)
            scratch_dir: Directory holding per-job scratch files
            retries: Attempts per stage (fetch, upload), at least 1
            retry_delay: Fixed pause between attempts, in seconds
            sleep: Sleep function (overridable in tests)
        """
        self.gateway = gateway
        self.scratch_dir = scratch_dir
        self.retries = max(1, retries)
        self.retry_delay = retry_delay
        self._sleep = sleep
        self.scratch_dir.mkdir(parents=True, exist_ok=True)

    def scratch_path(self, key: str) -> Path:
        return self.scratch_dir / f"{safe_file_part(key)}.{uuid.uuid4().hex[:8]}.part"

    def copy(
        self,
        source: str,
        source_namespace: str,
        target: str,
        target_namespace: str,
        key: str,
    ) -> CopyReport:
        """
        Copy one object and verify it on the target.

        Returns:
            CopyReport of the verified copy

        Raises:
            CopyFailed: If fetching or uploading failed on every attempt
            VerificationError: If the target does not confirm the object
        """
        scratch = self.scratch_path(key)
        try:
            transfer = self._fetch(source, source_namespace, key, scratch)
            logger.info(
                f"Fetched {source_namespace}/{key} from {source} "
                f"({format_file_size(transfer.size)}, sha256={transfer.checksum})"
            )
            uploaded = self._store(target, target_namespace, key, scratch)
            status = self._verify(target, target_namespace, key, transfer.size)
            return CopyReport(
                size=transfer.size,
                checksum=transfer.checksum,
                target_status=status,
                uploaded=uploaded,
            )
        finally:
            scratch.unlink(missing_ok=True)

    def _pause(self, attempt: int) -> None:
        if attempt < self.retries and self.retry_delay > 0:
            self._sleep(self.retry_delay)

    def _fetch(self, node: str, namespace: str, key: str, scratch: Path) -> TransferResult:
        last_error: Optional[str] = None
        for attempt in range(1, self.retries + 1):
            try:
                transfer = self.gateway.download(node, namespace, key, scratch)
            except TransportError as e:
                last_error = str(e)
            else:
                if transfer.size > 0:
                    return transfer
                last_error = "downloaded 0 bytes"
            logger.warning(
                f"Download attempt {attempt}/{self.retries} failed for {namespace}/{key} "
                f"from {node}: {last_error}"
            )
            self._pause(attempt)
        raise CopyFailed("download", f"download of {namespace}/{key} from {node} failed: {last_error}")

    def _store(self, node: str, namespace: str, key: str, scratch: Path) -> bool:
        """
        PUT the scratch file, retrying on failure.

        A retried PUT is only issued after a fresh probe shows the target still
        lacks the object.

        Returns:
            True if this call's PUT succeeded, False if a previous attempt
            turned out to have landed the object
        """
        last_error: Optional[str] = None
        for attempt in range(1, self.retries + 1):
            if attempt > 1:
                recheck = self.gateway.probe(node, namespace, key)
                if recheck.exists:
                    logger.info(
                        f"{namespace}/{key} visible on {node} after failed upload attempt, not re-sending"
                    )
                    return False
            try:
                self.gateway.upload(node, namespace, key, scratch)
                return True
            except TransportError as e:
                last_error = str(e)
            logger.warning(
                f"Upload attempt {attempt}/{self.retries} failed for {namespace}/{key} "
                f"to {node}: {last_error}"
            )
            self._pause(attempt)
        raise CopyFailed("upload", f"upload of {namespace}/{key} to {node} failed: {last_error}")

    def _verify(self, node: str, namespace: str, key: str, size: int) -> int:
        result = self.gateway.probe(node, namespace, key)
        if not result.exists:
            raise VerificationError(f"post-upload HEAD {result.render()}")
        if result.content_length is not None and result.content_length != size:
            raise VerificationError(
                f"post-upload size mismatch: target has {result.content_length} bytes, sent {size}"
            )
        return result.status_code
