"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal, Optional


@dataclass(frozen=True)
class ConnectionOptions:
    """Connection flags shared by every command; None means "use config"."""

    tenant: Optional[str] = None
    domain: Optional[str] = None
    token: Optional[str] = None
    timeout: Optional[float] = None
    insecure: bool = False


@dataclass(frozen=True)
class ListCommand:
    """Inventory scan of one namespace across nodes."""

    namespace: str
    nodes: tuple[str, ...]
    connection: ConnectionOptions = ConnectionOptions()
    page_size: Optional[int] = None
    suffix: Optional[str] = None
    workers: Optional[int] = None
    out_dir: Optional[str] = None
    debug: bool = False
    command: Literal["list"] = "list"


@dataclass(frozen=True)
class ReplicateCommand:
    """Replication run from a path<TAB>nodes file."""

    list_file: str
    target: str
    sources: tuple[str, ...]
    connection: ConnectionOptions = ConnectionOptions()
    target_namespace: Optional[str] = None
    retries: Optional[int] = None
    retry_delay: Optional[float] = None
    workers: Optional[int] = None
    out_dir: Optional[str] = None
    dry_run: bool = False
    debug: bool = False
    command: Literal["replicate"] = "replicate"


@dataclass(frozen=True)
class DiagnoseCommand:
    """Single-path probe."""

    path: str
    target: str
    nodes: tuple[str, ...]
    connection: ConnectionOptions = ConnectionOptions()
    command: Literal["diagnose"] = "diagnose"


CommandRequest = ListCommand | ReplicateCommand | DiagnoseCommand
