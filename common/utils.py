"""Small helpers shared by the inventory and replication runs."""

import re
from datetime import datetime
from pathlib import Path

_UNSAFE_CHARS = re.compile(r'[^A-Za-z0-9._-]+')


def make_run_dir(out_dir: Path, suffix: str = "") -> Path:
    """
    Create a timestamped run directory.

    Args:
        out_dir: Output root
        suffix: Appended to the timestamp (e.g. "_copy_to_hcp3")

    Returns:
        Path of "<out_dir>/<YYYYmmdd_HHMMSS><suffix>"
    """
    stamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    run_dir = Path(out_dir) / f"{stamp}{suffix}"
    run_dir.mkdir(parents=True, exist_ok=True)
    return run_dir


def safe_file_part(value: str) -> str:
    """Turn a key or resource name into something usable inside a file name."""
    return _UNSAFE_CHARS.sub('_', value).strip('_') or 'root'


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable format with appropriate unit.

    Uses binary units (1024-based) and automatically selects the most
    appropriate unit (B, KiB, MiB, GiB, TiB).

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string with size and unit (e.g., "1.50 MiB", "512 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    units = ['KiB', 'MiB', 'GiB', 'TiB']
    size = size_bytes / 1024.0

    for unit in units:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0

    return f"{size:.2f} PiB"
