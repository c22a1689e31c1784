"""Configuration management for hcp-sync CLI."""

import json
import logging
import os
import shutil
from pathlib import Path
from typing import Any, Optional

from common.constants import (
    DEFAULT_LISTING_WORKERS,
    DEFAULT_OBJECT_SUFFIX,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_PAGE_SIZE,
    DEFAULT_RETRIES,
    DEFAULT_RETRY_DELAY_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_WORKERS,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / '.hcpsync' / 'config.json'

SECRET_KEYS = ("token",)


def _env_defaults() -> dict:
    return {
        "tenant": os.environ.get("HCPSYNC_TENANT"),
        "domain": os.environ.get("HCPSYNC_DOMAIN"),
        "token": os.environ.get("HCPSYNC_TOKEN"),
        "timeout": float(os.environ.get("HCPSYNC_TIMEOUT", DEFAULT_TIMEOUT_SECONDS)),
        "retries": int(os.environ.get("HCPSYNC_RETRIES", DEFAULT_RETRIES)),
        "retry_delay": float(os.environ.get("HCPSYNC_RETRY_DELAY", DEFAULT_RETRY_DELAY_SECONDS)),
        "workers": int(os.environ.get("HCPSYNC_WORKERS", DEFAULT_WORKERS)),
        "listing_workers": int(os.environ.get("HCPSYNC_LISTING_WORKERS", DEFAULT_LISTING_WORKERS)),
        "page_size": int(os.environ.get("HCPSYNC_PAGE_SIZE", DEFAULT_PAGE_SIZE)),
        "object_suffix": os.environ.get("HCPSYNC_SUFFIX", DEFAULT_OBJECT_SUFFIX),
        "out_dir": os.environ.get("HCPSYNC_OUT_DIR", DEFAULT_OUTPUT_DIR),
    }


class Config:
    """Manages CLI configuration stored in JSON file."""

    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH):
        """
        Initialize configuration manager.

        Values are resolved as: JSON file over HCPSYNC_* environment variables
        over built-in defaults. The token is never written back to the file
        unless it was already stored there.

        Args:
            config_path: Path to config JSON file (typically ~/.hcpsync/config.json)
        """
        self.config_path = config_path
        self.defaults = _env_defaults()
        self._file_keys: set[str] = set()
        self.data = self._load()

    def _load(self) -> dict:
        """
        Load configuration from file, creating defaults if necessary.

        Returns:
            Configuration dictionary
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            import tempfile
            self.config_path = Path(tempfile.gettempdir()) / '.hcpsync' / 'config.json'
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise ValueError("top-level JSON value is not an object")
                self._file_keys = set(data)
                config = self.defaults.copy()
                config.update({k: v for k, v in data.items() if v is not None})
                return config
            except (ValueError, OSError) as e:
                backup_path = self.config_path.with_suffix('.json.bak')
                logger.warning(f"Ignoring unreadable config {self.config_path} ({e}), backup at {backup_path}")
                try:
                    shutil.copy(self.config_path, backup_path)
                except OSError:
                    logger.warning(f"Could not back up {self.config_path}")
                return self.defaults.copy()
        else:
            config = self.defaults.copy()
            self._write({k: v for k, v in config.items() if k not in SECRET_KEYS})
            return config

    def _write(self, data: dict) -> None:
        try:
            with open(self.config_path, 'w') as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            logger.warning(f"Could not write config {self.config_path}: {e}")

    def save(self) -> None:
        """Save current configuration to file (secrets only if they came from it)."""
        self._write({k: v for k, v in self.data.items() if k not in SECRET_KEYS or k in self._file_keys})

    def get(self, key: str, override: Optional[Any] = None) -> Any:
        """
        Resolve one setting.

        Args:
            key: Configuration key
            override: Value given on the command line; wins when not None

        Returns:
            The override, the configured value, or None
        """
        if override is not None:
            return override
        return self.data.get(key)

    def set(self, key: str, value: Any) -> None:
        """Set one value and save to file."""
        self.data[key] = value
        self._file_keys.add(key)
        self.save()
