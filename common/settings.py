"""Validated run settings for listing and replication runs."""

import re
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator, model_validator

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
from common.exceptions import ConfigurationError

NODE_ID_PATTERN = r'[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?'
DNS_LABEL_RE = re.compile(rf'^{NODE_ID_PATTERN}$')
DOMAIN_RE = re.compile(r'^[A-Za-z0-9](?:[A-Za-z0-9.-]{0,251}[A-Za-z0-9])?$')


def is_node_id(value: str) -> bool:
    """Return True if value is a syntactically valid node identifier (a DNS label)."""
    return bool(DNS_LABEL_RE.match(value))


def _check_label(value: str, what: str) -> str:
    if not DNS_LABEL_RE.match(value):
        raise ValueError(f"{what} must be a DNS label, got '{value}'")
    return value


class ConnectionSettings(BaseModel):
    """Parameters needed to reach the nodes of one tenant."""

    tenant: str
    domain: str
    token: str = Field(min_length=1, repr=False)
    insecure: bool = False
    timeout: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    request_retries: int = Field(default=DEFAULT_RETRIES, ge=0)
    retry_delay: float = Field(default=DEFAULT_RETRY_DELAY_SECONDS, ge=0)

    @field_validator('tenant')
    @classmethod
    def _tenant_label(cls, v: str) -> str:
        return _check_label(v, 'tenant')

    @field_validator('domain')
    @classmethod
    def _domain_name(cls, v: str) -> str:
        if not DOMAIN_RE.match(v):
            raise ValueError(f"domain is not a valid host name: '{v}'")
        return v


class ListingSettings(BaseModel):
    """Settings of one inventory (listing) run."""

    connection: ConnectionSettings
    namespace: str
    nodes: List[str] = Field(min_length=1)
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, gt=0)
    object_suffix: str = DEFAULT_OBJECT_SUFFIX
    workers: int = Field(default=DEFAULT_LISTING_WORKERS, ge=1)
    out_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    debug: bool = False

    @field_validator('namespace')
    @classmethod
    def _namespace_label(cls, v: str) -> str:
        return _check_label(v, 'namespace')

    @field_validator('nodes')
    @classmethod
    def _node_labels(cls, v: List[str]) -> List[str]:
        for node in v:
            _check_label(node, 'node')
        return list(dict.fromkeys(v))


class ReplicationSettings(BaseModel):
    """Settings of one replication run."""

    connection: ConnectionSettings
    list_file: Path
    target: str
    sources: List[str] = Field(min_length=1)
    target_namespace: Optional[str] = None
    retries: int = Field(default=DEFAULT_RETRIES, ge=1)
    retry_delay: float = Field(default=DEFAULT_RETRY_DELAY_SECONDS, ge=0)
    workers: int = Field(default=DEFAULT_WORKERS, ge=1)
    dry_run: bool = False
    out_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    debug: bool = False

    @field_validator('target')
    @classmethod
    def _target_label(cls, v: str) -> str:
        return _check_label(v, 'target')

    @field_validator('sources')
    @classmethod
    def _source_labels(cls, v: List[str]) -> List[str]:
        for node in v:
            _check_label(node, 'source')
        return list(dict.fromkeys(v))

    @field_validator('target_namespace')
    @classmethod
    def _target_namespace_label(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == '':
            return None
        return _check_label(v, 'target namespace')

    @model_validator(mode='after')
    def _list_file_readable(self) -> 'ReplicationSettings':
        if not self.list_file.is_file():
            raise ValueError(f"list file not found: {self.list_file}")
        return self

    @property
    def allowed_sources(self) -> frozenset:
        return frozenset(self.sources)


class DiagnosticSettings(BaseModel):
    """Settings of a single-path diagnostic probe."""

    connection: ConnectionSettings
    path: str
    target: str
    nodes: List[str] = Field(min_length=1)

    @field_validator('path')
    @classmethod
    def _container_path(cls, v: str) -> str:
        namespace, sep, key = v.partition('/')
        if not sep or not key:
            raise ValueError(f"path must be <namespace>/<key>, got '{v}'")
        _check_label(namespace, 'namespace')
        return v

    @field_validator('target')
    @classmethod
    def _target_label(cls, v: str) -> str:
        return _check_label(v, 'target')

    @field_validator('nodes')
    @classmethod
    def _node_labels(cls, v: List[str]) -> List[str]:
        for node in v:
            _check_label(node, 'node')
        return list(dict.fromkeys(v))


def build_settings(model: type, **values):
    """
    Validate raw values into a settings model.

    Raises:
        ConfigurationError: With a readable summary of every invalid field
    """
    try:
        return model(**values)
    except PydanticValidationError as e:
        problems = []
        for err in e.errors():
            location = '.'.join(str(part) for part in err.get('loc', ())) or 'settings'
            problems.append(f"{location}: {err.get('msg')}")
        raise ConfigurationError("; ".join(problems)) from e
