"""Shared pytest fixtures for all tests."""

import hashlib
from pathlib import Path

import httpx
import pytest

from cli.config import Config
from common.node_client import NodeClient, TransferResult
from common.exceptions import TransportError
from common.settings import ConnectionSettings
from common.types import ProbeResult

TOKEN = 'tok-0123456789abcdef'


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep HCPSYNC_* / LOG_LEVEL variables of the caller out of the tests."""
    for name in (
        'HCPSYNC_TENANT', 'HCPSYNC_DOMAIN', 'HCPSYNC_TOKEN', 'HCPSYNC_TIMEOUT',
        'HCPSYNC_RETRIES', 'HCPSYNC_RETRY_DELAY', 'HCPSYNC_WORKERS',
        'HCPSYNC_LISTING_WORKERS', 'HCPSYNC_PAGE_SIZE', 'HCPSYNC_SUFFIX',
        'HCPSYNC_OUT_DIR', 'LOG_LEVEL',
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Returns:
        Path to temporary .hcpsync directory
    """
    config_dir = tmp_path / '.hcpsync'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir):
    """
    Create temporary config instance.

    Returns:
        Config instance with temp config file
    """
    return Config(temp_config_dir / 'config.json')


@pytest.fixture
def connection_settings():
    """Connection settings with retries and delays disabled."""
    return ConnectionSettings(
        tenant='tn',
        domain='example.net',
        token=TOKEN,
        request_retries=0,
        retry_delay=0,
    )


@pytest.fixture
def make_client(connection_settings):
    """
    Factory for a NodeClient whose HTTP session is served by a handler function.

    Usage:
        client = make_client(lambda request: httpx.Response(200))
    """
    clients = []

    def _make(handler, settings=None):
        client = NodeClient(settings or connection_settings)
        headers = client.session.headers
        client.session.close()
        client.session = httpx.Client(transport=httpx.MockTransport(handler), headers=headers)
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()


def node_of(request: httpx.Request) -> str:
    """Node label of a request URL ("<ns>.<tenant>.<node>.<domain>")."""
    return request.url.host.split('.')[2]


def namespace_of(request: httpx.Request) -> str:
    return request.url.host.split('.')[0]


def key_of(request: httpx.Request) -> str:
    """Object key of a request URL ("/rest/<key>")."""
    return request.url.path[len('/rest/'):]


def listing_xml(entries, marker=None, with_marker=False) -> str:
    """
    Render a listing page.

    Args:
        entries: Iterable of (name, kind) tuples
        marker: Text of the nextMarker element
        with_marker: Emit a nextMarker element even when marker is None
    """
    lines = ['<?xml version="1.0" encoding="UTF-8"?>', '<directory path="/rest/" showDeleted="false">']
    for name, kind in entries:
        lines.append(f'  <entry urlName="{name}" utf8Name="{name}" type="{kind}" size="1"/>')
    if marker is not None or with_marker:
        lines.append(f'  <nextMarker>{marker or ""}</nextMarker>')
    lines.append('</directory>')
    return '\n'.join(lines)


class FakeGateway:
    """
    In-memory stand-in for NodeClient's object operations.

    objects maps (node, namespace, key) -> bytes. probe_overrides maps the
    same tuple to a ProbeResult (or a list consumed one probe at a time).
    download_failures / upload_failures count how many calls fail first.
    """

    def __init__(self, objects=None):
        self.objects = dict(objects or {})
        self.probe_overrides = {}
        self.download_failures = 0
        self.upload_failures = 0
        self.upload_lands_on_failure = False
        self.calls = []

    def probe(self, node, namespace, key):
        self.calls.append(('HEAD', node, namespace, key))
        override = self.probe_overrides.get((node, namespace, key))
        if isinstance(override, list):
            if override:
                return override.pop(0)
        elif override is not None:
            return override
        data = self.objects.get((node, namespace, key))
        if data is None:
            return ProbeResult(status_code=404)
        return ProbeResult(status_code=200, content_length=len(data))

    def download(self, node, namespace, key, dest: Path):
        self.calls.append(('GET', node, namespace, key))
        if self.download_failures:
            self.download_failures -= 1
            raise TransportError(f"GET {node}/{namespace}/{key} timed out")
        data = self.objects.get((node, namespace, key))
        if data is None:
            raise TransportError(f"GET {node}/{namespace}/{key} returned HTTP 404")
        dest.write_bytes(data)
        return TransferResult(size=len(data), checksum=hashlib.sha256(data).hexdigest())

    def upload(self, node, namespace, key, source: Path):
        self.calls.append(('PUT', node, namespace, key))
        if self.upload_failures:
            self.upload_failures -= 1
            if self.upload_lands_on_failure:
                self.objects[(node, namespace, key)] = source.read_bytes()
            raise TransportError(f"PUT {node}/{namespace}/{key} returned HTTP 503")
        self.objects[(node, namespace, key)] = source.read_bytes()
        return 201

    def methods(self, method):
        return [c for c in self.calls if c[0] == method]


@pytest.fixture
def fake_gateway():
    return FakeGateway()
