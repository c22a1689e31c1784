"""HTTP client for the per-node REST endpoints (listing, HEAD, GET, PUT)."""

import time
import uuid
from pathlib import Path
from typing import Optional

import httpx

from common.checksum import IncrementalChecksumCalculator
from common.constants import (
    AUTH_SCHEME,
    DOWNLOAD_PIECE_SIZE_BYTES,
    OBJECT_CONTENT_TYPE,
    REST_PREFIX,
)
from common.exceptions import TransportError
from common.logging_config import get_logger
from common.settings import ConnectionSettings
from common.types import EntryKind, ProbeResult

logger = get_logger(__name__)


class TransferResult:
    """Outcome of a successful download: size and SHA-256 of the bytes written."""

    def __init__(self, size: int, checksum: str):
        self.size = size
        self.checksum = checksum

    def __repr__(self) -> str:
        return f"TransferResult(size={self.size}, checksum={self.checksum[:12]}...)"


class NodeClient:
    """HTTP client for HCP node endpoints with retry logic and error mapping."""

    def __init__(self, settings: ConnectionSettings):
        """
        Initialize node client.

        Args:
            settings: Tenant, domain, token and transport options
        """
        self.settings = settings
        self.session = httpx.Client(
            timeout=settings.timeout,
            verify=not settings.insecure,
            headers={'Authorization': f'{AUTH_SCHEME} {settings.token}'},
        )
        logger.info(
            f"Initialized NodeClient [tenant={settings.tenant} domain={settings.domain} "
            f"insecure={settings.insecure}]"
        )

    def base_url(self, node: str, namespace: str) -> str:
        """
        Build the REST root of one namespace on one node.

        Returns:
            URL like "https://ns.tenant.hcp1.example.net/rest/"
        """
        return (
            f"https://{namespace}.{self.settings.tenant}.{node}."
            f"{self.settings.domain}/{REST_PREFIX}/"
        )

    def url_for(self, node: str, namespace: str, key: str = "") -> str:
        """URL of a key (object or folder) inside a namespace on a node."""
        return self.base_url(node, namespace) + key.lstrip('/')

    def _request_with_retry(
        self,
        method: str,
        url: str,
        max_retries: Optional[int] = None,
        **kwargs
    ) -> httpx.Response:
        """
        Make HTTP request with retry logic on 5xx errors and network failures.

        Args:
            method: HTTP method (GET, HEAD, PUT)
            url: Absolute URL
            max_retries: Max retry attempts (uses settings default if None)
            **kwargs: Additional arguments to pass to httpx request

        Returns:
            HTTP response object (possibly a 5xx one once retries are exhausted)

        Raises:
            TransportError: If the node cannot be reached after all retries, or the
                request cannot be built (e.g. an invalid host name)
        """
        max_retries = max_retries if max_retries is not None else self.settings.request_retries
        delay = self.settings.retry_delay
        request_id = uuid.uuid4().hex[:8]

        last_exception = None
        logger.debug(f"Making request: {method} {url} [request_id={request_id}]")

        for attempt in range(max_retries + 1):
            try:
                response = self.session.request(method, url, **kwargs)

                logger.debug(
                    f"Response received: {method} {url} status={response.status_code} [request_id={request_id}]"
                )

                if response.status_code >= 500 and attempt < max_retries:
                    logger.warning(
                        f"Server error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {url} status={response.status_code}, retrying in {delay}s [request_id={request_id}]"
                    )
                    time.sleep(delay)
                    continue

                return response

            except httpx.TransportError as e:
                last_exception = e
                if attempt < max_retries:
                    logger.warning(
                        f"Network error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {url} error={type(e).__name__}, retrying in {delay}s [request_id={request_id}]"
                    )
                    time.sleep(delay)
                    continue
                logger.error(
                    f"Network error (max retries exceeded): {method} {url} error={e} [request_id={request_id}]"
                )
            except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
                logger.error(f"Request failed: {method} {url} error={e} [request_id={request_id}]")
                raise TransportError(f"{method} {url} failed: {type(e).__name__}: {e}") from e

        raise TransportError(f"{method} {url} failed: {type(last_exception).__name__}: {last_exception}")

    def fetch_listing(
        self,
        node: str,
        namespace: str,
        folder: str,
        kind: EntryKind,
        page_size: int,
        marker: Optional[str] = None,
    ) -> tuple[int, str]:
        """
        Fetch one raw listing page.

        Args:
            node: Node identifier
            namespace: Namespace to list
            folder: Folder key ("" for the namespace root)
            kind: EntryKind.DIRECTORY for folder passes, EntryKind.OBJECT for object passes
            page_size: max-results value
            marker: Continuation marker from the previous page (sent percent-encoded)

        Returns:
            Tuple of (HTTP status code, response body)

        Raises:
            TransportError: If the node cannot be reached
        """
        url = self.url_for(node, namespace, f"{folder.strip('/')}/" if folder else "")
        params = {
            'type': kind.value,
            'format': 'xml',
            'max-results': str(page_size),
        }
        if marker:
            params['marker'] = marker

        response = self._request_with_retry('GET', url, params=params)
        return response.status_code, response.text

    def probe(self, node: str, namespace: str, key: str) -> ProbeResult:
        """
        Existence probe (HEAD) for one object.

        Returns:
            ProbeResult with the status code, or status None if the node is unreachable
        """
        url = self.url_for(node, namespace, key)
        try:
            response = self._request_with_retry('HEAD', url)
        except TransportError as e:
            logger.warning(f"HEAD {url} unreachable: {e}")
            return ProbeResult(status_code=None)

        length = response.headers.get('Content-Length')
        content_length = int(length) if length and length.isdigit() else None
        logger.debug(f"HEAD {url} -> {response.status_code}")
        return ProbeResult(status_code=response.status_code, content_length=content_length)

    def download(self, node: str, namespace: str, key: str, dest: Path) -> TransferResult:
        """
        Stream one object into a local file.

        Args:
            node: Source node
            namespace: Source namespace
            key: Object key
            dest: Local file to write (truncated first)

        Returns:
            TransferResult with size and SHA-256 of the written bytes

        Raises:
            TransportError: On network failure or a non-2xx status
        """
        url = self.url_for(node, namespace, key)
        calculator = IncrementalChecksumCalculator()
        logger.debug(f"DOWNLOAD: {url} -> {dest}")
        try:
            with self.session.stream('GET', url) as response:
                if not 200 <= response.status_code < 300:
                    response.read()
                    raise TransportError(f"GET {url} returned HTTP {response.status_code}")
                with open(dest, 'wb') as f:
                    for piece in response.iter_bytes(chunk_size=DOWNLOAD_PIECE_SIZE_BYTES):
                        f.write(piece)
                        calculator.update(piece)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            raise TransportError(f"GET {url} failed: {type(e).__name__}: {e}") from e

        return TransferResult(size=calculator.size, checksum=calculator.finalize())

    def upload(self, node: str, namespace: str, key: str, source: Path) -> int:
        """
        Write one object from a local file (PUT, binary body).

        Returns:
            HTTP status code of the PUT

        Raises:
            TransportError: On network failure or a non-2xx status
        """
        url = self.url_for(node, namespace, key)
        logger.debug(f"UPLOAD: {source} -> {url}")
        with open(source, 'rb') as f:
            try:
                response = self.session.put(
                    url,
                    content=f,
                    headers={
                        'Content-Type': OBJECT_CONTENT_TYPE,
                        'Content-Length': str(source.stat().st_size),
                    },
                )
            except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
                raise TransportError(f"PUT {url} failed: {type(e).__name__}: {e}") from e

        if not 200 <= response.status_code < 300:
            raise TransportError(f"PUT {url} returned HTTP {response.status_code}")
        return response.status_code

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()

    def __enter__(self) -> 'NodeClient':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
