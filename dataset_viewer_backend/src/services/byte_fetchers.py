"""Byte fetch strategies for dataset files.

A ByteFetcher turns a dataset-relative path (``org/name/meta/info.json``) into
bytes. Which strategy a process uses is decided once, by build_byte_fetcher:

- DirectStorageFetcher: server context with storage credentials
- ProxyEndpointFetcher: client context, goes through a remote /api/s3-proxy
- HubFetcher: hub mode, reads ``resolve/<revision>`` URLs from the dataset hub
"""
from __future__ import annotations

import time
from typing import Optional, Protocol

import requests

from src.core.config import HUB_FETCH_TIMEOUT_SECONDS, Settings
from src.core.errors import MetadataFetchError
from src.services.storage_proxy import StorageProxy

PROXY_ENDPOINT_PATH = "/api/s3-proxy"
PROXY_TIMEOUT_SECONDS = 30
HUB_CHUNK_BYTES = 64 * 1024

# Process-wide HTTP session; closed by close_http_session on shutdown.
_http_session: Optional[requests.Session] = None


# PUBLIC_INTERFACE
def get_http_session() -> requests.Session:
    """Get the shared requests session, creating it on first use."""
    global _http_session
    if _http_session is None:
        _http_session = requests.Session()
    return _http_session


# PUBLIC_INTERFACE
def close_http_session() -> None:
    """Close the shared requests session and release its connection pool."""
    global _http_session
    if _http_session is not None:
        _http_session.close()
        _http_session = None


class ByteFetcher(Protocol):
    """Fetch the raw bytes of a dataset-relative path."""

    def fetch_bytes(self, path: str) -> bytes: ...


class DirectStorageFetcher:
    """Read through the storage proxy component in-process."""

    def __init__(self, proxy: StorageProxy) -> None:
        self._proxy = proxy

    def fetch_bytes(self, path: str) -> bytes:
        return self._proxy.fetch_object(path).body


class ProxyEndpointFetcher:
    """Read through the HTTP proxy endpoint of a remote backend."""

    def __init__(self, origin: str, session: Optional[requests.Session] = None) -> None:
        self._origin = origin.rstrip("/")
        self._session = session or get_http_session()

    def fetch_bytes(self, path: str) -> bytes:
        url = f"{self._origin}{PROXY_ENDPOINT_PATH}"
        try:
            resp = self._session.get(url, params={"path": path}, timeout=PROXY_TIMEOUT_SECONDS)
        except requests.RequestException as exc:
            raise MetadataFetchError(f"Proxy request failed for {path}: {exc}") from exc
        if not resp.ok:
            raise MetadataFetchError(f"Failed to fetch {path} through proxy: {resp.status_code}")
        return resp.content


def split_repo_path(path: str) -> tuple[str, str]:
    """Split ``org/name/rest...`` into the repo id and the in-repo path."""
    parts = path.split("/", 2)
    if len(parts) < 3 or not all(parts):
        raise MetadataFetchError(f"Path '{path}' does not start with an organization/dataset id")
    return f"{parts[0]}/{parts[1]}", parts[2]


class HubFetcher:
    """Read dataset files straight from the dataset hub.

    ``timeout`` is a wall-clock deadline for the whole fetch. The requests
    timeout only bounds the connect and each socket read, so the body is
    streamed and the deadline is checked between chunks.
    """

    def __init__(
        self,
        base_url: str,
        revision: str = "main",
        timeout: float = HUB_FETCH_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._revision = revision
        self._timeout = timeout
        self._session = session or get_http_session()

    def url_for(self, path: str) -> str:
        repo_id, rest = split_repo_path(path)
        return f"{self._base_url}/{repo_id}/resolve/{self._revision}/{rest}"

    def fetch_bytes(self, path: str) -> bytes:
        url = self.url_for(path)
        deadline = time.monotonic() + self._timeout
        try:
            resp = self._session.get(
                url, timeout=self._timeout, headers={"Cache-Control": "no-store"}, stream=True
            )
        except requests.Timeout as exc:
            raise MetadataFetchError(f"Timed out after {self._timeout}s fetching {url}") from exc
        except requests.RequestException as exc:
            raise MetadataFetchError(f"Request failed for {url}: {exc}") from exc
        try:
            if not resp.ok:
                raise MetadataFetchError(f"Failed to fetch dataset info: {resp.status_code}")
            chunks: list[bytes] = []
            for chunk in resp.iter_content(chunk_size=HUB_CHUNK_BYTES):
                if time.monotonic() > deadline:
                    raise MetadataFetchError(f"Timed out after {self._timeout}s fetching {url}")
                chunks.append(chunk)
        except requests.RequestException as exc:
            raise MetadataFetchError(f"Request failed for {url}: {exc}") from exc
        finally:
            resp.close()
        return b"".join(chunks)


# PUBLIC_INTERFACE
def build_byte_fetcher(settings: Settings, proxy: StorageProxy) -> ByteFetcher:
    """Select the fetch strategy for this process from its settings."""
    if settings.use_hub:
        return HubFetcher(settings.hub_base_url)
    if settings.proxy_origin:
        return ProxyEndpointFetcher(settings.proxy_origin)
    return DirectStorageFetcher(proxy)
