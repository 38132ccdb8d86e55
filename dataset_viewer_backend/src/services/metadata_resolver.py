"""Dataset metadata and codebase-version resolution.

Reads ``<dataset>/meta/info.json`` through an injected ByteFetcher, checks that
it is a well-formed metadata document, and gates its ``codebase_version``
against the supported set. Every failure surfaces as IncompatibleDatasetError
(or its UnsupportedVersionError subclass) so callers handle a single error
class whatever the root cause.
"""
from __future__ import annotations

import json
from typing import Optional
from urllib.parse import urlencode

from pydantic import ValidationError

from src.core.config import Settings
from src.core.errors import IncompatibleDatasetError, UnsupportedVersionError
from src.core.logging_config import get_logger
from src.models.domain import DatasetInfo
from src.services.byte_fetchers import PROXY_ENDPOINT_PATH, ByteFetcher, build_byte_fetcher
from src.services.storage_proxy import StorageProxy

logger = get_logger(__name__)

SUPPORTED_VERSIONS = ("v3.0", "v2.1", "v2.0")
INFO_PATH = "meta/info.json"
S3_PROXY_MARKER = "s3-proxy:"


def _incompatible_message(dataset_id: str) -> str:
    return (
        f"Dataset {dataset_id} is not compatible with this visualizer. "
        "Failed to read dataset information from the main revision."
    )


class VersionedUrlBuilder:
    """Build URLs for dataset assets in hub or storage mode."""

    def __init__(self, use_hub: bool, hub_base_url: str) -> None:
        self._use_hub = use_hub
        self._hub_base_url = hub_base_url.rstrip("/")

    def build(self, dataset_id: str, version: str, path: str) -> str:
        # version is not part of either URL shape yet.
        if self._use_hub:
            return f"{self._hub_base_url}/{dataset_id}/resolve/main/{path}"
        return f"{S3_PROXY_MARKER}{dataset_id}/{path}"


# PUBLIC_INTERFACE
def resolve_s3_proxy_url(url: str, origin: Optional[str]) -> str:
    """Rewrite an ``s3-proxy:`` marker into a proxy endpoint URL.

    Only clients (an ``origin`` is known) rewrite; server-side callers read
    storage directly and get the input back unchanged, as does any URL that is
    not a marker.
    """
    if not origin or not url.startswith(S3_PROXY_MARKER):
        return url
    path = url.removeprefix(S3_PROXY_MARKER)
    return f"{origin.rstrip('/')}{PROXY_ENDPOINT_PATH}?{urlencode({'path': path})}"


class MetadataResolver:
    """Fetch, validate and version-gate dataset metadata."""

    def __init__(self, fetcher: ByteFetcher, url_builder: VersionedUrlBuilder) -> None:
        self._fetcher = fetcher
        self._url_builder = url_builder

    # PUBLIC_INTERFACE
    def get_dataset_info(self, dataset_id: str) -> DatasetInfo:
        """Fetch and parse ``meta/info.json`` for a dataset.

        Raises:
            IncompatibleDatasetError: If the file cannot be fetched or parsed,
                or lacks a ``features`` mapping.
        """
        try:
            raw = self._fetcher.fetch_bytes(f"{dataset_id}/{INFO_PATH}")
        except Exception as exc:  # noqa: BLE001
            logger.warning("dataset_incompatible", dataset_id=dataset_id, reason=str(exc))
            raise IncompatibleDatasetError(_incompatible_message(dataset_id), dataset_id) from exc
        try:
            data = json.loads(raw)
        except ValueError as exc:
            logger.warning("dataset_incompatible", dataset_id=dataset_id, reason="invalid json")
            raise IncompatibleDatasetError(_incompatible_message(dataset_id), dataset_id) from exc
        if not isinstance(data, dict) or data.get("features") is None:
            logger.warning("dataset_incompatible", dataset_id=dataset_id, reason="missing features")
            raise IncompatibleDatasetError(
                f"Dataset {dataset_id} info.json does not have the expected features structure",
                dataset_id,
            )
        try:
            return DatasetInfo.model_validate(data)
        except ValidationError as exc:
            logger.warning("dataset_incompatible", dataset_id=dataset_id, reason="invalid info.json")
            raise IncompatibleDatasetError(_incompatible_message(dataset_id), dataset_id) from exc

    # PUBLIC_INTERFACE
    def get_dataset_version(self, dataset_id: str) -> str:
        """Return the dataset's codebase_version if it is supported.

        Raises:
            IncompatibleDatasetError: If metadata is unreadable or has no version.
            UnsupportedVersionError: If the version is not in SUPPORTED_VERSIONS.
        """
        info = self.get_dataset_info(dataset_id)
        version = info.codebase_version
        if version is None or version == "":
            raise IncompatibleDatasetError(
                f"Dataset {dataset_id} info.json does not contain codebase_version", dataset_id
            )
        if not isinstance(version, str) or version not in SUPPORTED_VERSIONS:
            logger.warning("dataset_incompatible", dataset_id=dataset_id, reason=f"version {version}")
            raise UnsupportedVersionError(
                f"Dataset {dataset_id} has codebase version {version}, which is not supported. "
                f"This tool only works with dataset versions {', '.join(SUPPORTED_VERSIONS)}. "
                "Please use a compatible dataset version.",
                dataset_id,
                str(version),
            )
        return version

    # PUBLIC_INTERFACE
    def build_versioned_url(self, dataset_id: str, version: str, path: str) -> str:
        """Return the hub URL or ``s3-proxy:`` marker for a dataset asset."""
        return self._url_builder.build(dataset_id, version, path)


# PUBLIC_INTERFACE
def build_metadata_resolver(settings: Settings, proxy: StorageProxy) -> MetadataResolver:
    """Wire a resolver from settings; the fetch strategy is chosen here, once."""
    return MetadataResolver(
        fetcher=build_byte_fetcher(settings, proxy),
        url_builder=VersionedUrlBuilder(settings.use_hub, settings.hub_base_url),
    )
