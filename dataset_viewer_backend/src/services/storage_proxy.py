"""Storage proxy: resolve a relative path under the storage root and read it.

The whole object body is buffered in memory, bounded by ``max_object_bytes``.
Relative paths are appended to the root as given; nothing stops ``..``
segments from leaving the root.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from src.core.errors import (
    DatasetViewerError,
    MissingPathError,
    ObjectNotFoundError,
    ObjectTooLargeError,
    StorageError,
)
from src.core.logging_config import get_logger
from src.storage.client import ObjectStorage
from src.storage.s3_uri import join_storage_path, parse_object_location

logger = get_logger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class ObjectPayload:
    """Fully buffered object body and its content type."""

    body: bytes
    content_type: str


class StorageProxy:
    """Fetch objects under the configured storage root."""

    def __init__(self, storage: ObjectStorage, storage_root: str, max_object_bytes: int) -> None:
        self._storage = storage
        self._storage_root = storage_root
        self._max_object_bytes = max_object_bytes

    # PUBLIC_INTERFACE
    def fetch_object(self, relative_path: Optional[str]) -> ObjectPayload:
        """Read the object at ``relative_path`` under the storage root.

        Raises:
            MissingPathError: If no path was supplied.
            ObjectNotFoundError: If the object has no body or does not exist.
            StorageError: For any other storage failure, including oversized bodies.
        """
        if not relative_path:
            raise MissingPathError("Missing path parameter")
        try:
            location = parse_object_location(join_storage_path(self._storage_root, relative_path))
            stored = self._storage.get_object(location.bucket, location.prefix)
            if stored.body is None:
                raise ObjectNotFoundError("Empty response from S3")
            body = self._read_body(stored.body, stored.content_length)
        except DatasetViewerError as exc:
            logger.error("s3_proxy_fetch_failed", path=relative_path, error=exc.message)
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error("s3_proxy_fetch_failed", path=relative_path, error=str(exc))
            raise StorageError(str(exc) or "Failed to fetch from S3") from exc
        return ObjectPayload(body=body, content_type=stored.content_type or DEFAULT_CONTENT_TYPE)

    def _read_body(self, stream: Any, declared_length: Optional[int]) -> bytes:
        limit = self._max_object_bytes
        if declared_length is not None and declared_length > limit:
            raise ObjectTooLargeError(f"Object size {declared_length} exceeds limit of {limit} bytes")
        try:
            data = stream.read(limit + 1)
        finally:
            close = getattr(stream, "close", None)
            if close is not None:
                close()
        if len(data) > limit:
            raise ObjectTooLargeError(f"Object exceeds limit of {limit} bytes")
        return data
