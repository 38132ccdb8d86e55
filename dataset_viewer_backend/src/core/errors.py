"""Dataset viewer exception hierarchy.

Each error carries the HTTP status it is rendered with; the API layer turns any
DatasetViewerError into a JSON ``{"error": message}`` body.
"""
from __future__ import annotations


class DatasetViewerError(Exception):
    """Base exception for all backend failures."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class StorageRootError(DatasetViewerError):
    """Raised when a storage location cannot be parsed into bucket and key."""


class MissingPathError(DatasetViewerError):
    """Raised when a caller omits the required relative object path."""

    status_code = 400


class ObjectNotFoundError(DatasetViewerError):
    """Raised when no object body exists at the resolved location."""

    status_code = 404


class StorageError(DatasetViewerError):
    """Raised for object-storage failures other than a missing object."""


class ObjectTooLargeError(StorageError):
    """Raised when an object body exceeds the configured buffer limit."""


class MetadataFetchError(DatasetViewerError):
    """Raised when a byte fetcher cannot obtain a dataset file."""

    status_code = 502


class IncompatibleDatasetError(DatasetViewerError):
    """Raised when dataset metadata is unreadable or malformed."""

    status_code = 422

    def __init__(self, message: str, dataset_id: str) -> None:
        super().__init__(message)
        self.dataset_id = dataset_id


class UnsupportedVersionError(IncompatibleDatasetError):
    """Raised when a dataset's codebase_version is outside the supported set."""

    def __init__(self, message: str, dataset_id: str, version: str) -> None:
        super().__init__(message, dataset_id)
        self.version = version
