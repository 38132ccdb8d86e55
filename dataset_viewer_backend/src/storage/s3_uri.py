"""S3 location parsing helpers.

Keeps storage-root matching and object-location parsing consistent between the
dataset lister and the storage proxy.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from src.core.errors import StorageRootError

S3_SCHEME = "s3://"
_ROOT_PATTERN = re.compile(r"^s3://([^/]+)/(.*)$")


@dataclass(frozen=True)
class S3Location:
    """Parsed S3 location model."""

    bucket: str
    prefix: str


def match_storage_root(root: str) -> Optional[S3Location]:
    """Match a storage root of the form ``s3://bucket/prefix``.

    The prefix may be empty (``s3://bucket/``). Returns None when the root does
    not have that shape.
    """
    match = _ROOT_PATTERN.match(root or "")
    if match is None:
        return None
    return S3Location(bucket=match.group(1), prefix=match.group(2))


def parse_object_location(uri: str) -> S3Location:
    """Split an absolute object location into bucket and object key.

    The ``s3://`` scheme is optional; everything after the first ``/`` is the
    key.

    Raises:
        StorageRootError: If no bucket can be extracted.
    """
    stripped = uri.removeprefix(S3_SCHEME)
    bucket, _, key = stripped.partition("/")
    if not bucket:
        raise StorageRootError(
            f"Invalid S3 location '{uri}': expected s3://bucket/key."
        )
    return S3Location(bucket=bucket, prefix=key)


def join_storage_path(root: str, relative_path: str) -> str:
    """Append a caller-supplied relative path to the storage root."""
    return f"{root.rstrip('/')}/{relative_path}"
