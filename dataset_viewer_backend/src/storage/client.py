"""Object-storage capability and its boto3 adapter.

Services depend on the small ObjectStorage protocol only; BotoObjectStorage is
the production implementation and tests substitute an in-memory one.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Protocol

import boto3
from botocore.exceptions import ClientError

from src.core.config import Settings
from src.core.errors import ObjectNotFoundError

_NOT_FOUND_CODES = {"NoSuchKey", "404", "NotFound"}


@dataclass(frozen=True)
class ObjectSummary:
    """Key and modification time of one listed object."""

    key: str
    last_modified: datetime


@dataclass(frozen=True)
class ListResult:
    """First page of a listing call."""

    common_prefixes: list[str] = field(default_factory=list)
    contents: list[ObjectSummary] = field(default_factory=list)


@dataclass(frozen=True)
class StoredObject:
    """Result of a single object read; body is a readable stream or None."""

    body: Optional[Any]
    content_type: Optional[str] = None
    content_length: Optional[int] = None


class ObjectStorage(Protocol):
    """List/get capability the services issue calls against."""

    def list_objects(
        self,
        bucket: str,
        prefix: str,
        delimiter: Optional[str] = None,
        max_keys: Optional[int] = None,
    ) -> ListResult: ...

    def get_object(self, bucket: str, key: str) -> StoredObject: ...


class BotoObjectStorage:
    """ObjectStorage backed by a boto3 S3 client."""

    def __init__(self, client: Any) -> None:
        self._client = client

    def list_objects(
        self,
        bucket: str,
        prefix: str,
        delimiter: Optional[str] = None,
        max_keys: Optional[int] = None,
    ) -> ListResult:
        params: dict[str, Any] = {"Bucket": bucket, "Prefix": prefix}
        if delimiter is not None:
            params["Delimiter"] = delimiter
        if max_keys is not None:
            params["MaxKeys"] = max_keys
        # First page only.
        response = self._client.list_objects_v2(**params)
        return ListResult(
            common_prefixes=[
                p["Prefix"] for p in response.get("CommonPrefixes", []) if p.get("Prefix")
            ],
            contents=[
                ObjectSummary(key=o["Key"], last_modified=o["LastModified"])
                for o in response.get("Contents", [])
            ],
        )

    def get_object(self, bucket: str, key: str) -> StoredObject:
        try:
            response = self._client.get_object(Bucket=bucket, Key=key)
        except ClientError as error:
            code = str(error.response.get("Error", {}).get("Code", ""))
            if code in _NOT_FOUND_CODES:
                raise ObjectNotFoundError(f"Object not found: s3://{bucket}/{key}") from error
            raise
        return StoredObject(
            body=response.get("Body"),
            content_type=response.get("ContentType"),
            content_length=response.get("ContentLength"),
        )


def create_s3_client(settings: Settings) -> Any:
    """Create a boto3 S3 client in the configured region."""
    session = boto3.session.Session(region_name=settings.aws_region)
    return session.client("s3")


# One client per region, shared across requests.
_s3_clients: dict[str, Any] = {}


# PUBLIC_INTERFACE
def get_s3_client(settings: Settings) -> Any:
    """Get the cached S3 client for the configured region."""
    client = _s3_clients.get(settings.aws_region)
    if client is None:
        client = create_s3_client(settings)
        _s3_clients[settings.aws_region] = client
    return client


# PUBLIC_INTERFACE
def reset_s3_client_cache() -> None:
    """Drop cached S3 clients so the next request builds a fresh one."""
    _s3_clients.clear()
