"""Recent-dataset listing over a two-level storage layout.

Datasets live under ``<root>/<organization>/<dataset-name>/``. The lister walks
exactly those two levels, timestamps each dataset by the first object found
under it, and returns the most recently modified ids.

Failures never reach the caller: a malformed root or any listing error yields
an empty list.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import List

from src.core.logging_config import get_logger
from src.models.domain import DatasetDescriptor
from src.storage.client import ObjectStorage
from src.storage.s3_uri import match_storage_root

logger = get_logger(__name__)

DEFAULT_LIMIT = 10
RESERVED_ORG_SEGMENT = "s3"
# Prefixes are not timestamped; datasets with no objects sort last.
EPOCH_ZERO = datetime(1970, 1, 1, tzinfo=timezone.utc)


class DatasetLister:
    """Enumerate organization/dataset prefixes under the storage root."""

    def __init__(self, storage: ObjectStorage, storage_root: str, limit: int = DEFAULT_LIMIT) -> None:
        self._storage = storage
        self._storage_root = storage_root
        self._limit = limit

    # PUBLIC_INTERFACE
    def list_recent_datasets(self) -> List[str]:
        """Return up to ``limit`` dataset ids, most recently modified first."""
        location = match_storage_root(self._storage_root)
        if location is None:
            logger.warning("dataset_listing_skipped", reason="malformed storage root")
            return []
        try:
            descriptors = self._collect(location.bucket, location.prefix)
            # Mixed naive and aware timestamps raise TypeError here.
            descriptors.sort(key=lambda d: d.last_modified, reverse=True)
            paths = [d.path for d in descriptors[: self._limit]]
        except Exception as exc:  # noqa: BLE001
            logger.error("dataset_listing_failed", error=str(exc))
            return []
        logger.info("datasets_listed", count=len(paths))
        return paths

    def _collect(self, bucket: str, base: str) -> List[DatasetDescriptor]:
        out: list[DatasetDescriptor] = []
        top = self._storage.list_objects(bucket, base, delimiter="/")
        for org_prefix in top.common_prefixes:
            org = org_prefix.removeprefix(base).rstrip("/")
            if not org or org == RESERVED_ORG_SEGMENT:
                continue
            children = self._storage.list_objects(bucket, f"{base}{org}/", delimiter="/")
            for dataset_prefix in children.common_prefixes:
                path = dataset_prefix.removeprefix(base).rstrip("/")
                if not path:
                    continue
                out.append(
                    DatasetDescriptor(path=path, last_modified=self._last_modified(bucket, dataset_prefix))
                )
        return out

    def _last_modified(self, bucket: str, prefix: str) -> datetime:
        newest = self._storage.list_objects(bucket, prefix, max_keys=1)
        if not newest.contents:
            return EPOCH_ZERO
        return newest.contents[0].last_modified
