"""Request-scoped component providers.

Each provider builds its component from the cached Settings; tests replace
them through ``app.dependency_overrides``.
"""
from __future__ import annotations

from fastapi import Depends

from src.core.config import Settings, get_settings
from src.services.dataset_lister import DatasetLister
from src.services.metadata_resolver import MetadataResolver, build_metadata_resolver
from src.services.storage_proxy import StorageProxy
from src.storage.client import BotoObjectStorage, ObjectStorage, get_s3_client


# PUBLIC_INTERFACE
def get_app_settings() -> Settings:
    """Return the process settings."""
    return get_settings()


# PUBLIC_INTERFACE
def get_object_storage(settings: Settings = Depends(get_app_settings)) -> ObjectStorage:
    """Return object storage over the process-wide boto3 client."""
    return BotoObjectStorage(get_s3_client(settings))


# PUBLIC_INTERFACE
def get_dataset_lister(
    storage: ObjectStorage = Depends(get_object_storage),
    settings: Settings = Depends(get_app_settings),
) -> DatasetLister:
    """Return a lister scoped to the configured storage root."""
    return DatasetLister(storage, settings.storage_root)


# PUBLIC_INTERFACE
def get_storage_proxy(
    storage: ObjectStorage = Depends(get_object_storage),
    settings: Settings = Depends(get_app_settings),
) -> StorageProxy:
    """Return a storage proxy scoped to the configured storage root."""
    return StorageProxy(storage, settings.storage_root, settings.max_object_bytes)


# PUBLIC_INTERFACE
def get_metadata_resolver(
    proxy: StorageProxy = Depends(get_storage_proxy),
    settings: Settings = Depends(get_app_settings),
) -> MetadataResolver:
    """Return a metadata resolver using this process's fetch strategy."""
    return build_metadata_resolver(settings, proxy)
