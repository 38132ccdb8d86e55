"""Dataset listing and version endpoints."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_app_settings, get_dataset_lister, get_metadata_resolver
from src.core.config import Settings
from src.core.errors import MissingPathError
from src.models.domain import DatasetList, DatasetVersion
from src.services.dataset_lister import DatasetLister
from src.services.metadata_resolver import INFO_PATH, MetadataResolver, resolve_s3_proxy_url

router = APIRouter(prefix="/api", tags=["datasets"])


# PUBLIC_INTERFACE
@router.get("/list-datasets", response_model=DatasetList, summary="List recent datasets", description="List the ten most recently modified organization/dataset directories.")
def list_datasets(lister: DatasetLister = Depends(get_dataset_lister)):
    """List dataset ids, newest first; empty on any storage failure."""
    return DatasetList(datasets=lister.list_recent_datasets())


# PUBLIC_INTERFACE
@router.get("/dataset-version", response_model=DatasetVersion, summary="Get dataset version", description="Validate a dataset's codebase_version against the supported set.")
def dataset_version(
    dataset: Optional[str] = Query(None, description="Dataset id (organization/dataset-name)"),
    resolver: MetadataResolver = Depends(get_metadata_resolver),
    settings: Settings = Depends(get_app_settings),
):
    """Return the supported codebase version and the URL of the dataset's info.json."""
    if not dataset:
        raise MissingPathError("Missing dataset parameter")
    version = resolver.get_dataset_version(dataset)
    info_url = resolve_s3_proxy_url(
        resolver.build_versioned_url(dataset, version, INFO_PATH), settings.proxy_origin
    )
    return DatasetVersion(dataset=dataset, codebase_version=version, info_url=info_url)
