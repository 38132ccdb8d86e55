"""Object-storage proxy endpoint for clients without storage access."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from src.api.dependencies import get_storage_proxy
from src.services.storage_proxy import StorageProxy

router = APIRouter(prefix="/api", tags=["storage"])

CACHE_CONTROL = "public, max-age=3600"


# PUBLIC_INTERFACE
@router.get("/s3-proxy", summary="Proxy a storage object", description="Return the raw bytes of an object under the storage root.")
def s3_proxy(
    path: Optional[str] = Query(None, description="Path relative to the storage root"),
    proxy: StorageProxy = Depends(get_storage_proxy),
):
    """Stream back an object's bytes with its declared content type."""
    payload = proxy.fetch_object(path)
    return Response(
        content=payload.body,
        media_type=payload.content_type,
        headers={"Cache-Control": CACHE_CONTROL},
    )
