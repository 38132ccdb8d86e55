"""Health and diagnostics endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from src.api.dependencies import get_app_settings
from src.core.config import Settings

router = APIRouter(tags=["health"])


# PUBLIC_INTERFACE
@router.get("/", summary="Health Check", description="Health check reporting the metadata source mode.", operation_id="health_check")
def health_check(settings: Settings = Depends(get_app_settings)):
    """Return a simple health status and whether metadata comes from the hub or storage."""
    return {"status": "ok", "mode": "hub" if settings.use_hub else "storage"}
