"""Application configuration utilities.

This module centralizes environment configuration for the backend: the storage
root that scopes every dataset operation, the boto3 region, and the hub/storage
mode switch used by the metadata resolver.

Environment variables (to be provided via .env by orchestrator):
- S3_DATASET_PREFIX: Storage root in s3://bucket/prefix/ form
  (NEXT_PUBLIC_S3_DATASET_PREFIX is accepted as a fallback)
- AWS_REGION: Region for the S3 client; defaults to us-east-1
- USE_HUGGINGFACE: 'true' selects hub mode; anything else selects storage mode
- DATASET_URL: Hub base URL, only used in hub mode
- S3_PROXY_ORIGIN: Origin of a remote /api/s3-proxy endpoint. When set, this
  process acts as a proxy client instead of reading storage directly.
- MAX_OBJECT_BYTES: Largest object body the proxy will buffer in memory
- CORS_ORIGINS: Comma separated list of allowed origins

Note: Settings are read once and handed to components explicitly; components
never look at the environment themselves.
"""
from __future__ import annotations

import os
from typing import Optional
from pydantic import BaseModel, Field

DEFAULT_HUB_BASE_URL = "https://huggingface.co/datasets"
DEFAULT_MAX_OBJECT_BYTES = 256 * 1024 * 1024
HUB_FETCH_TIMEOUT_SECONDS = 10


class Settings(BaseModel):
    """Configuration settings loaded from environment with safe defaults."""
    storage_root: str = Field(
        default="", description="Storage root in s3://bucket/prefix/ form."
    )
    aws_region: str = Field(default="us-east-1", description="Region for the S3 client.")
    use_hub: bool = Field(
        default=False, description="Read dataset metadata from the dataset hub instead of storage."
    )
    hub_base_url: str = Field(
        default=DEFAULT_HUB_BASE_URL, description="Dataset hub base URL (hub mode only)."
    )
    proxy_origin: Optional[str] = Field(
        default=None, description="Origin of a remote storage proxy (client context only)."
    )
    max_object_bytes: int = Field(
        default=DEFAULT_MAX_OBJECT_BYTES, gt=0, description="Maximum proxied object size in bytes."
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Allowed CORS origins.",
    )


def _env_flag(*names: str) -> bool:
    for name in names:
        raw = os.getenv(name)
        if raw is not None:
            return raw.strip().lower() == "true"
    return False


def _first_env(*names: str, default: str = "") -> str:
    for name in names:
        raw = os.getenv(name)
        if raw:
            return raw.strip()
    return default


def load_settings() -> Settings:
    """Load settings from environment with robust defaults and validation.

    Returns:
        Settings: Validated settings object.

    Raises:
        ValidationError: If environment values are invalid.
    """
    cors_origins_raw = os.getenv("CORS_ORIGINS", "http://localhost:3000")
    cors_origins = [o.strip() for o in cors_origins_raw.split(",") if o.strip()]

    proxy_origin = os.getenv("S3_PROXY_ORIGIN", "").strip().rstrip("/")

    return Settings(
        storage_root=_first_env("S3_DATASET_PREFIX", "NEXT_PUBLIC_S3_DATASET_PREFIX"),
        aws_region=_first_env("AWS_REGION", default="us-east-1"),
        use_hub=_env_flag("USE_HUGGINGFACE", "NEXT_PUBLIC_USE_HUGGINGFACE"),
        hub_base_url=_first_env("DATASET_URL", default=DEFAULT_HUB_BASE_URL).rstrip("/"),
        proxy_origin=proxy_origin or None,
        max_object_bytes=os.getenv("MAX_OBJECT_BYTES", str(DEFAULT_MAX_OBJECT_BYTES)),  # type: ignore[arg-type]
        cors_origins=cors_origins,
    )


# Singleton-style accessor
_settings: Optional[Settings] = None

# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Get cached application settings."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings

# PUBLIC_INTERFACE
def reset_settings_cache() -> None:
    """Reset the cached settings.

    This is primarily intended for tests to ensure that changes to environment
    variables (e.g., S3_DATASET_PREFIX, USE_HUGGINGFACE) take effect on
    subsequent calls to get_settings().
    """
    global _settings
    _settings = None
