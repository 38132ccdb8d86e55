"""Domain DTOs for dataset listings and dataset metadata."""
from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class DatasetDescriptor(BaseModel):
    """Dataset directory found by a listing request."""
    path: str = Field(..., description="Relative dataset id (organization/dataset-name)")
    last_modified: datetime = Field(..., description="Most recent modification of any object under the dataset")


class DatasetList(BaseModel):
    """Response body of the dataset listing endpoint."""
    datasets: List[str] = Field(default_factory=list, description="Most recently modified dataset ids")


class DatasetInfo(BaseModel):
    """Contents of a dataset's meta/info.json.

    Only ``features`` and ``codebase_version`` are interpreted; every other
    field is carried through as-is.
    """
    model_config = ConfigDict(extra="allow")

    codebase_version: Optional[Any] = Field(None, description="Schema/tooling revision that produced the dataset")
    features: Dict[str, Any] = Field(..., description="Feature schema; presence marks a well-formed document")
    robot_type: Any = Field(None, description="Robot type")
    total_episodes: Any = Field(None, description="Episode count")
    total_frames: Any = Field(None, description="Frame count")
    total_tasks: Any = Field(None, description="Task count")
    fps: Any = Field(None, description="Frames per second")
    splits: Any = Field(None, description="Split name to episode range")
    data_path: Any = Field(None, description="Data file path template")
    video_path: Any = Field(None, description="Video file path template")


class DatasetVersion(BaseModel):
    """Validated version of a dataset plus the URL of its metadata file."""
    dataset: str = Field(..., description="Dataset id")
    codebase_version: str = Field(..., description="Supported codebase version")
    info_url: str = Field(..., description="Versioned URL of meta/info.json")
