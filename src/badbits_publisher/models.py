"""
Data models for publish runs.

These Pydantic models describe the outcome of a publisher cycle so the CLI,
scheduler and host can log or serialize it consistently.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field


class PublishPhase(str, Enum):
    """Publisher state machine phases."""
    IDLE = "idle"
    FETCHING = "fetching"
    SEGMENTING = "segmenting"
    WRITING = "writing"
    SWAPPING = "swapping"
    RECLAIMING = "reclaiming"
    FAILED = "failed"


class PublishStatus(str, Enum):
    """Outcome of a run that did not fail."""
    PUBLISHED = "published"
    UNCHANGED = "unchanged"


class PublishReport(BaseModel):
    """Summary of one successful publisher cycle."""
    status: PublishStatus = Field(..., description="Whether a new version was published")
    version: str = Field(..., description="Version the pointer references after the run")
    previous_version: Optional[str] = Field(default=None, description="Version the pointer referenced before the run")
    hash_count: int = Field(default=0, ge=0, description="Unique hashes in the published version (0 when unchanged)")
    segment_count: int = Field(default=0, ge=0, description="Segments written for the version (0 when unchanged)")
    reclaimed_keys: int = Field(default=0, ge=0, description="Stale segment keys deleted")
    reclaim_errors: int = Field(default=0, ge=0, description="Stale keys that could not be deleted")
    etag: Optional[str] = Field(default=None, description="Source ETag recorded for the version")
    started_at: datetime = Field(..., description="UTC time the run started")
    finished_at: datetime = Field(..., description="UTC time the run finished")

    @computed_field
    @property
    def duration_ms(self) -> int:
        """Wall-clock duration of the run in milliseconds."""
        return int((self.finished_at - self.started_at).total_seconds() * 1000)


__all__ = ["PublishPhase", "PublishStatus", "PublishReport"]
