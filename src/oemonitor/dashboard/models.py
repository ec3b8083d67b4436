"""
Request and response models for the dashboard API.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

__all__ = [
    "AblObjectsRequest",
    "ScopeInfo",
    "ScopeUpdateRequest",
    "ViewStatus",
]


class ScopeUpdateRequest(BaseModel):
    """Select the application to monitor. None stops monitoring."""

    application: str | None = None


class ViewStatus(BaseModel):
    """State of one monitored view."""

    series_count: int
    capacity: int
    interval_ms: float
    polling: bool
    last_error: str | None = None


class ScopeInfo(BaseModel):
    application: str | None
    views: dict[str, ViewStatus]


class AblObjectsRequest(BaseModel):
    """Enable or disable ABL objects tracking."""

    enabled: bool = Field(..., description="True to start tracking ABL objects")
