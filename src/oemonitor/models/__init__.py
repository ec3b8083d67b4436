"""
oemonitor data models package.

This package contains core data models used across all oemonitor components.
"""

from oemonitor.models.keys import EntityKey, SeriesKey, SeriesKeyLike
from oemonitor.models.resources import (
    AgentInfo,
    AgentStats,
    ApplicationInfo,
    RequestInfo,
    SessionInfo,
    SessionManagerMetrics,
    coerce_metric,
)
from oemonitor.models.series import Point, Sample
from oemonitor.models.state import AgentState, SessionState

__all__ = [
    "AgentInfo",
    "AgentState",
    "AgentStats",
    "ApplicationInfo",
    "EntityKey",
    "Point",
    "RequestInfo",
    "Sample",
    "SeriesKey",
    "SeriesKeyLike",
    "SessionInfo",
    "SessionManagerMetrics",
    "SessionState",
    "coerce_metric",
]
