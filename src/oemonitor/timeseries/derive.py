"""
Pure derivations over history snapshots.

Each function takes the observations of a single key and never looks at other
keys, so results depend only on that key's own sequence.
"""

from __future__ import annotations

from collections.abc import Sequence

from oemonitor.models.series import Point
from oemonitor.timeseries.history import Observation

__all__ = ["gauge_points", "mean_interval", "rate_points"]


def gauge_points(observations: Sequence[Observation]) -> list[Point]:
    """Raw sampled values; polls without a usable value read as 0."""
    return [Point(obs.timestamp, obs.value if obs.value is not None else 0.0) for obs in observations]


def rate_points(observations: Sequence[Observation]) -> list[Point]:
    """Non-negative per-poll deltas of a cumulative counter.

    - The first observation has no predecessor and yields 0 at its timestamp.
    - A negative delta means the counter was reset upstream and yields 0.
    - A pair where either side has no usable value yields no point.

    Example:
        counter values [10, 15, 15, 22] -> rates [0, 5, 0, 7]
    """
    points: list[Point] = []
    previous: float | None = None
    for index, obs in enumerate(observations):
        if index == 0:
            if obs.value is not None:
                points.append(Point(obs.timestamp, 0.0))
        elif obs.value is not None and previous is not None:
            points.append(Point(obs.timestamp, max(0.0, obs.value - previous)))
        previous = obs.value
    return points


def mean_interval(timestamps: Sequence[int]) -> float | None:
    """Mean gap between consecutive timestamps, or None with fewer than two."""
    if len(timestamps) < 2:
        return None
    return (timestamps[-1] - timestamps[0]) / (len(timestamps) - 1)
