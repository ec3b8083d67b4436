"""
Renderer-agnostic series descriptions.

Turns aggregator state into plain ``{key, label, kind, points}`` records and a
time window. Whether a chart library updates an existing chart or creates a new
one from these is up to the renderer.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from pydantic import BaseModel

from oemonitor.models.keys import SeriesKey, SeriesKeyLike
from oemonitor.timeseries.aggregator import MetricsTimeSeriesAggregator
from oemonitor.utils.timestamp import now_ms

__all__ = ["SeriesDescription", "SeriesKind", "TimeWindow", "describe_metric", "describe_series", "time_window"]


class SeriesKind(str, Enum):
    """How a series is derived from its history."""

    GAUGE = "gauge"
    RATE = "rate"


class SeriesDescription(BaseModel):
    """One chart line."""

    key: str
    label: str
    kind: SeriesKind
    points: list[tuple[int, float]]


class TimeWindow(BaseModel):
    """Visible time range of a time axis, in UNIX milliseconds."""

    start: int
    end: int
    interval_ms: float


def describe_series(
    aggregator: MetricsTimeSeriesAggregator,
    key: SeriesKeyLike,
    kind: SeriesKind = SeriesKind.GAUGE,
    label: str | None = None,
    scale: float = 1.0,
) -> SeriesDescription:
    """Describe one series.

    Args:
        aggregator: Source of the history
        key: Series key
        kind: Gauge or rate derivation
        label: Legend label; defaults to the key's own label
        scale: Divisor applied to values, e.g. 1024 * 1024 for bytes to MiB
    """
    series_key = SeriesKey.of(key)
    points = aggregator.rate_series(series_key) if kind is SeriesKind.RATE else aggregator.gauge_series(series_key)
    return SeriesDescription(
        key=series_key.encode(),
        label=label or series_key.label,
        kind=kind,
        points=[(p.timestamp, p.value / scale) for p in points],
    )


def describe_metric(
    aggregator: MetricsTimeSeriesAggregator,
    metric: str,
    kind: SeriesKind = SeriesKind.GAUGE,
    scale: float = 1.0,
) -> list[SeriesDescription]:
    """Describe every tracked key of a metric, one line per entity."""
    return [describe_series(aggregator, key, kind, scale=scale) for key in aggregator.keys(metric)]


def time_window(
    aggregator: MetricsTimeSeriesAggregator,
    window_points: int,
    keys: Iterable[SeriesKeyLike] | None = None,
    now: int | None = None,
) -> TimeWindow:
    """Time axis range holding ``window_points`` polls and ending at ``now``.

    ``now`` defaults to the newest sample, or the current time while nothing
    has been ingested. The poll interval is inferred from the histories;
    with one key given its own history is used, otherwise all tracked keys
    are pooled.
    """
    key_list = list(keys) if keys is not None else []
    if len(key_list) == 1:
        interval = aggregator.inferred_interval_millis(key_list[0])
    else:
        interval = aggregator.inferred_interval_millis()
    if now is None:
        latest = aggregator.latest_timestamp()
        now = latest if latest is not None else now_ms()
    end = now
    return TimeWindow(start=int(end - window_points * interval), end=end, interval_ms=interval)
