"""
Metric time series: bounded histories, gauge and rate derivations.
"""

from oemonitor.timeseries.aggregator import DEFAULT_CAPACITY, DEFAULT_INTERVAL_MS, MetricsTimeSeriesAggregator
from oemonitor.timeseries.derive import gauge_points, mean_interval, rate_points
from oemonitor.timeseries.describe import (
    SeriesDescription,
    SeriesKind,
    TimeWindow,
    describe_metric,
    describe_series,
    time_window,
)
from oemonitor.timeseries.history import History, Observation

__all__ = [
    "DEFAULT_CAPACITY",
    "DEFAULT_INTERVAL_MS",
    "History",
    "MetricsTimeSeriesAggregator",
    "Observation",
    "SeriesDescription",
    "SeriesKind",
    "TimeWindow",
    "describe_metric",
    "describe_series",
    "gauge_points",
    "mean_interval",
    "rate_points",
    "time_window",
]
