"""
oemonitor - Monitoring and control of Progress Application Server for OpenEdge (PASOE).

Polls the oemanager REST API of a PASOE instance, keeps bounded in-memory
histories of its metrics and serves them to a web dashboard and a terminal UI.

Examples:
    >>> from oemonitor import MetricsTimeSeriesAggregator, Sample
    >>> aggregator = MetricsTimeSeriesAggregator(capacity=200)
    >>> aggregator.ingest(Sample(timestamp=1000, metrics={"requests": 10}, entities={}))
    >>> aggregator.gauge_series("requests")
    [Point(timestamp=1000, value=10.0)]
"""

from oemonitor.logger import logger
from oemonitor.models import EntityKey, Point, Sample, SeriesKey
from oemonitor.timeseries import MetricsTimeSeriesAggregator

__version__ = "0.1.0"
__all__ = [
    "EntityKey",
    "MetricsTimeSeriesAggregator",
    "Point",
    "Sample",
    "SeriesKey",
    "logger",
]
