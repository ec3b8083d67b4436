"""
Polling collaborator: collectors, sample builders and the polling loop.
"""

from oemonitor.poller.collectors import collect_session_sample, collect_stats_sample
from oemonitor.poller.poller import Collector, MetricsPoller, Subscription, TickEvent
from oemonitor.poller.samples import (
    SESSION_METRICS,
    STATS_METRICS,
    StatsSnapshot,
    build_session_sample,
    build_stats_sample,
    stats_keys,
)

__all__ = [
    "SESSION_METRICS",
    "STATS_METRICS",
    "Collector",
    "MetricsPoller",
    "StatsSnapshot",
    "Subscription",
    "TickEvent",
    "build_session_sample",
    "build_stats_sample",
    "collect_session_sample",
    "collect_stats_sample",
    "stats_keys",
]
