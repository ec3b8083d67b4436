"""
Monitor - one monitoring session over a PASOE instance.

Owns the oemanager client and, per view, the aggregator and the poller feeding
it. Renderers (dashboard routes, TUI screens) receive a Monitor instead of
reaching for module globals.
"""

from __future__ import annotations

import logging
from functools import partial

from oemonitor.client import OeManagerClient
from oemonitor.config import HistoryLimits, RefreshIntervals
from oemonitor.poller import MetricsPoller, collect_session_sample, collect_stats_sample, stats_keys
from oemonitor.timeseries import MetricsTimeSeriesAggregator
from oemonitor.utils.validators import validate_application_name

logger = logging.getLogger(__name__)

__all__ = ["VIEWS", "Monitor"]

VIEWS = ("stats", "sessions")


class Monitor:
    """Aggregators and pollers for the selected application."""

    def __init__(
        self,
        client: OeManagerClient,
        intervals: RefreshIntervals | None = None,
        limits: HistoryLimits | None = None,
        application: str | None = None,
    ) -> None:
        """Initialize the monitor.

        Args:
            client: oemanager client
            intervals: Polling intervals; defaults to RefreshIntervals()
            limits: History capacities; defaults to HistoryLimits()
            application: Application monitored from the start, if any
        """
        if application is not None:
            validate_application_name(application)
        self.client = client
        self.intervals = intervals or RefreshIntervals()
        self.limits = limits or HistoryLimits()

        stats = MetricsTimeSeriesAggregator(
            capacity=self.limits.stats,
            default_interval_ms=self.intervals.stats * 1000,
            scope_id=application,
        )
        sessions = MetricsTimeSeriesAggregator(
            capacity=self.limits.charts,
            default_interval_ms=self.intervals.charts * 1000,
            scope_id=application,
        )
        self.aggregators: dict[str, MetricsTimeSeriesAggregator] = {"stats": stats, "sessions": sessions}
        self.pollers: dict[str, MetricsPoller] = {
            "stats": MetricsPoller(
                "stats",
                stats,
                partial(collect_stats_sample, client),
                self.intervals.stats,
                expected_keys=stats_keys(),
            ),
            "sessions": MetricsPoller(
                "sessions",
                sessions,
                partial(collect_session_sample, client),
                self.intervals.charts,
            ),
        }

    @property
    def application(self) -> str | None:
        return self.pollers["stats"].scope

    def aggregator(self, view: str) -> MetricsTimeSeriesAggregator:
        """Aggregator of a view.

        Raises:
            KeyError: If the view is unknown
        """
        return self.aggregators[view]

    def poller(self, view: str) -> MetricsPoller:
        """Poller of a view.

        Raises:
            KeyError: If the view is unknown
        """
        return self.pollers[view]

    def select_application(self, application: str | None) -> None:
        """Monitor another application; all histories start over.

        Raises:
            ValueError: If the application name is invalid
        """
        if application is not None:
            validate_application_name(application)
        for poller in self.pollers.values():
            poller.switch_scope(application)

    def reset(self) -> None:
        """Clear every history while keeping the current application."""
        self.select_application(self.application)

    def start(self) -> None:
        """Start all polling loops on the running event loop."""
        for poller in self.pollers.values():
            poller.start()

    async def stop(self) -> None:
        for poller in self.pollers.values():
            await poller.stop()
        self.client.close()
