"""Tests for Monitor."""

import pytest

from oemonitor.config import HistoryLimits
from oemonitor.models import Sample
from oemonitor.monitor import VIEWS, Monitor


class TestMonitor:
    """Tests for Monitor wiring and scope handling."""

    def test_views_have_aggregator_and_poller(self, monitor):
        for view in VIEWS:
            assert monitor.poller(view).aggregator is monitor.aggregator(view)

    def test_capacities_follow_limits(self, fake_client, quiet_intervals):
        monitor = Monitor(fake_client, quiet_intervals, HistoryLimits(charts=20, stats=30))

        assert monitor.aggregator("sessions").capacity == 20
        assert monitor.aggregator("stats").capacity == 30

    def test_unknown_view(self, monitor):
        with pytest.raises(KeyError):
            monitor.aggregator("nope")

    def test_select_application_resets_every_view(self, monitor):
        for view in VIEWS:
            monitor.aggregator(view).ingest(Sample(timestamp=0, metrics={"requests": 1}))

        monitor.select_application("oepas2")

        assert monitor.application == "oepas2"
        for view in VIEWS:
            assert len(monitor.aggregator(view)) == 0
            assert monitor.aggregator(view).scope_id == "oepas2"

    def test_invalid_application_rejected(self, monitor):
        with pytest.raises(ValueError):
            monitor.select_application("../x")
        assert monitor.application == "oepas1"

    def test_reset_keeps_application(self, monitor):
        monitor.aggregator("stats").ingest(Sample(timestamp=0, metrics={"requests": 1}))

        monitor.reset()

        assert monitor.application == "oepas1"
        assert len(monitor.aggregator("stats")) == 0

    @pytest.mark.asyncio
    async def test_poll_feeds_stats_view(self, monitor):
        assert await monitor.poller("stats").poll_once() is True

        stats = monitor.aggregator("stats")
        assert stats.gauge_series("requests")[0].value == 10.0
        assert stats.gauge_series("busySessions")[0].value == 1.0

    @pytest.mark.asyncio
    async def test_stop_closes_client(self, monitor, fake_client):
        monitor.start()
        await monitor.stop()

        fake_client.close.assert_called_once()
