"""Tests for MetricsPoller."""

import asyncio
import threading
import time

import pytest
import requests

from oemonitor.exceptions import ApplicationNotSelectedError, OeManagerError
from oemonitor.models import Point, Sample
from oemonitor.poller import MetricsPoller
from oemonitor.timeseries import MetricsTimeSeriesAggregator


def counter_collector(values):
    """Collector returning successive request counter values."""
    remaining = list(values)

    def collect(application: str) -> Sample:
        value = remaining.pop(0)
        return Sample(timestamp=len(values) - len(remaining), metrics={"requests": value})

    return collect


def make_poller(collect, scope="oepas1", interval=0, expected_keys=None):
    aggregator = MetricsTimeSeriesAggregator(scope_id=scope)
    return MetricsPoller("stats", aggregator, collect, interval, expected_keys=expected_keys)


class TestPollOnce:
    """Tests for poll_once."""

    @pytest.mark.asyncio
    async def test_samples_are_ingested(self):
        poller = make_poller(counter_collector([10, 15]))

        assert await poller.poll_once() is True
        assert await poller.poll_once() is True

        assert [p.value for p in poller.aggregator.rate_series("requests")] == [0.0, 5.0]

    @pytest.mark.asyncio
    async def test_no_scope_raises(self):
        poller = make_poller(counter_collector([1]), scope=None)

        with pytest.raises(ApplicationNotSelectedError):
            await poller.poll_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [OeManagerError("Failed to fetch metrics", 500), requests.ConnectionError("refused")],
    )
    async def test_failure_is_recorded_not_raised(self, error, oemonitor_caplog):
        def collect(application: str) -> Sample:
            raise error

        poller = make_poller(collect)

        assert await poller.poll_once() is False
        assert poller.last_error == str(error)
        assert "Poll of oepas1 failed" in oemonitor_caplog.text
        assert len(poller.aggregator) == 0

    @pytest.mark.asyncio
    async def test_stale_sample_is_dropped_after_scope_switch(self):
        """Test that a poll started for one application never lands in another's history."""
        poller: MetricsPoller

        def collect(application: str) -> Sample:
            poller.switch_scope("oepas2")
            return Sample(timestamp=1, metrics={"requests": 1})

        poller = make_poller(collect)

        assert await poller.poll_once() is False
        assert len(poller.aggregator) == 0
        assert poller.aggregator.scope_id == "oepas2"

    @pytest.mark.asyncio
    async def test_expected_keys_are_forwarded(self):
        values = [{"requests": 1}, {}]

        def collect(application: str) -> Sample:
            return Sample(timestamp=len(values), metrics=values.pop(0))

        poller = make_poller(collect, expected_keys=["requests"])
        await poller.poll_once()
        await poller.poll_once()

        assert [obs.value for obs in poller.aggregator.observations("requests")] == [1.0, None]

    @pytest.mark.asyncio
    async def test_missing_metric_leaves_gap_without_expected_keys(self):
        samples = [
            Sample(timestamp=0, metrics={"requests": 10}),
            Sample(timestamp=1000, metrics={}),
            Sample(timestamp=2000, metrics={"requests": 30}),
        ]

        def collect(application: str) -> Sample:
            return samples.pop(0)

        poller = make_poller(collect)
        for _ in range(3):
            await poller.poll_once()

        assert poller.aggregator.rate_series("requests") == [Point(0, 0.0)]

    @pytest.mark.asyncio
    async def test_overlapping_polls_ingest_in_order(self):
        """Test that an on-demand poll waits for the poll already in flight."""
        lock = threading.Lock()
        calls = []

        def collect(application: str) -> Sample:
            with lock:
                calls.append(application)
                call = len(calls)
            if call == 1:
                time.sleep(0.3)
            return Sample(timestamp=(call - 1) * 1000, metrics={"requests": 9 + call})

        poller = make_poller(collect)

        slow = asyncio.create_task(poller.poll_once())
        await asyncio.sleep(0.05)
        results = await asyncio.gather(slow, poller.poll_once())

        assert results == [True, True]
        assert [p.timestamp for p in poller.aggregator.gauge_series("requests")] == [0, 1000]
        assert poller.aggregator.rate_series("requests") == [Point(0, 0.0), Point(1000, 1.0)]


class TestScope:
    """Tests for switch_scope."""

    def test_switch_scope_resets_history(self):
        poller = make_poller(counter_collector([]))
        poller.aggregator.ingest(Sample(timestamp=0, metrics={"requests": 1}))
        poller.last_error = "old"

        poller.switch_scope("oepas2")

        assert poller.scope == "oepas2"
        assert len(poller.aggregator) == 0
        assert poller.last_error is None


class TestSubscriptions:
    """Tests for event subscriptions."""

    @pytest.mark.asyncio
    async def test_tick_and_scope_events(self):
        poller = make_poller(counter_collector([3]))
        subscription = poller.subscribe_queue()

        await poller.poll_once()
        poller.switch_scope("oepas2")

        tick = subscription.queue.get_nowait()
        scope = subscription.queue.get_nowait()
        assert (tick.kind, tick.scope, tick.timestamp) == ("tick", "oepas1", 1)
        assert (scope.kind, scope.scope) == ("scope", "oepas2")

    @pytest.mark.asyncio
    async def test_stop_ends_subscribers(self):
        poller = make_poller(counter_collector([3]))
        received = []

        async def consume():
            async for event in poller.subscribe():
                received.append(event)

        consumer = asyncio.create_task(consume())
        await asyncio.sleep(0)
        await poller.poll_once()
        await poller.stop()
        await asyncio.wait_for(consumer, timeout=1)

        assert [e.kind for e in received] == ["tick"]

    def test_unsubscribe(self):
        poller = make_poller(counter_collector([]))
        subscription = poller.subscribe_queue()
        poller.unsubscribe(subscription)

        poller.switch_scope("oepas2")

        assert subscription.queue.empty()


class TestLoop:
    """Tests for the polling loop."""

    @pytest.mark.asyncio
    async def test_zero_interval_disables_loop(self):
        poller = make_poller(counter_collector([]))

        task = poller.start()
        await task

        assert not poller.is_running

    @pytest.mark.asyncio
    async def test_loop_polls_until_stopped(self):
        calls = []

        def collect(application: str) -> Sample:
            calls.append(application)
            return Sample(timestamp=len(calls), metrics={"requests": len(calls)})

        poller = make_poller(collect, interval=0.01)
        poller.start()
        for _ in range(100):
            if len(calls) >= 2:
                break
            await asyncio.sleep(0.01)
        await poller.stop()

        assert len(calls) >= 2
        assert not poller.is_running
