"""
MetricsPoller - periodic polling loop feeding one aggregator.

The poller wakes on a fixed interval, runs a blocking collector in a worker
thread, and ingests the resulting Sample on the event loop. The next tick is
only scheduled once the previous round trip has finished, and a lock keeps
on-demand polls from overlapping the loop, so ingests for a view stay in
order.

Switching scope bumps an epoch and resets the aggregator. A collection that
started under an older epoch is dropped when it completes.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import uuid
from collections.abc import AsyncGenerator, Callable, Iterable
from dataclasses import dataclass, field

import requests
from pydantic import BaseModel

from oemonitor.exceptions import ApplicationNotSelectedError, OeManagerError
from oemonitor.models import Sample, SeriesKeyLike
from oemonitor.timeseries import MetricsTimeSeriesAggregator

logger = logging.getLogger(__name__)

__all__ = ["Collector", "MetricsPoller", "Subscription", "TickEvent"]

Collector = Callable[[str], Sample]


class TickEvent(BaseModel):
    """Published after every successful ingest, or when the scope changes."""

    view: str
    scope: str | None
    timestamp: int | None = None
    kind: str = "tick"


@dataclass
class Subscription:
    """Subscription to poller events."""

    id: str
    queue: asyncio.Queue[TickEvent | None] = field(default_factory=asyncio.Queue)


class MetricsPoller:
    """Polls one view (statistics or session charts) for the selected application."""

    def __init__(
        self,
        view: str,
        aggregator: MetricsTimeSeriesAggregator,
        collect: Collector,
        interval: float,
        expected_keys: Iterable[SeriesKeyLike] | None = None,
    ) -> None:
        """Initialize the poller.

        Args:
            view: Name of the view this poller feeds, e.g. "stats"
            aggregator: Aggregator receiving the samples
            collect: Blocking function building a Sample for an application
            interval: Seconds between the end of one poll and the next; 0 disables the loop
            expected_keys: Keys passed to every ingest so that missing values show as gaps
        """
        self.view = view
        self.aggregator = aggregator
        self._collect = collect
        self.interval = interval
        self._expected_keys = list(expected_keys) if expected_keys is not None else None
        self._scope: str | None = aggregator.scope_id
        self._epoch = 0
        self._poll_lock = asyncio.Lock()
        self._task: asyncio.Task[None] | None = None
        self._subscriptions: dict[str, Subscription] = {}
        self.last_error: str | None = None

    @property
    def scope(self) -> str | None:
        return self._scope

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def switch_scope(self, application: str | None) -> None:
        """Monitor another application, discarding all history of the previous one."""
        self._epoch += 1
        self._scope = application
        self.aggregator.reset(application)
        self.last_error = None
        logger.info(f"[{self.view}] Monitoring scope is now {application!r}")
        self._publish(TickEvent(view=self.view, scope=application, kind="scope"))

    async def poll_once(self) -> bool:
        """Collect and ingest one sample.

        Returns:
            True if a sample was ingested, False if the poll failed or was stale

        Raises:
            ApplicationNotSelectedError: If no application is being monitored
        """
        # One poll at a time per view, so samples reach the aggregator in order
        async with self._poll_lock:
            scope = self._scope
            if scope is None:
                raise ApplicationNotSelectedError(f"No application selected for {self.view}")
            epoch = self._epoch

            try:
                sample = await asyncio.to_thread(self._collect, scope)
            except (OeManagerError, requests.RequestException, ValueError) as e:
                self.last_error = str(e)
                logger.warning(f"[{self.view}] Poll of {scope} failed: {e}")
                return False

            if epoch != self._epoch:
                logger.debug(f"[{self.view}] Dropping stale sample for {scope} after scope switch")
                return False

            self.aggregator.ingest(sample, self._expected_keys)
            self.last_error = None
            self._publish(TickEvent(view=self.view, scope=scope, timestamp=sample.timestamp))
            return True

    async def run(self) -> None:
        """Poll until cancelled."""
        if self.interval <= 0:
            logger.info(f"[{self.view}] Polling disabled (interval 0)")
            return
        while True:
            if self._scope is not None:
                await self.poll_once()
            await asyncio.sleep(self.interval)

    def start(self) -> asyncio.Task[None]:
        """Start the polling loop on the running event loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(), name=f"poller-{self.view}")
        return self._task

    async def stop(self) -> None:
        """Stop the polling loop and close every subscription."""
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        for subscription in list(self._subscriptions.values()):
            subscription.queue.put_nowait(None)
        self._subscriptions.clear()

    def _publish(self, event: TickEvent) -> None:
        for subscription in self._subscriptions.values():
            subscription.queue.put_nowait(event)

    def subscribe_queue(self) -> Subscription:
        """Register a new subscription and return it."""
        subscription = Subscription(id=uuid.uuid4().hex)
        self._subscriptions[subscription.id] = subscription
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        self._subscriptions.pop(subscription.id, None)

    async def subscribe(self) -> AsyncGenerator[TickEvent, None]:
        """Yield events until the poller stops or the consumer closes the generator."""
        subscription = self.subscribe_queue()
        try:
            while True:
                event = await subscription.queue.get()
                if event is None:
                    break
                yield event
        finally:
            self.unsubscribe(subscription)
