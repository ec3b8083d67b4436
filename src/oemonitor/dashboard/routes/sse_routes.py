"""
Server-Sent Events (SSE) routes for the oemonitor dashboard.

This module handles real-time streaming endpoints:
- Poller tick stream of the monitored views
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress

from fastapi import APIRouter, Query
from sse_starlette.sse import EventSourceResponse

from oemonitor.config import is_dev_mode
from oemonitor.monitor import VIEWS
from oemonitor.poller import Subscription, TickEvent

from ..dependencies import MonitorDep

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/monitor/stream")
async def stream_ticks(
    monitor: MonitorDep,
    views: str = Query(default=",".join(VIEWS), description="Comma-separated views to follow"),
) -> EventSourceResponse:
    """Stream poller events using Server-Sent Events (SSE).

    A client refetches ``/api/charts/{view}`` when it receives a tick for that view.

    Args:
        views: Comma-separated list of views (e.g., "stats,sessions").

    Returns:
        EventSourceResponse streaming poller events.
        Event types:
        - `tick`: `{"event": "tick", "data": <TickEvent JSON>}` after each ingest
        - `scope`: `{"event": "scope", "data": <TickEvent JSON>}` after a scope switch
        - `error`: invalid request
    """
    from ..main import app_state

    view_list = [v.strip() for v in views.split(",") if v.strip()]
    unknown = [v for v in view_list if v not in VIEWS]
    if not view_list or unknown:
        error_msg = f"Unknown views: {', '.join(unknown)}" if unknown else "No views specified"

        async def error_generator():
            yield {"event": "error", "data": error_msg}

        return EventSourceResponse(error_generator())

    async def event_generator():
        logger.info(f"[SSE] event_generator started for views={view_list}")

        current_task = asyncio.current_task()
        if current_task is not None:
            app_state.active_sse_tasks.add(current_task)

        # Every poller and the shutdown signal feed one queue
        merged: asyncio.Queue[TickEvent | None] = asyncio.Queue()
        app_state.active_sse_connections.add(merged)

        subscriptions: list[tuple[str, Subscription]] = []
        forwarders: list[asyncio.Task[None]] = []

        async def forward(subscription: Subscription) -> None:
            while True:
                event = await subscription.queue.get()
                await merged.put(event)
                if event is None:
                    return

        for view in view_list:
            subscription = monitor.poller(view).subscribe_queue()
            subscriptions.append((view, subscription))
            forwarders.append(asyncio.create_task(forward(subscription), name=f"sse-forward-{view}"))

        dev_mode = is_dev_mode()
        wait_timeout = 1.0 if dev_mode else None

        try:
            while True:
                if dev_mode and app_state.shutting_down:
                    logger.info("[SSE] Dev mode: shutdown flag detected")
                    break

                try:
                    event = await asyncio.wait_for(merged.get(), timeout=wait_timeout)
                except asyncio.TimeoutError:
                    continue

                if event is None:
                    logger.info("[SSE] Shutdown requested")
                    break

                logger.debug(f"[SSE] Sending {event.kind} for view={event.view}")
                yield {"event": event.kind, "data": event.model_dump_json()}

        except asyncio.CancelledError:
            logger.info("[SSE] Generator cancelled")
            raise
        finally:
            logger.info("[SSE] event_generator finished, cleaning up")
            app_state.active_sse_connections.discard(merged)
            if current_task is not None:
                app_state.active_sse_tasks.discard(current_task)
            for task in forwarders:
                task.cancel()
                with suppress(asyncio.CancelledError):
                    await task
            for view, subscription in subscriptions:
                monitor.poller(view).unsubscribe(subscription)

    return EventSourceResponse(event_generator())
