"""
Monitoring routes: scope selection and chart reads.

This module handles:
- Selecting the monitored application (scope) and resetting histories
- Chart descriptions of a view
- Single series reads
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query

from oemonitor.charts import CHARTS, ChartDescription, render_view
from oemonitor.models import SeriesKey
from oemonitor.monitor import VIEWS, Monitor
from oemonitor.timeseries import SeriesDescription, SeriesKind, describe_series

from ..dependencies import CsrfGuard, MonitorDep
from ..models import ScopeInfo, ScopeUpdateRequest, ViewStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def _check_view(view: str) -> str:
    if view not in CHARTS:
        raise HTTPException(status_code=404, detail=f"Unknown view: {view} (expected one of {', '.join(VIEWS)})")
    return view


def _scope_info(monitor: Monitor) -> ScopeInfo:
    views = {}
    for view in VIEWS:
        aggregator = monitor.aggregator(view)
        poller = monitor.poller(view)
        views[view] = ViewStatus(
            series_count=len(aggregator),
            capacity=aggregator.capacity,
            interval_ms=aggregator.inferred_interval_millis(),
            polling=poller.is_running,
            last_error=poller.last_error,
        )
    return ScopeInfo(application=monitor.application, views=views)


@router.get("/monitor/scope")
async def get_scope(monitor: MonitorDep) -> ScopeInfo:
    """Currently monitored application and the state of each view."""
    return _scope_info(monitor)


@router.put("/monitor/scope", dependencies=CsrfGuard)
async def update_scope(body: ScopeUpdateRequest, monitor: MonitorDep) -> ScopeInfo:
    """Monitor another application. Histories of the previous one are discarded.

    Raises:
        HTTPException: 400 if the application name is invalid
    """
    try:
        monitor.select_application(body.application)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    logger.info(f"Monitoring scope set to {body.application!r}")
    return _scope_info(monitor)


@router.post("/monitor/reset", dependencies=CsrfGuard)
async def reset_monitor(monitor: MonitorDep) -> ScopeInfo:
    """Clear every history while keeping the current application."""
    monitor.reset()
    return _scope_info(monitor)


@router.post("/monitor/poll/{view}", dependencies=CsrfGuard)
async def poll_now(view: str, monitor: MonitorDep) -> dict[str, bool]:
    """Poll a view immediately, outside its regular interval.

    ``ingested`` is false if the poll failed; the error is reported in the
    view's ``last_error``.

    Raises:
        HTTPException: 404 if the view is unknown
        ApplicationNotSelectedError: If no application is being monitored (409)
    """
    _check_view(view)
    ingested = await monitor.poller(view).poll_once()
    return {"ingested": ingested}


@router.get("/charts/{view}")
async def get_charts(
    view: str,
    monitor: MonitorDep,
    window: int | None = Query(default=None, gt=0, description="Polls visible on the time axis"),
) -> list[ChartDescription]:
    """Every chart of a view ("stats" or "sessions").

    Raises:
        HTTPException: 404 if the view is unknown
    """
    _check_view(view)
    window_points = window if window is not None else monitor.limits.window_points
    return render_view(monitor.aggregator(view), view, window_points)


@router.get("/series/{view}")
async def get_series(
    view: str,
    monitor: MonitorDep,
    key: str = Query(..., description="Series key, e.g. requests or sessionMemory:1234-5"),
    kind: SeriesKind = Query(default=SeriesKind.GAUGE),
) -> SeriesDescription:
    """One series of a view. Unknown keys yield an empty series.

    Raises:
        HTTPException: 400 if the key is malformed, 404 if the view is unknown
    """
    _check_view(view)
    try:
        series_key = SeriesKey.decode(key)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid series key: {e}") from None
    return describe_series(monitor.aggregator(view), series_key, kind)
