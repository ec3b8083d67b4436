"""
Chart catalog.

Declares which series each dashboard chart draws and whether a series is a
gauge (values as sampled) or a rate (per-poll increase of a counter), and
renders a chart into a renderer-agnostic description.
"""

from __future__ import annotations

from pydantic import BaseModel

from oemonitor.timeseries import (
    MetricsTimeSeriesAggregator,
    SeriesDescription,
    SeriesKind,
    TimeWindow,
    describe_metric,
    describe_series,
    time_window,
)

__all__ = [
    "CHARTS",
    "SESSION_CHARTS",
    "STATS_CHARTS",
    "ChartDescription",
    "ChartSpec",
    "LineSpec",
    "render_chart",
    "render_view",
]

MIB = 1024 * 1024


class LineSpec(BaseModel):
    """One line of a chart: a scalar metric, or every entity of a metric."""

    metric: str
    label: str | None = None
    kind: SeriesKind = SeriesKind.GAUGE
    per_entity: bool = False


class ChartSpec(BaseModel):
    name: str
    title: str
    unit: str
    lines: list[LineSpec]
    scale: float = 1.0


class ChartDescription(BaseModel):
    """Everything a renderer needs to draw one chart."""

    name: str
    title: str
    unit: str
    window: TimeWindow
    series: list[SeriesDescription]


STATS_CHARTS: list[ChartSpec] = [
    ChartSpec(
        name="memory",
        title="Memory Usage",
        unit="MiB",
        scale=MIB,
        lines=[LineSpec(metric="memoryUsed", label="Memory Used")],
    ),
    ChartSpec(
        name="connections",
        title="Connections",
        unit="Connections",
        lines=[
            LineSpec(metric="concurrentConnectedClients", label="CurrCnx"),
            LineSpec(metric="maxConcurrentClients", label="MaxCnx"),
        ],
    ),
    ChartSpec(
        name="requests",
        title="Requests",
        unit="Requests / poll",
        lines=[
            LineSpec(metric="requests", label="Requests", kind=SeriesKind.RATE),
            LineSpec(metric="numReserveABLSessionTimeouts", label="Time Outs", kind=SeriesKind.RATE),
            LineSpec(metric="numReserveABLSessionWaits", label="Waits", kind=SeriesKind.RATE),
        ],
    ),
    ChartSpec(
        name="reads",
        title="Reads",
        unit="Reads / poll",
        lines=[
            LineSpec(metric="reads", label="Reads", kind=SeriesKind.RATE),
            LineSpec(metric="readErrors", label="Read Errors", kind=SeriesKind.RATE),
        ],
    ),
    ChartSpec(
        name="writes",
        title="Writes",
        unit="Writes / poll",
        lines=[
            LineSpec(metric="writes", label="Writes", kind=SeriesKind.RATE),
            LineSpec(metric="writeErrors", label="Write Errors", kind=SeriesKind.RATE),
        ],
    ),
    ChartSpec(
        name="sessions",
        title="Sessions & Agents",
        unit="Count",
        lines=[
            LineSpec(metric="idleSessions", label="Idle Sessions"),
            LineSpec(metric="busySessions", label="Busy Sessions"),
            LineSpec(metric="stoppingAgents", label="Stopping Agents"),
        ],
    ),
]

SESSION_CHARTS: list[ChartSpec] = [
    ChartSpec(
        name="memory",
        title="Session Memory",
        unit="MB",
        scale=MIB,
        lines=[LineSpec(metric="sessionMemory", per_entity=True)],
    ),
    ChartSpec(
        name="completed",
        title="Requests Completed",
        unit="Requests",
        lines=[LineSpec(metric="requestsCompleted", per_entity=True)],
    ),
    ChartSpec(
        name="failed",
        title="Requests Failed",
        unit="Requests",
        lines=[LineSpec(metric="requestsFailed", per_entity=True)],
    ),
]

CHARTS: dict[str, list[ChartSpec]] = {"stats": STATS_CHARTS, "sessions": SESSION_CHARTS}


def render_chart(
    aggregator: MetricsTimeSeriesAggregator,
    spec: ChartSpec,
    window_points: int | None = None,
    now: int | None = None,
) -> ChartDescription:
    """Describe one chart from the aggregator's current histories.

    Args:
        aggregator: Histories of the chart's view
        spec: Chart definition
        window_points: Polls visible on the time axis; defaults to the history capacity
        now: End of the time window in UNIX ms; defaults to the newest sample
    """
    series: list[SeriesDescription] = []
    scalar_keys: list[str] = []
    for line in spec.lines:
        if line.per_entity:
            series.extend(describe_metric(aggregator, line.metric, line.kind, scale=spec.scale))
        elif line.metric in aggregator:
            scalar_keys.append(line.metric)
            series.append(describe_series(aggregator, line.metric, line.kind, label=line.label, scale=spec.scale))

    points = window_points if window_points is not None else aggregator.capacity
    window = time_window(aggregator, points, keys=scalar_keys if len(scalar_keys) == 1 else None, now=now)
    return ChartDescription(name=spec.name, title=spec.title, unit=spec.unit, window=window, series=series)


def render_view(
    aggregator: MetricsTimeSeriesAggregator,
    view: str,
    window_points: int | None = None,
    now: int | None = None,
) -> list[ChartDescription]:
    """Describe every chart of a view ("stats" or "sessions").

    Raises:
        KeyError: If the view is unknown
    """
    return [render_chart(aggregator, spec, window_points, now) for spec in CHARTS[view]]
