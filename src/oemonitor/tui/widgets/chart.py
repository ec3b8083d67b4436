"""
Chart Widget

A small plotext chart drawing every series of one chart description.
"""

from __future__ import annotations

from textual.app import ComposeResult
from textual.message import Message
from textual.widget import Widget
from textual_plotext import PlotextPlot

from oemonitor.charts import ChartDescription
from oemonitor.tui.app import line_color


class ChartWidget(Widget):
    """A chart widget for one ChartDescription.

    The x axis is in seconds relative to the end of the time window, so the
    newest sample sits at 0 and older ones to the left.
    """

    can_focus = True

    MAX_POINTS = 120

    class Selected(Message):
        """Message sent when the chart is selected."""

        def __init__(self, chart_name: str) -> None:
            self.chart_name = chart_name
            super().__init__()

    def __init__(
        self,
        description: ChartDescription,
        *,
        name: str | None = None,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        super().__init__(name=name, id=id, classes=classes)
        self._description = description
        self._plot: PlotextPlot | None = None

    @property
    def chart_name(self) -> str:
        return self._description.name

    @property
    def description(self) -> ChartDescription:
        return self._description

    def compose(self) -> ComposeResult:
        """Compose the widget layout."""
        self._plot = PlotextPlot()
        yield self._plot

    def on_mount(self) -> None:
        """Handle mount event - render the chart."""
        self._render_chart()

    def update_chart(self, description: ChartDescription) -> None:
        """Redraw with a newer description of the same chart."""
        self._description = description
        self._render_chart()

    def _title(self) -> str:
        desc = self._description
        if not any(s.points for s in desc.series):
            return f"{desc.title} (no data)"
        if len(desc.series) == 1:
            latest = desc.series[0].points[-1][1] if desc.series[0].points else 0.0
            return f"{desc.title} = {latest:.4g} {desc.unit}"
        return f"{desc.title} ({desc.unit})"

    def _render_chart(self) -> None:
        """Render the chart with current data."""
        if self._plot is None:
            return

        plt = self._plot.plt
        plt.clear_figure()
        plt.title(self._title())

        window = self._description.window
        plt.xlim((window.start - window.end) / 1000, 0)
        for index, series in enumerate(self._description.series):
            points = self._display_points(series.points)
            if not points:
                continue
            xs = [(t - window.end) / 1000 for t, _ in points]
            ys = [v for _, v in points]
            plt.plot(xs, ys, label=series.label, color=line_color(index))

        self._plot.refresh()

    def _display_points(self, points: list[tuple[int, float]]) -> list[tuple[int, float]]:
        """Keep at most MAX_POINTS of the newest points."""
        if len(points) <= self.MAX_POINTS:
            return points
        return points[-self.MAX_POINTS :]

    def on_click(self) -> None:
        """Handle click event."""
        self.post_message(self.Selected(self.chart_name))

    def key_enter(self) -> None:
        """Handle Enter key press."""
        self.post_message(self.Selected(self.chart_name))
