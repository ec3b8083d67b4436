"""
Chart Screen

One chart of a view drawn full screen, redrawn live.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from textual.app import ComposeResult
from textual.binding import Binding
from textual.screen import Screen
from textual.widgets import Footer, Header, Static

from oemonitor.charts import CHARTS, ChartDescription, render_chart
from oemonitor.tui.widgets import ChartWidget

if TYPE_CHECKING:
    from oemonitor.tui.app import OeMonitorTUIApp

REDRAW_INTERVAL = 1.0


class ChartScreen(Screen[None]):
    """Screen displaying a single chart."""

    BINDINGS = [
        Binding("plus", "zoom_in", "Zoom in", show=True),
        Binding("equals_sign", "zoom_in", "Zoom in", show=False),
        Binding("minus", "zoom_out", "Zoom out", show=True),
        Binding("backspace", "go_back", "Back", show=False),
    ]

    MIN_WINDOW = 10

    def __init__(self, view: str, chart_name: str) -> None:
        super().__init__()
        self._view = view
        self._spec = next(spec for spec in CHARTS[view] if spec.name == chart_name)
        self._window_points: int | None = None

    @property
    def tui_app(self) -> OeMonitorTUIApp:
        """Get the typed app instance."""
        from oemonitor.tui.app import OeMonitorTUIApp

        assert isinstance(self.app, OeMonitorTUIApp)
        return self.app

    @property
    def window_points(self) -> int:
        if self._window_points is None:
            return self.tui_app.monitor.limits.window_points
        return self._window_points

    def compose(self) -> ComposeResult:
        """Compose the screen layout."""
        yield Header()
        yield Static(self._spec.title, classes="screen-title")
        yield ChartWidget(self._describe(), id="chart-full")
        yield Footer()

    def on_mount(self) -> None:
        self.set_interval(REDRAW_INTERVAL, self.refresh_chart)

    def _describe(self) -> ChartDescription:
        aggregator = self.tui_app.monitor.aggregator(self._view)
        return render_chart(aggregator, self._spec, self.window_points)

    def refresh_chart(self) -> None:
        self.query_one("#chart-full", ChartWidget).update_chart(self._describe())

    def action_zoom_in(self) -> None:
        """Show fewer polls on the time axis."""
        self._window_points = max(self.MIN_WINDOW, self.window_points // 2)
        self.refresh_chart()

    def action_zoom_out(self) -> None:
        """Show more polls on the time axis, up to the history capacity."""
        capacity = self.tui_app.monitor.aggregator(self._view).capacity
        self._window_points = min(capacity, self.window_points * 2)
        self.refresh_chart()

    def action_go_back(self) -> None:
        """Go back to previous screen."""
        self.app.pop_screen()
