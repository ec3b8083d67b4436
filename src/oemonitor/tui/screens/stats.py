"""
Stats Screen

Grid of live charts for the PASOE statistics or the per-session metrics of
the monitored application.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from textual import on
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Grid
from textual.screen import Screen
from textual.widgets import Footer, Header

from oemonitor.charts import ChartDescription, render_view
from oemonitor.tui.widgets import ChartWidget, ScopeBar

if TYPE_CHECKING:
    from oemonitor.tui.app import OeMonitorTUIApp

VIEW_TITLES = {"stats": "Statistics", "sessions": "Session charts"}

# Redraw period in seconds; pollers run on their own intervals
REDRAW_INTERVAL = 1.0


class StatsScreen(Screen[None]):
    """Screen displaying live charts of one view."""

    BINDINGS = [
        Binding("v", "toggle_view", "Stats/Sessions", show=True),
        Binding("z", "reset_history", "Clear history", show=True),
        Binding("backspace", "go_back", "Back", show=False),
    ]

    def __init__(self, application: str, view: str = "stats") -> None:
        super().__init__()
        self._application = application
        self._view = view

    @property
    def tui_app(self) -> OeMonitorTUIApp:
        """Get the typed app instance."""
        from oemonitor.tui.app import OeMonitorTUIApp

        assert isinstance(self.app, OeMonitorTUIApp)
        return self.app

    @property
    def view(self) -> str:
        return self._view

    def compose(self) -> ComposeResult:
        """Compose the screen layout."""
        yield Header()
        yield Container(
            ScopeBar(self._scope_items(), id="scope-bar"),
            Grid(id="charts-grid"),
            classes="main-container",
        )
        yield Footer()

    def on_mount(self) -> None:
        """Handle mount event - build the charts and start redrawing."""
        self._rebuild_charts()
        self.set_interval(REDRAW_INTERVAL, self.refresh_charts)

    def _scope_items(self) -> list[str]:
        return ["PASOE", self._application, VIEW_TITLES[self._view]]

    def _describe(self) -> list[ChartDescription]:
        monitor = self.tui_app.monitor
        return render_view(monitor.aggregator(self._view), self._view, monitor.limits.window_points)

    def _rebuild_charts(self) -> None:
        grid = self.query_one("#charts-grid", Grid)
        grid.remove_children()
        grid.mount_all(ChartWidget(description, classes="chart-cell") for description in self._describe())

    def refresh_charts(self) -> None:
        """Redraw every chart from the aggregator's current histories."""
        charts = {chart.chart_name: chart for chart in self.query(ChartWidget)}
        for description in self._describe():
            chart = charts.get(description.name)
            if chart is not None:
                chart.update_chart(description)
        poller = self.tui_app.monitor.poller(self._view)
        self.query_one("#scope-bar", ScopeBar).set_error(poller.last_error)

    @on(ChartWidget.Selected)
    def on_chart_selected(self, event: ChartWidget.Selected) -> None:
        """Open the selected chart full screen."""
        from oemonitor.tui.screens.chart import ChartScreen

        self.app.push_screen(ChartScreen(self._view, event.chart_name))

    def action_toggle_view(self) -> None:
        """Switch between the statistics and the session charts."""
        self._view = "sessions" if self._view == "stats" else "stats"
        self.query_one("#scope-bar", ScopeBar).update_items(self._scope_items())
        self._rebuild_charts()

    def action_reset_history(self) -> None:
        """Clear every history of the monitored application."""
        self.tui_app.monitor.reset()
        self.refresh_charts()
        self.notify("History cleared")

    def action_go_back(self) -> None:
        """Go back to previous screen."""
        self.app.pop_screen()
