"""
Applications Screen

Lists the ABL applications of the PASOE instance.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import requests
from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Vertical
from textual.screen import Screen
from textual.widgets import DataTable, Footer, Header, Static

from oemonitor.exceptions import OeManagerError
from oemonitor.models import ApplicationInfo

if TYPE_CHECKING:
    from oemonitor.tui.app import OeMonitorTUIApp

logger = logging.getLogger(__name__)


class ApplicationsScreen(Screen[None]):
    """Screen displaying the ABL applications."""

    BINDINGS = [
        Binding("r", "refresh", "Refresh", show=True),
        Binding("j", "cursor_down", "Down", show=False),
        Binding("k", "cursor_up", "Up", show=False),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._applications: list[ApplicationInfo] = []

    @property
    def tui_app(self) -> OeMonitorTUIApp:
        """Get the typed app instance."""
        from oemonitor.tui.app import OeMonitorTUIApp

        assert isinstance(self.app, OeMonitorTUIApp)
        return self.app

    def compose(self) -> ComposeResult:
        """Compose the screen layout."""
        yield Header()
        yield Container(
            Static("Applications", classes="screen-title"),
            Vertical(
                DataTable(id="applications-table", cursor_type="row"),
                classes="table-container",
            ),
            Static(id="applications-status", classes="status-line"),
            classes="main-container",
        )
        yield Footer()

    def on_mount(self) -> None:
        """Handle mount event - load applications."""
        table = self.query_one("#applications-table", DataTable)
        table.add_column("Name")
        table.add_column("Version")
        table.add_column("Description")
        table.focus()
        self.load_applications()

    @work(thread=True, exclusive=True, group="applications")
    def load_applications(self) -> None:
        """Fetch applications in a worker thread."""
        client = self.tui_app.monitor.client
        try:
            applications = client.fetch_applications()
        except (OeManagerError, requests.RequestException, ValueError) as e:
            logger.warning("Failed to load applications: %s", e)
            self.app.call_from_thread(self._show_error, str(e))
            return
        self.app.call_from_thread(self._show_applications, applications)

    def _show_error(self, message: str) -> None:
        self.query_one("#applications-status", Static).update(f"[red]{message}[/red]")
        self.notify("Failed to load applications", severity="error")

    def _show_applications(self, applications: list[ApplicationInfo]) -> None:
        self._applications = sorted(applications, key=lambda a: a.name.lower())
        table = self.query_one("#applications-table", DataTable)
        table.clear()
        for application in self._applications:
            table.add_row(
                application.name,
                application.version or "-",
                application.description or "-",
                key=application.name,
            )
        self.query_one("#applications-status", Static).update(f"{len(self._applications)} application(s)")

    @on(DataTable.RowSelected, "#applications-table")
    def on_application_selected(self, event: DataTable.RowSelected) -> None:
        """Monitor the selected application and show its agents."""
        if event.row_key and event.row_key.value:
            application = str(event.row_key.value)
            from oemonitor.tui.screens import AgentsScreen

            monitor = self.tui_app.monitor
            if monitor.application != application:
                try:
                    monitor.select_application(application)
                except ValueError as e:
                    self.notify(str(e), severity="error")
                    return
            self.app.push_screen(AgentsScreen(application))

    def action_refresh(self) -> None:
        self.load_applications()

    def action_cursor_down(self) -> None:
        """Move cursor down in table."""
        self.query_one("#applications-table", DataTable).action_cursor_down()

    def action_cursor_up(self) -> None:
        """Move cursor up in table."""
        self.query_one("#applications-table", DataTable).action_cursor_up()
