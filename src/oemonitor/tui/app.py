"""
oemonitor TUI Application

Main application class for the terminal-based PASOE monitor.
"""

from __future__ import annotations

from textual.app import App
from textual.binding import Binding
from textual.theme import Theme

from oemonitor.client import OeManagerClient
from oemonitor.config import get_connection_settings, get_default_application, get_history_limits, get_refresh_intervals
from oemonitor.monitor import Monitor

# Chart line colors, one per series in order
LINE_COLORS = [
    (0, 122, 204),
    (204, 120, 92),
    (90, 139, 111),
    (212, 134, 78),
    (139, 127, 117),
    (200, 76, 60),
]

OEMONITOR_THEME = Theme(
    name="oemonitor",
    primary="#1F3A5F",
    secondary="#5B6B7D",
    accent="#007ACC",
    foreground="#1E2A36",
    background="#F4F6F8",
    surface="#FFFFFF",
    panel="#E1E6EB",
    success="#5A8B6F",
    error="#C84C3C",
    warning="#D4864E",
)


def line_color(index: int) -> tuple[int, int, int]:
    """Color of the index-th line of a chart."""
    return LINE_COLORS[index % len(LINE_COLORS)]


class OeMonitorTUIApp(App[None]):
    """oemonitor Terminal UI Application.

    Browses the applications, agents and sessions of a PASOE instance and
    plots the live statistics gathered by the monitor's pollers.
    """

    TITLE = "oemonitor"
    CSS_PATH = "styles/app.tcss"

    BINDINGS = [
        Binding("q", "quit", "Quit", show=True, priority=True),
        Binding("question_mark", "help", "Help", show=True),
        Binding("escape", "back", "Back", show=True),
    ]

    def __init__(self, monitor: Monitor | None = None) -> None:
        """Initialize the TUI application.

        Args:
            monitor: Monitor to use. Defaults to one built from the environment.
        """
        super().__init__()
        self._monitor = monitor

        self.register_theme(OEMONITOR_THEME)
        self.theme = "oemonitor"

    @property
    def monitor(self) -> Monitor:
        """Get or create the monitor instance."""
        if self._monitor is None:
            self._monitor = Monitor(
                OeManagerClient(get_connection_settings()),
                intervals=get_refresh_intervals(),
                limits=get_history_limits(),
                application=get_default_application(),
            )
        return self._monitor

    def on_mount(self) -> None:
        """Handle mount event - start polling and push the initial screen."""
        from oemonitor.tui.screens import AgentsScreen, ApplicationsScreen

        self.sub_title = self.monitor.client.base_url
        self.monitor.start()
        self.push_screen(ApplicationsScreen())
        if self.monitor.application is not None:
            self.push_screen(AgentsScreen(self.monitor.application))

    async def on_unmount(self) -> None:
        """Stop the pollers and close the HTTP session."""
        if self._monitor is not None:
            await self._monitor.stop()

    async def action_quit(self) -> None:
        """Quit the application."""
        self.exit()

    def action_help(self) -> None:
        """Show help screen."""
        from oemonitor.tui.screens import HelpScreen

        self.push_screen(HelpScreen(self.monitor))

    async def action_back(self) -> None:
        """Go back to previous screen."""
        if len(self.screen_stack) > 2:
            self.pop_screen()
