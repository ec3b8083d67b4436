"""
Agents Screen

Displays the agents of an application with their sessions, and runs the
agent and session control actions.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

import requests
from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Vertical
from textual.screen import Screen
from textual.widgets import DataTable, Footer, Header, Static

from oemonitor.charts import MIB
from oemonitor.config import is_read_only
from oemonitor.exceptions import OeManagerError
from oemonitor.models import AgentInfo, AgentState, SessionInfo, SessionState
from oemonitor.tui.widgets import ScopeBar
from oemonitor.utils.timestamp import now_ms

if TYPE_CHECKING:
    from oemonitor.tui.app import OeMonitorTUIApp

logger = logging.getLogger(__name__)

AGENT_STATE_STYLES = {
    AgentState.AVAILABLE: "[green]AVAILABLE[/]",
    AgentState.BUSY: "[yellow]BUSY[/]",
    AgentState.STARTING: "[cyan]STARTING[/]",
    AgentState.STOPPING: "[red]STOPPING[/]",
    AgentState.STOPPED: "[red]STOPPED[/]",
}

SESSION_STATE_STYLES = {
    SessionState.IDLE: "[green]IDLE[/]",
    SessionState.BUSY: "[yellow]BUSY[/]",
    SessionState.RESERVED: "[yellow]RESERVED[/]",
    SessionState.STARTING: "[cyan]STARTING[/]",
    SessionState.TERMINATING: "[red]TERMINATING[/]",
}


def format_memory(value: float | None) -> str:
    """Format a byte count as MiB."""
    if value is None:
        return "-"
    return f"{value / MIB:.1f} MiB"


def format_count(value: float | None) -> str:
    if value is None:
        return "-"
    return str(int(value))


def format_elapsed(started_ms: int | None, now: int | None = None) -> str:
    """Format the time since ``started_ms`` as ``42s``, ``5m 3s`` or ``2h 10m``."""
    if started_ms is None:
        return "-"
    current = now_ms() if now is None else now
    seconds = max(0, (current - started_ms) // 1000)
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m {seconds % 60}s"
    return f"{seconds // 3600}h {seconds % 3600 // 60}m"


class AgentsScreen(Screen[None]):
    """Screen displaying agents and sessions of one application."""

    BINDINGS = [
        Binding("r", "refresh", "Refresh", show=True),
        Binding("c", "charts", "Charts", show=True),
        Binding("a", "add_agent", "Add agent", show=True),
        Binding("t", "trim_agent", "Trim agent", show=True),
        Binding("x", "reset_statistics", "Reset stats", show=True),
        Binding("d", "terminate_session", "Terminate session", show=True),
        Binding("tab", "switch_table", "Switch table", show=False),
        Binding("backspace", "go_back", "Back", show=False),
    ]

    def __init__(self, application: str) -> None:
        super().__init__()
        self._application = application
        self._agents: list[AgentInfo] = []
        self._selected_agent: str | None = None

    @property
    def tui_app(self) -> OeMonitorTUIApp:
        """Get the typed app instance."""
        from oemonitor.tui.app import OeMonitorTUIApp

        assert isinstance(self.app, OeMonitorTUIApp)
        return self.app

    @property
    def application(self) -> str:
        return self._application

    def compose(self) -> ComposeResult:
        """Compose the screen layout."""
        yield Header()
        yield Container(
            ScopeBar(["PASOE", self._application, "Agents"]),
            Static("Agents", classes="section-title"),
            Vertical(
                DataTable(id="agents-table", cursor_type="row"),
                classes="table-container",
            ),
            Static("Sessions", id="sessions-title", classes="section-title"),
            Vertical(
                DataTable(id="sessions-table", cursor_type="row"),
                classes="table-container",
            ),
            classes="main-container",
        )
        yield Footer()

    def on_mount(self) -> None:
        """Handle mount event - load agents and schedule refreshes."""
        agents_table = self.query_one("#agents-table", DataTable)
        agents_table.add_column("Agent")
        agents_table.add_column("PID")
        agents_table.add_column("State")
        agents_table.add_column("Sessions")
        agents_table.add_column("Memory")

        sessions_table = self.query_one("#sessions-table", DataTable)
        sessions_table.add_column("Session")
        sessions_table.add_column("State")
        sessions_table.add_column("Memory")
        sessions_table.add_column("Completed")
        sessions_table.add_column("Failed")
        sessions_table.add_column("Started")
        sessions_table.add_column("Elapsed")

        agents_table.focus()
        self.load_agents()

        interval = self.tui_app.monitor.intervals.agents
        if interval > 0:
            self.set_interval(interval, self.load_agents)

    @work(thread=True, exclusive=True, group="agents")
    def load_agents(self) -> None:
        """Fetch agents and their sessions in a worker thread."""
        client = self.tui_app.monitor.client
        try:
            agents = client.fetch_agents_with_sessions(self._application)
        except (OeManagerError, requests.RequestException, ValueError) as e:
            logger.warning("Failed to load agents of %s: %s", self._application, e)
            self.app.call_from_thread(self.notify, f"Failed to load agents: {e}", severity="error")
            return
        self.app.call_from_thread(self._show_agents, agents)

    def _show_agents(self, agents: list[AgentInfo]) -> None:
        self._agents = agents
        table = self.query_one("#agents-table", DataTable)
        table.clear()
        for agent in agents:
            table.add_row(
                agent.agent_id,
                agent.pid or "-",
                AGENT_STATE_STYLES.get(agent.state, agent.state_name or "UNKNOWN"),
                str(len(agent.sessions)),
                format_memory(agent.overhead_memory),
                key=agent.agent_id,
            )

        agent_ids = [agent.agent_id for agent in agents]
        if self._selected_agent in agent_ids:
            table.move_cursor(row=agent_ids.index(self._selected_agent))
        else:
            self._selected_agent = agent_ids[0] if agent_ids else None
        self._show_sessions()

    def _show_sessions(self) -> None:
        agent = self._find_agent(self._selected_agent)
        sessions: list[SessionInfo] = agent.sessions if agent else []
        title = self.query_one("#sessions-title", Static)
        title.update(f"Sessions of agent {agent.agent_id}" if agent else "Sessions")

        table = self.query_one("#sessions-table", DataTable)
        table.clear()
        for session in sessions:
            table.add_row(
                session.session_id,
                SESSION_STATE_STYLES.get(session.state, session.state_name or "UNKNOWN"),
                format_memory(session.memory),
                format_count(session.requests_completed),
                format_count(session.requests_failed),
                session.start_time or "-",
                format_elapsed(session.started_ms),
                key=session.session_id,
            )

    def _find_agent(self, agent_id: str | None) -> AgentInfo | None:
        for agent in self._agents:
            if agent.agent_id == agent_id:
                return agent
        return None

    @on(DataTable.RowHighlighted, "#agents-table")
    def on_agent_highlighted(self, event: DataTable.RowHighlighted) -> None:
        """Show the sessions of the highlighted agent."""
        if event.row_key and event.row_key.value:
            agent_id = str(event.row_key.value)
            if agent_id != self._selected_agent:
                self._selected_agent = agent_id
                self._show_sessions()

    def _selected_session(self) -> str | None:
        table = self.query_one("#sessions-table", DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return str(row_key.value) if row_key.value is not None else None

    def _run_control(self, description: str, action: Callable[[], object]) -> None:
        """Run a control action in a worker thread, then refresh."""
        if is_read_only():
            self.notify("Control actions are disabled in read-only mode", severity="warning")
            return
        self._control_worker(description, action)

    @work(thread=True, group="control")
    def _control_worker(self, description: str, action: Callable[[], object]) -> None:
        try:
            action()
        except (OeManagerError, requests.RequestException, ValueError) as e:
            logger.warning("%s failed: %s", description, e)
            self.app.call_from_thread(self.notify, f"{description} failed: {e}", severity="error")
            return
        logger.info("%s done", description)
        self.app.call_from_thread(self.notify, f"{description} done")
        self.app.call_from_thread(self.load_agents)

    def action_refresh(self) -> None:
        self.load_agents()

    def action_charts(self) -> None:
        """Show the live statistics charts."""
        from oemonitor.tui.screens import StatsScreen

        self.app.push_screen(StatsScreen(self._application))

    def action_add_agent(self) -> None:
        client = self.tui_app.monitor.client
        self._run_control("Add agent", lambda: client.add_agent(self._application))

    def action_trim_agent(self) -> None:
        agent_id = self._selected_agent
        if agent_id is None:
            self.notify("No agent selected", severity="warning")
            return
        client = self.tui_app.monitor.client
        self._run_control(f"Trim agent {agent_id}", lambda: client.trim_agent(self._application, agent_id))

    def action_reset_statistics(self) -> None:
        agent_id = self._selected_agent
        if agent_id is None:
            self.notify("No agent selected", severity="warning")
            return
        client = self.tui_app.monitor.client
        self._run_control(
            f"Reset statistics of agent {agent_id}",
            lambda: client.reset_agent_statistics(self._application, agent_id),
        )

    def action_terminate_session(self) -> None:
        agent_id = self._selected_agent
        session_id = self._selected_session()
        if agent_id is None or session_id is None:
            self.notify("No session selected", severity="warning")
            return
        client = self.tui_app.monitor.client
        self._run_control(
            f"Terminate session {session_id}",
            lambda: client.terminate_session(self._application, agent_id, session_id),
        )

    def action_switch_table(self) -> None:
        """Move focus between the agents and sessions tables."""
        agents_table = self.query_one("#agents-table", DataTable)
        if agents_table.has_focus:
            self.query_one("#sessions-table", DataTable).focus()
        else:
            agents_table.focus()

    def action_go_back(self) -> None:
        """Go back to previous screen."""
        self.app.pop_screen()
