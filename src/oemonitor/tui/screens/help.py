"""
Help Screen

Lists the key bindings of every screen, read from the screens themselves, and
summarizes what the monitor is connected to.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from rich.markup import escape
from textual.app import ComposeResult
from textual.binding import Binding, BindingType
from textual.containers import Container, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Static

from oemonitor.config import is_read_only

from .agents import AgentsScreen
from .applications import ApplicationsScreen
from .chart import ChartScreen
from .stats import StatsScreen

if TYPE_CHECKING:
    from oemonitor.monitor import Monitor

KEY_NAMES = {
    "question_mark": "?",
    "plus": "+",
    "minus": "-",
    "equals_sign": "=",
    "escape": "Esc",
    "backspace": "Backspace",
    "tab": "Tab",
    "enter": "Enter",
}

KEY_COLUMN = 16


def key_label(key: str) -> str:
    return KEY_NAMES.get(key, key)


def format_section(
    title: str,
    bindings: Iterable[BindingType],
    extra: Iterable[tuple[str, str]] = (),
) -> str:
    """Format one block of the help text.

    Bindings sharing a description are listed on one line, e.g. ``+ / =  Zoom in``.

    Args:
        title: Section heading
        bindings: Key bindings of a screen or the app
        extra: Additional ``(key, description)`` pairs handled by widgets
    """
    keys_by_description: dict[str, list[str]] = {}
    for binding in bindings:
        if isinstance(binding, Binding):
            keys_by_description.setdefault(binding.description, []).append(key_label(binding.key))
    for key, description in extra:
        keys_by_description.setdefault(description, []).append(key)

    lines = [f"[bold underline]{escape(title)}[/bold underline]"]
    for description, keys in keys_by_description.items():
        plain = " / ".join(keys)
        styled = " / ".join(f"[cyan]{escape(key)}[/]" for key in keys)
        padding = " " * max(1, KEY_COLUMN - len(plain))
        lines.append(f"  {styled}{padding}{escape(description)}")
    return "\n".join(lines)


def _every(seconds: int) -> str:
    return f"every {seconds}s" if seconds > 0 else "off"


def connection_summary(monitor: Monitor, read_only: bool) -> str:
    """Where the monitor polls from, and whether control actions are allowed."""
    application = monitor.application or "none selected"
    if read_only:
        control = "disabled (OEMONITOR_READ_ONLY=1)"
    else:
        control = "enabled"
    return "\n".join(
        [
            "[bold underline]Connection[/bold underline]",
            f"  oemanager       {escape(monitor.client.base_url)}",
            f"  Application     {escape(application)}",
            f"  Statistics      {_every(monitor.intervals.stats)}",
            f"  Session charts  {_every(monitor.intervals.charts)}",
            f"  Control actions {control}",
        ]
    )


def build_help_text(
    app_bindings: Iterable[BindingType],
    monitor: Monitor | None = None,
    read_only: bool = False,
) -> str:
    """Full help text: one section per screen, then the connection summary."""
    sections = [
        "[bold]oemonitor - Keyboard Shortcuts[/bold]",
        format_section("Global", app_bindings),
        format_section(
            "Applications",
            ApplicationsScreen.BINDINGS,
            extra=[("Enter", "Monitor the selected application")],
        ),
        format_section("Agents", AgentsScreen.BINDINGS),
        format_section("Charts", StatsScreen.BINDINGS, extra=[("Enter", "Open chart full screen")]),
        format_section("Chart", ChartScreen.BINDINGS),
    ]
    if monitor is not None:
        sections.append(connection_summary(monitor, read_only))
    sections.append("Press [cyan]Esc[/] or [cyan]?[/] to close this help.")
    return "\n\n".join(sections)


class HelpScreen(ModalScreen[None]):
    """Modal screen displaying help information."""

    BINDINGS = [
        Binding("escape", "dismiss", "Close", show=True),
        Binding("question_mark", "dismiss", "Close", show=False),
    ]

    DEFAULT_CSS = """
    HelpScreen {
        align: center middle;
    }

    HelpScreen > Container {
        width: 72;
        height: auto;
        max-height: 80%;
        background: $surface;
        border: solid $primary;
        padding: 1 2;
    }
    """

    def __init__(self, monitor: Monitor | None = None) -> None:
        super().__init__()
        self._monitor = monitor

    def compose(self) -> ComposeResult:
        text = build_help_text(self.app.BINDINGS, self._monitor, is_read_only())
        yield Container(VerticalScroll(Static(text, id="help-text")))

    async def action_dismiss(self, result: None = None) -> None:
        """Dismiss the help screen."""
        self.dismiss(result)
