"""
Scope Bar Widget

One-line bar showing what is being monitored and the last polling error.
"""

from __future__ import annotations

from rich.markup import escape
from textual.widgets import Static


class ScopeBar(Static):
    """Scope bar widget.

    Displays a trail like:
    PASOE > oepas1 > Statistics    last poll failed: ...
    """

    DEFAULT_CSS = """
    ScopeBar {
        width: 100%;
        height: 1;
        padding: 0 1;
        background: $surface;
        color: $text-muted;
    }
    """

    def __init__(
        self,
        items: list[str],
        separator: str = " > ",
        *,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        self._items = items
        self._separator = separator
        self._error: str | None = None
        super().__init__(self._format(), id=id, classes=classes)

    def _format(self) -> str:
        if not self._items:
            text = ""
        else:
            parts = [f"[dim]{escape(item)}[/dim]" for item in self._items[:-1]]
            parts.append(f"[bold]{escape(self._items[-1])}[/bold]")
            text = self._separator.join(parts)
        if self._error:
            text = f"{text}    [red]last poll failed: {escape(self._error)}[/red]"
        return text

    def update_items(self, items: list[str]) -> None:
        self._items = items
        self.update(self._format())

    def set_error(self, error: str | None) -> None:
        """Show or clear the last polling error."""
        if error != self._error:
            self._error = error
            self.update(self._format())
