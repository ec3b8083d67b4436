"""
oemonitor Terminal UI

A terminal-based dashboard using the Textual framework for browsing the
applications, agents and sessions of a PASOE instance and plotting its
live statistics.
"""

from __future__ import annotations


def run_tui(application: str | None = None) -> None:
    """Run the oemonitor TUI application.

    Args:
        application: Application to monitor from the start. Defaults to OEMONITOR_APPLICATION.
    """
    from textual.logging import TextualHandler

    from oemonitor.logger import replace_handlers
    from oemonitor.tui.app import OeMonitorTUIApp

    # stdout belongs to Textual while the app runs
    replace_handlers(TextualHandler())

    app = OeMonitorTUIApp()
    if application is not None:
        app.monitor.select_application(application)
    app.run()


__all__ = ["run_tui"]
