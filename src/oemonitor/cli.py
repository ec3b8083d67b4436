#!/usr/bin/env python3
"""
oemonitor CLI tool

Command line interface for starting the dashboard server, the terminal UI,
or polling a PASOE instance from a script
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import socket
import sys

import uvicorn

from oemonitor.charts import render_view
from oemonitor.client import OeManagerClient
from oemonitor.config import (
    get_connection_settings,
    get_default_application,
    get_history_limits,
    get_refresh_intervals,
    reset_settings,
)
from oemonitor.exceptions import ApplicationNotSelectedError
from oemonitor.logger import set_level
from oemonitor.monitor import VIEWS, Monitor

DEFAULT_PORT = 8820


def find_available_port(start_port: int = DEFAULT_PORT, max_attempts: int = 100) -> int | None:
    """
    Find an available port number

    Args:
        start_port: Starting port number
        max_attempts: Maximum number of attempts

    Returns:
        Available port number, None if not found
    """
    for port in range(start_port, start_port + max_attempts):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            # If connection fails, that port is available
            result = sock.connect_ex(("127.0.0.1", port))
            if result != 0:
                return port
    return None


def apply_connection_options(url: str | None = None, user: str | None = None, application: str | None = None) -> None:
    """
    Export command line connection options as environment variables

    The dashboard server builds its monitor from the environment, possibly in a
    reloaded worker process, so options travel the same way.
    """
    if url is not None:
        os.environ["OEMONITOR_URL"] = url
    if user is not None:
        os.environ["OEMONITOR_USER"] = user
    if application is not None:
        os.environ["OEMONITOR_APPLICATION"] = application
    reset_settings()


def build_monitor() -> Monitor:
    """Build a monitor from the environment configuration."""
    return Monitor(
        OeManagerClient(get_connection_settings()),
        intervals=get_refresh_intervals(),
        limits=get_history_limits(),
        application=get_default_application(),
    )


def run_dashboard(
    host: str = "127.0.0.1",
    port: int = DEFAULT_PORT,
    dev: bool = False,
    read_only: bool = False,
) -> None:
    """
    Start dashboard server

    Args:
        host: Host name
        port: Port number
        dev: Enable development mode with auto-reload
        read_only: Reject control actions
    """
    if dev:
        os.environ["OEMONITOR_DEV_MODE"] = "1"
    if read_only:
        os.environ["OEMONITOR_READ_ONLY"] = "1"

    settings = get_connection_settings()
    print("Starting oemonitor dashboard server...")
    print(f"Access http://{host}:{port}/docs/dashboard in your browser!")
    print(f"PASOE instance: {settings.base_url}")
    application = get_default_application()
    if application:
        print(f"Monitoring application: {application}")
    if read_only:
        print("Read-only mode: control actions disabled")
    if dev:
        print("Development mode: auto-reload enabled")

    uvicorn.run("oemonitor.dashboard.main:app", host=host, port=port, reload=dev)


def run_tui() -> None:
    """
    Start TUI dashboard
    """
    from oemonitor.tui import run_tui as _run_tui

    _run_tui()


async def _poll(monitor: Monitor, view: str, count: int, interval: float) -> int:
    poller = monitor.poller(view)
    aggregator = monitor.aggregator(view)
    failures = 0
    try:
        for i in range(count):
            if i > 0:
                await asyncio.sleep(interval)
            if not await poller.poll_once():
                failures += 1
                print(f"poll {i + 1}/{count} failed: {poller.last_error}")
                continue
            print(f"poll {i + 1}/{count} at {aggregator.latest_timestamp()}")
            for chart in render_view(aggregator, view):
                for series in chart.series:
                    value = series.points[-1][1] if series.points else None
                    shown = "-" if value is None else f"{value:.6g}"
                    print(f"  {chart.title} / {series.label}: {shown} {chart.unit}")
    finally:
        await monitor.stop()
    return failures


def run_poll(view: str = "stats", count: int = 1, interval: float | None = None) -> None:
    """
    Poll the configured application and print the chart values

    Args:
        view: "stats" or "sessions"
        count: Number of polls
        interval: Seconds between polls (default: the configured refresh interval)
    """
    try:
        monitor = build_monitor()
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(2)
    if interval is None:
        interval = monitor.poller(view).interval or 1.0

    try:
        failures = asyncio.run(_poll(monitor, view, count, interval))
    except ApplicationNotSelectedError:
        print("Error: no application given (use --application or OEMONITOR_APPLICATION)")
        sys.exit(2)
    if failures == count:
        sys.exit(1)


def main() -> None:
    """
    CLI main entry point
    """
    parser = argparse.ArgumentParser(description="Monitoring tool for PASOE instances")
    parser.add_argument("--url", default=None, help="PASOE base URL (default: OEMONITOR_URL or http://localhost:8810)")
    parser.add_argument("--user", default=None, help="oemanager user (default: OEMONITOR_USER or tomcat)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug messages")
    subparsers = parser.add_subparsers(dest="command", help="Subcommands")

    dashboard_parser = subparsers.add_parser("dashboard", help="Start dashboard server")
    dashboard_parser.add_argument("--host", default="127.0.0.1", help="Host name (default: 127.0.0.1)")
    dashboard_parser.add_argument("--port", type=int, default=DEFAULT_PORT, help=f"Port number (default: {DEFAULT_PORT})")
    dashboard_parser.add_argument("--application", default=None, help="Application to monitor from the start")
    dashboard_parser.add_argument("--dev", action="store_true", help="Enable development mode with auto-reload")
    dashboard_parser.add_argument("--read-only", action="store_true", help="Reject control actions")

    tui_parser = subparsers.add_parser("tui", help="Start terminal UI dashboard")
    tui_parser.add_argument("--application", default=None, help="Application to monitor from the start")

    poll_parser = subparsers.add_parser("poll", help="Poll an application and print its chart values")
    poll_parser.add_argument("--application", default=None, help="Application to poll (default: OEMONITOR_APPLICATION)")
    poll_parser.add_argument("--view", choices=VIEWS, default="stats", help="View to poll (default: stats)")
    poll_parser.add_argument("--count", type=int, default=1, help="Number of polls (default: 1)")
    poll_parser.add_argument("--interval", type=float, default=None, help="Seconds between polls")

    args = parser.parse_args()

    if args.verbose:
        set_level(logging.DEBUG)

    apply_connection_options(url=args.url, user=args.user, application=getattr(args, "application", None))

    if args.command == "dashboard":
        run_dashboard(host=args.host, port=args.port, dev=args.dev, read_only=args.read_only)
    elif args.command == "tui":
        run_tui()
    elif args.command == "poll":
        run_poll(view=args.view, count=max(1, args.count), interval=args.interval)
    else:
        port = find_available_port()
        if port is None:
            print("Error: No available port found!")
            return

        run_dashboard(port=port)


if __name__ == "__main__":
    main()
