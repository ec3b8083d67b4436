"""
oemonitor TUI Screens

Screen classes for different views in the TUI application.
"""

from .agents import AgentsScreen
from .applications import ApplicationsScreen
from .chart import ChartScreen
from .help import HelpScreen
from .stats import StatsScreen

__all__ = [
    "AgentsScreen",
    "ApplicationsScreen",
    "ChartScreen",
    "HelpScreen",
    "StatsScreen",
]
