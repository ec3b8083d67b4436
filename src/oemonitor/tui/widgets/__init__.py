"""
oemonitor TUI Widgets

Custom widget classes for the TUI application.
"""

from .chart import ChartWidget
from .scope_bar import ScopeBar

__all__ = ["ChartWidget", "ScopeBar"]
