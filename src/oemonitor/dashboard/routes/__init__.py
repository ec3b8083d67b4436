"""
oemonitor dashboard routes.

This package contains route handlers organized by type:
- api_routes: REST API endpoints proxying oemanager
- monitor_routes: scope selection and chart endpoints
- sse_routes: Server-Sent Events streaming endpoints
"""

from .api_routes import router as api_router
from .monitor_routes import router as monitor_router
from .sse_routes import router as sse_router

__all__ = ["api_router", "monitor_router", "sse_router"]
