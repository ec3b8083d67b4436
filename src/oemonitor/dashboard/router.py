"""
oemonitor dashboard APIRouter aggregation.

This module aggregates all route handlers from sub-modules:
- api_routes: REST API endpoints
- monitor_routes: monitoring scope and chart endpoints
- sse_routes: Server-Sent Events streaming endpoints
"""

from __future__ import annotations

from fastapi import APIRouter

from .dependencies import configure_monitor
from .routes import api_router, monitor_router, sse_router

router = APIRouter()
router.include_router(api_router)
router.include_router(monitor_router)
router.include_router(sse_router)

__all__ = ["router", "configure_monitor"]
