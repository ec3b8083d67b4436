"""
FastAPI dependency injection for the oemonitor dashboard.

This module provides reusable dependencies for:
- Monitor instance management (client, aggregators, pollers)
- Path parameter validation (application names, agent and session ids)
- CSRF and read-only guards for control actions
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header, HTTPException
from fastapi import Path as PathParam

from oemonitor.client import OeManagerClient
from oemonitor.config import (
    get_connection_settings,
    get_default_application,
    get_history_limits,
    get_refresh_intervals,
    is_read_only,
)
from oemonitor.monitor import Monitor
from oemonitor.utils import validators

# Mutable container for an externally built monitor (CLI, tests)
_custom_monitor: list[Monitor | None] = [None]


@lru_cache(maxsize=1)
def _get_cached_monitor() -> Monitor:
    """Build the monitor from environment configuration."""
    client = OeManagerClient(get_connection_settings())
    return Monitor(
        client,
        intervals=get_refresh_intervals(),
        limits=get_history_limits(),
        application=get_default_application(),
    )


def get_monitor() -> Monitor:
    """Get the Monitor singleton instance."""
    if _custom_monitor[0] is not None:
        return _custom_monitor[0]
    return _get_cached_monitor()


def get_client(monitor: Annotated[Monitor, Depends(get_monitor)]) -> OeManagerClient:
    """Get the oemanager client of the monitor."""
    return monitor.client


def configure_monitor(monitor: Monitor | None = None) -> None:
    """Use the given monitor for all requests.

    Passing None drops both the custom and the cached instance, so the next
    request rebuilds the monitor from the environment.

    Args:
        monitor: Monitor instance, or None to fall back to environment configuration
    """
    _get_cached_monitor.cache_clear()
    _custom_monitor[0] = monitor


def get_validated_application(application: Annotated[str, PathParam(description="ABL application name")]) -> str:
    """Validate application name path parameter.

    Raises:
        HTTPException: 400 if application name is invalid.
    """
    try:
        validators.validate_application_name(application)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    return application


def get_validated_agent(agent_id: Annotated[str, PathParam(description="Agent id")]) -> str:
    """Validate agent id path parameter.

    Raises:
        HTTPException: 400 if agent id is invalid.
    """
    try:
        validators.validate_agent_id(agent_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    return agent_id


def get_validated_session(session_id: Annotated[str, PathParam(description="ABL session id")]) -> str:
    """Validate session id path parameter.

    Raises:
        HTTPException: 400 if session id is invalid.
    """
    try:
        validators.validate_session_id(session_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    return session_id


async def verify_csrf_header(x_requested_with: str | None = Header(None, alias="X-Requested-With")) -> None:
    """CSRF protection via custom header check.

    Verifies that requests include the X-Requested-With header, which cannot be set
    by cross-origin requests without CORS preflight.

    Raises:
        HTTPException: 403 if header is missing
    """
    if x_requested_with is None:
        raise HTTPException(status_code=403, detail="Missing X-Requested-With header")


async def require_writable() -> None:
    """Reject control actions in read-only mode.

    Raises:
        HTTPException: 403 if OEMONITOR_READ_ONLY is set
    """
    if is_read_only():
        raise HTTPException(status_code=403, detail="Dashboard is running in read-only mode")


# Type aliases for dependency injection
ValidatedApplication = Annotated[str, Depends(get_validated_application)]
ValidatedAgent = Annotated[str, Depends(get_validated_agent)]
ValidatedSession = Annotated[str, Depends(get_validated_session)]
MonitorDep = Annotated[Monitor, Depends(get_monitor)]
ClientDep = Annotated[OeManagerClient, Depends(get_client)]
CsrfGuard = [Depends(verify_csrf_header)]
ControlGuards = [Depends(verify_csrf_header), Depends(require_writable)]
