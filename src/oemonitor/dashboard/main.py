"""
FastAPI application for the oemonitor dashboard
"""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

import requests
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from oemonitor.config import is_dev_mode
from oemonitor.exceptions import (
    ApplicationNotSelectedError,
    OeManagerAuthError,
    OeManagerError,
    OeManagerNotFoundError,
)

from .dependencies import get_monitor
from .router import router

logger = logging.getLogger(__name__)


# Global state for SSE connection management
class AppState:
    """Application state for managing SSE connections during shutdown."""

    def __init__(self) -> None:
        self.active_sse_connections: set[asyncio.Queue] = set()
        self.active_sse_tasks: set[asyncio.Task] = set()
        self.shutting_down = False


app_state = AppState()


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to all responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"

        # Prevent clickjacking by denying framing
        response.headers["X-Frame-Options"] = "DENY"

        response.headers["X-XSS-Protection"] = "1; mode=block"

        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "script-src 'self'; "
            "style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data:; "
            "connect-src 'self'; "
            "frame-ancestors 'none'"
        )

        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle.

    On startup, start the pollers. On shutdown, signal all active SSE
    connections to close and stop the pollers.
    In development mode, forcefully cancel SSE tasks for fast restart.
    """
    monitor = get_monitor()
    app_state.shutting_down = False
    monitor.start()
    logger.info(f"Monitoring {monitor.application or 'no application'} on {monitor.client.base_url}")

    yield

    app_state.shutting_down = True

    # Signal all active SSE connections to stop
    for queue in list(app_state.active_sse_connections):
        with contextlib.suppress(RuntimeError, OSError):
            await queue.put(None)

    if is_dev_mode():
        logger.info(f"[DEV MODE] Cancelling {len(app_state.active_sse_tasks)} active SSE tasks")
        for task in list(app_state.active_sse_tasks):
            task.cancel()

        if app_state.active_sse_tasks:
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(
                    asyncio.gather(*app_state.active_sse_tasks, return_exceptions=True),
                    timeout=0.1,
                )
        logger.info("[DEV MODE] SSE tasks cancelled, shutdown complete")

    await monitor.stop()


app = FastAPI(
    title="oemonitor Dashboard",
    description="Monitoring and control of PASOE instances through the oemanager REST API",
    docs_url="/docs/dashboard",
    redoc_url=None,
    lifespan=lifespan,
)


@app.exception_handler(OeManagerAuthError)
async def handle_auth_error(request: Request, exc: OeManagerAuthError) -> JSONResponse:
    return JSONResponse(status_code=401, content={"detail": str(exc)})


@app.exception_handler(OeManagerNotFoundError)
async def handle_not_found(request: Request, exc: OeManagerNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(OeManagerError)
async def handle_oemanager_error(request: Request, exc: OeManagerError) -> JSONResponse:
    logger.warning(f"oemanager call failed: {exc}")
    return JSONResponse(status_code=502, content={"detail": str(exc), "upstream_status": exc.status_code})


@app.exception_handler(requests.RequestException)
async def handle_connection_error(request: Request, exc: requests.RequestException) -> JSONResponse:
    logger.warning(f"PASOE instance unreachable: {exc}")
    return JSONResponse(status_code=502, content={"detail": f"PASOE instance unreachable: {exc}"})


@app.exception_handler(ApplicationNotSelectedError)
async def handle_no_application(request: Request, exc: ApplicationNotSelectedError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"detail": str(exc)})


# Security headers middleware
app.add_middleware(SecurityHeadersMiddleware)  # ty: ignore[invalid-argument-type]

# CORS middleware - credentials disabled with wildcard origins
app.add_middleware(
    CORSMiddleware,  # ty: ignore[invalid-argument-type]
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "X-Requested-With"],
)

app.include_router(router)
