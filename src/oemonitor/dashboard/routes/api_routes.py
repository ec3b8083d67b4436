"""
REST API routes proxying the oemanager API.

This module handles:
- Application, agent, session and request listings
- Agent metrics, connections, threads and properties
- Control actions (add/trim agent, terminate session, cancel request,
  reset statistics, ABL objects tracking)

Routes are plain functions: FastAPI runs them in its thread pool because the
oemanager client is blocking.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Query, Response
from fastapi.responses import PlainTextResponse

from oemonitor.models import AgentInfo, AgentStats, ApplicationInfo, RequestInfo, SessionInfo, SessionManagerMetrics
from oemonitor.utils import validators

from ..dependencies import ClientDep, ControlGuards, ValidatedAgent, ValidatedApplication, ValidatedSession
from ..models import AblObjectsRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@router.get("/applications")
def list_applications(client: ClientDep) -> list[ApplicationInfo]:
    """List ABL applications of the PASOE instance."""
    return client.fetch_applications()


@router.get("/applications/{application}/agents")
def list_agents(application: ValidatedApplication, client: ClientDep) -> list[AgentInfo]:
    """List agents of an application."""
    return client.fetch_agents(application)


@router.get("/applications/{application}/agents/sessions")
def list_agents_with_sessions(application: ValidatedApplication, client: ClientDep) -> list[AgentInfo]:
    """List agents together with their sessions."""
    return client.fetch_agents_with_sessions(application)


@router.get("/applications/{application}/agents/properties")
def get_agent_properties(application: ValidatedApplication, client: ClientDep) -> dict[str, Any]:
    """Agent configuration properties."""
    return client.fetch_agent_properties(application)


@router.put("/applications/{application}/agents/properties", dependencies=ControlGuards)
def update_agent_properties(
    application: ValidatedApplication,
    properties: dict[str, Any],
    client: ClientDep,
) -> Response:
    """Replace agent configuration properties."""
    client.update_agent_properties(application, properties)
    logger.info(f"Updated agent properties of {application}")
    return Response(status_code=204)


@router.get("/applications/{application}/agents/{agent_id}/sessions")
def list_sessions(application: ValidatedApplication, agent_id: ValidatedAgent, client: ClientDep) -> list[SessionInfo]:
    """List sessions of one agent."""
    return client.fetch_sessions(application, agent_id)


@router.get("/applications/{application}/requests")
def list_requests(application: ValidatedApplication, client: ClientDep) -> list[RequestInfo]:
    """List requests running in an application."""
    return client.fetch_requests(application)


@router.get("/applications/{application}/metrics")
def get_session_manager_metrics(application: ValidatedApplication, client: ClientDep) -> SessionManagerMetrics:
    """SessionManager counters of an application."""
    return client.fetch_metrics(application)


@router.get("/applications/{application}/agents/{agent_id}/metrics")
def get_agent_metrics(application: ValidatedApplication, agent_id: ValidatedAgent, client: ClientDep) -> AgentStats | None:
    """Latest statistics of one agent (null if the agent reports none)."""
    return client.fetch_agent_metrics(application, agent_id)


@router.get("/applications/{application}/agents/{agent_id}/connections")
def get_agent_connections(application: ValidatedApplication, agent_id: ValidatedAgent, client: ClientDep) -> list[dict[str, Any]]:
    """Client connections of one agent."""
    return client.fetch_agent_connections(application, agent_id)


@router.get("/applications/{application}/agents/{agent_id}/requests")
def get_agent_requests(application: ValidatedApplication, agent_id: ValidatedAgent, client: ClientDep) -> list[RequestInfo]:
    """Requests running on one agent."""
    return client.fetch_agent_requests(application, agent_id)


@router.get("/applications/{application}/agents/{agent_id}/threads")
def get_agent_threads(application: ValidatedApplication, agent_id: ValidatedAgent, client: ClientDep) -> list[dict[str, Any]]:
    """Threads of one agent."""
    return client.fetch_agent_threads(application, agent_id)


@router.post("/applications/{application}/agents", dependencies=ControlGuards)
def add_agent(application: ValidatedApplication, client: ClientDep) -> dict[str, Any]:
    """Start one more agent."""
    result = client.add_agent(application)
    logger.info(f"Added agent to {application}")
    return result


@router.delete("/applications/{application}/agents/{agent_id}", dependencies=ControlGuards)
def trim_agent(
    application: ValidatedApplication,
    agent_id: ValidatedAgent,
    client: ClientDep,
    wait_to_finish: int | None = Query(default=None, ge=0, description="ms to let running requests finish"),
    wait_after_stop: int | None = Query(default=None, ge=0, description="ms to wait after the agent stopped"),
) -> Response:
    """Gracefully stop an agent."""
    client.trim_agent(application, agent_id, wait_to_finish, wait_after_stop)
    logger.info(f"Trimmed agent {agent_id} of {application}")
    return Response(status_code=204)


@router.delete("/applications/{application}/agents/{agent_id}/sessions/{session_id}", dependencies=ControlGuards)
def terminate_session(
    application: ValidatedApplication,
    agent_id: ValidatedAgent,
    session_id: ValidatedSession,
    client: ClientDep,
) -> Response:
    """Terminate one ABL session."""
    client.terminate_session(application, agent_id, session_id)
    logger.info(f"Terminated session {session_id} on agent {agent_id} of {application}")
    return Response(status_code=204)


@router.delete("/applications/{application}/requests", dependencies=ControlGuards)
def cancel_request(
    application: ValidatedApplication,
    client: ClientDep,
    request_id: str = Query(..., alias="requestId", description="Request id, e.g. ROOT:w:00000009"),
    session_id: str = Query(..., alias="sessionId", description="ABL session serving the request"),
) -> dict[str, bool]:
    """Cancel a running request. ``cancelled`` is false if it had already finished.

    Raises:
        HTTPException: 400 if the request or session id is invalid
    """
    try:
        validators.validate_request_id(request_id)
        validators.validate_session_id(session_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    cancelled = client.cancel_request(application, request_id, session_id)
    return {"cancelled": cancelled}


@router.delete("/applications/{application}/agents/{agent_id}/statistics", dependencies=ControlGuards)
def reset_agent_statistics(application: ValidatedApplication, agent_id: ValidatedAgent, client: ClientDep) -> Response:
    """Reset the statistics counters of one agent."""
    client.reset_agent_statistics(application, agent_id)
    logger.info(f"Reset statistics of agent {agent_id} of {application}")
    return Response(status_code=204)


@router.put("/applications/{application}/agents/{agent_id}/abl-objects", dependencies=ControlGuards)
def set_abl_objects_tracking(
    application: ValidatedApplication,
    agent_id: ValidatedAgent,
    body: AblObjectsRequest,
    client: ClientDep,
) -> Response:
    """Enable or disable ABL objects tracking on one agent."""
    client.set_abl_objects_tracking(application, agent_id, body.enabled)
    return Response(status_code=204)


@router.get("/applications/{application}/agents/{agent_id}/abl-objects", response_class=PlainTextResponse)
def get_abl_objects_report(application: ValidatedApplication, agent_id: ValidatedAgent, client: ClientDep) -> str:
    """ABL objects report of one agent."""
    return client.get_abl_objects_report(application, agent_id)
