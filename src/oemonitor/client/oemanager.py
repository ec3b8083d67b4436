"""HTTP client for the PASOE oemanager REST API."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any
from urllib.parse import quote

import requests

from oemonitor.config import ConnectionSettings
from oemonitor.exceptions import (
    MethodNotAllowedError,
    OeManagerAuthError,
    OeManagerError,
    OeManagerNotFoundError,
)
from oemonitor.models import (
    AgentInfo,
    AgentStats,
    ApplicationInfo,
    RequestInfo,
    SessionInfo,
    SessionManagerMetrics,
)
from oemonitor.utils.validators import (
    validate_agent_id,
    validate_application_name,
    validate_request_id,
    validate_session_id,
)

logger = logging.getLogger(__name__)

PROGRESS_JSON = "application/vnd.progress+json"


def unwrap_list(data: Any, *paths: Sequence[str]) -> list[Any]:
    """Return the first list found at one of ``paths`` inside ``data``.

    oemanager wraps arrays differently per endpoint and release
    (``result.agents``, ``result.AgentSession``, bare arrays). A bare array is
    always accepted.

    Args:
        data: Decoded JSON response
        *paths: Candidate key paths, e.g. ``("result", "agents")``

    Returns:
        The list, or an empty list if none of the paths hold one
    """
    if isinstance(data, list):
        return data
    for path in paths:
        node = data
        for part in path:
            if not isinstance(node, dict):
                node = None
                break
            node = node.get(part)
        if isinstance(node, list):
            return node
    return []


def _segment(value: str) -> str:
    return quote(value, safe="")


class OeManagerClient:
    """Client for one PASOE instance's oemanager webapp.

    Identifiers are validated before they are placed in a URL. Error responses
    raise OeManagerError subclasses; connection failures propagate as
    ``requests.RequestException``.
    """

    def __init__(self, settings: ConnectionSettings, session: requests.Session | None = None) -> None:
        """Initialize the client.

        Args:
            settings: Connection settings (URL, credentials, timeouts)
            session: Optional preconfigured session, mainly for tests
        """
        self.settings = settings
        self.session = session or requests.Session()
        self.session.auth = (settings.username, settings.password)
        self.session.verify = settings.verify_tls
        self.session.headers.update({"Accept": "*/*"})

    @property
    def base_url(self) -> str:
        return f"{self.settings.base_url}/oemanager"

    def _url(self, *segments: str) -> str:
        return "/".join([self.base_url, *(_segment(s) for s in segments)])

    def _request(
        self,
        method: str,
        url: str,
        operation: str,
        *,
        params: dict[str, Any] | None = None,
        body: Any = None,
        content_type: str | None = None,
    ) -> requests.Response:
        headers = {}
        data = None
        if body is not None:
            headers["Content-Type"] = content_type or "application/json"
            data = json.dumps(body)
        logger.debug(f"{method} {url} params={params}")
        response = self.session.request(
            method,
            url,
            params=params,
            data=data,
            headers=headers or None,
            timeout=self.settings.timeout,
        )
        if not response.ok:
            self._raise_for_status(response, operation)
        return response

    @staticmethod
    def _raise_for_status(response: requests.Response, operation: str) -> None:
        status = response.status_code
        detail = (response.text or response.reason or "").strip()
        if status in (401, 403):
            raise OeManagerAuthError(operation, status, detail)
        if status == 404:
            raise OeManagerNotFoundError(operation, status, detail)
        if status == 405:
            raise MethodNotAllowedError(operation, detail)
        raise OeManagerError(operation, status, detail)

    def _get_json(self, operation: str, *segments: str, params: dict[str, Any] | None = None) -> Any:
        response = self._request("GET", self._url(*segments), operation, params=params)
        return response.json()

    def health_check(self) -> bool:
        """Check that oemanager answers with the configured credentials.

        Returns:
            True if the applications list can be fetched, False otherwise
        """
        try:
            self.fetch_applications()
        except (OeManagerError, requests.RequestException, ValueError):
            return False
        return True

    # Reads

    def fetch_applications(self) -> list[ApplicationInfo]:
        """List ABL applications deployed on the instance."""
        data = self._get_json("Failed to fetch applications", "applications")
        return [ApplicationInfo.model_validate(app) for app in unwrap_list(data, ("result", "Application"))]

    def fetch_agents(self, application: str) -> list[AgentInfo]:
        """List agents of an application."""
        validate_application_name(application)
        data = self._get_json("Failed to fetch agents", "applications", application, "agents")
        return [AgentInfo.model_validate(a) for a in unwrap_list(data, ("result", "agents"), ("agents",))]

    def fetch_agents_with_sessions(self, application: str) -> list[AgentInfo]:
        """List agents of an application together with their sessions."""
        validate_application_name(application)
        data = self._get_json("Failed to fetch agents with sessions", "applications", application, "agents", "sessions")
        return [AgentInfo.model_validate(a) for a in unwrap_list(data, ("result", "agents"))]

    def fetch_sessions(self, application: str, agent_id: str) -> list[SessionInfo]:
        """List sessions of one agent."""
        validate_application_name(application)
        validate_agent_id(agent_id)
        data = self._get_json("Failed to fetch sessions", "applications", application, "agents", agent_id, "sessions")
        items = unwrap_list(data, ("result", "AgentSession"), ("result", "sessions"), ("AgentSession",))
        return [SessionInfo.model_validate(s) for s in items]

    def fetch_requests(self, application: str) -> list[RequestInfo]:
        """List requests currently running in an application."""
        validate_application_name(application)
        data = self._get_json("Failed to fetch requests", "applications", application, "requests")
        return [RequestInfo.model_validate(r) for r in unwrap_list(data, ("result", "Request"))]

    def fetch_metrics(self, application: str) -> SessionManagerMetrics:
        """SessionManager counters of an application."""
        validate_application_name(application)
        data = self._get_json("Failed to fetch metrics", "applications", application, "metrics")
        result = data.get("result") if isinstance(data, dict) else None
        return SessionManagerMetrics.model_validate(result if isinstance(result, dict) else {})

    def fetch_agent_metrics(self, application: str, agent_id: str) -> AgentStats | None:
        """Latest statistics of one agent, or None if the agent reports none."""
        validate_application_name(application)
        validate_agent_id(agent_id)
        data = self._get_json("Failed to fetch agent metrics", "applications", application, "agents", agent_id, "metrics")
        history = unwrap_list(data, ("result", "AgentStatHist"), ("AgentStatHist",))
        if not history or not isinstance(history[0], dict):
            return None
        return AgentStats.model_validate(history[0])

    def fetch_agent_connections(self, application: str, agent_id: str) -> list[dict[str, Any]]:
        """Client connections of one agent, as reported."""
        validate_application_name(application)
        validate_agent_id(agent_id)
        data = self._get_json("Failed to fetch agent connections", "applications", application, "agents", agent_id, "connections")
        return unwrap_list(data, ("result", "AgentConnection"))

    def fetch_agent_requests(self, application: str, agent_id: str) -> list[RequestInfo]:
        """Requests running on one agent."""
        validate_application_name(application)
        validate_agent_id(agent_id)
        data = self._get_json("Failed to fetch agent requests", "applications", application, "agents", agent_id, "requests")
        return [RequestInfo.model_validate(r) for r in unwrap_list(data, ("result", "AgentRequest"))]

    def fetch_agent_threads(self, application: str, agent_id: str) -> list[dict[str, Any]]:
        """Threads of one agent, as reported."""
        validate_application_name(application)
        validate_agent_id(agent_id)
        data = self._get_json("Failed to fetch agent threads", "applications", application, "agents", agent_id, "threads")
        return unwrap_list(data, ("result", "AgentThread"))

    def fetch_agent_properties(self, application: str) -> dict[str, Any]:
        """Agent configuration properties of an application."""
        validate_application_name(application)
        data = self._get_json("Failed to fetch agent properties", "applications", application, "agents", "properties")
        if isinstance(data, dict) and isinstance(data.get("result"), dict):
            return data["result"]
        return data if isinstance(data, dict) else {}

    def update_agent_properties(self, application: str, properties: dict[str, Any]) -> None:
        """Replace agent configuration properties of an application."""
        validate_application_name(application)
        self._request(
            "PUT",
            self._url("applications", application, "agents", "properties"),
            "Failed to update agent properties",
            body=properties,
            content_type=PROGRESS_JSON,
        )

    # Control actions

    def add_agent(self, application: str) -> dict[str, Any]:
        """Start one more agent for an application."""
        validate_application_name(application)
        response = self._request("POST", self._url("applications", application, "addAgent"), "Failed to add agent")
        try:
            return response.json()
        except ValueError:
            return {}

    def trim_agent(
        self,
        application: str,
        agent_id: str,
        wait_to_finish: int | None = None,
        wait_after_stop: int | None = None,
    ) -> None:
        """Gracefully stop an agent.

        Args:
            application: Application name
            agent_id: Agent to stop
            wait_to_finish: ms to let running requests finish (default from settings)
            wait_after_stop: ms to wait after the agent stopped (default from settings)
        """
        validate_application_name(application)
        validate_agent_id(agent_id)
        params = {
            "waitToFinish": self.settings.wait_to_finish if wait_to_finish is None else wait_to_finish,
            "waitAfterStop": self.settings.wait_after_stop if wait_after_stop is None else wait_after_stop,
        }
        self._request("DELETE", self._url("applications", application, "agents", agent_id), "Failed to trim agent", params=params)

    def terminate_session(self, application: str, agent_id: str, session_id: str) -> None:
        """Terminate one ABL session (terminateOpt=2, immediate)."""
        validate_application_name(application)
        validate_agent_id(agent_id)
        validate_session_id(session_id)
        self._request(
            "DELETE",
            self._url("applications", application, "agents", agent_id, "sessions", session_id),
            "Failed to terminate session",
            params={"terminateOpt": 2},
        )

    def cancel_request(self, application: str, request_id: str, session_id: str) -> bool:
        """Cancel a running request.

        A failure response is not an error: the request may have completed in
        the meantime.

        Returns:
            True if oemanager accepted the cancellation
        """
        validate_application_name(application)
        validate_request_id(request_id)
        validate_session_id(session_id)
        url = self._url("applications", application, "requests")
        response = self.session.request(
            "DELETE",
            url,
            params={"requestID": request_id, "sessionID": session_id},
            timeout=self.settings.timeout,
        )
        if not response.ok:
            logger.debug(f"Cancel request {request_id} failed with {response.status_code} (request may have completed)")
            return False
        return True

    def reset_agent_statistics(self, application: str, agent_id: str) -> None:
        """Reset the statistics counters of one agent."""
        validate_application_name(application)
        validate_agent_id(agent_id)
        self._request(
            "DELETE",
            self._url("applications", application, "agents", agent_id, "agentStatData"),
            "Failed to reset agent statistics",
        )

    def set_abl_objects_tracking(self, application: str, agent_id: str, enabled: bool) -> None:
        """Enable or disable ABL objects tracking on one agent."""
        validate_application_name(application)
        validate_agent_id(agent_id)
        self._request(
            "PUT",
            self._url("applications", application, "agents", agent_id, "ABLObjects", "status"),
            f"Failed to {'enable' if enabled else 'disable'} ABL Objects",
            body={"enable": "true" if enabled else "false"},
            content_type=PROGRESS_JSON,
        )

    def get_abl_objects_report(self, application: str, agent_id: str) -> str:
        """ABL objects report of one agent, as raw text."""
        validate_application_name(application)
        validate_agent_id(agent_id)
        response = self._request(
            "GET",
            self._url("applications", application, "agents", agent_id, "ABLObjects"),
            "Failed to get ABL Objects report",
        )
        return response.text

    def close(self) -> None:
        self.session.close()
