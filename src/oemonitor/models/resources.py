"""
oemanager resource models.

The oemanager REST API is inconsistent about field casing across endpoints and
releases (``SessionMemory`` vs ``sessionMemory``, ``requestID`` vs ``id``).
These models accept every spelling seen in the wild and expose one canonical
snake_case name, so nothing downstream needs per-field fallback chains.
"""

from __future__ import annotations

import logging
import math
from typing import Annotated, Any

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, model_validator

from oemonitor.models.state import AgentState, SessionState
from oemonitor.utils.timestamp import parse_to_ms

logger = logging.getLogger(__name__)

__all__ = [
    "AgentInfo",
    "AgentStats",
    "ApplicationInfo",
    "RequestInfo",
    "SessionInfo",
    "SessionManagerMetrics",
    "coerce_metric",
]


def coerce_metric(value: Any, name: str = "value") -> float | None:
    """Coerce an upstream metric value to a float.

    Missing values return None silently. Non-numeric values return None and
    log a warning.

    Args:
        value: Raw value from an oemanager response
        name: Field name used in the warning message

    Returns:
        The value as float, or None if it is missing or malformed
    """
    if value is None:
        return None
    if isinstance(value, bool):
        logger.warning(f"Ignoring non-numeric {name} value: {value!r}")
        return None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            logger.warning(f"Ignoring non-finite {name} value: {value!r}")
            return None
        return float(value)
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            logger.warning(f"Ignoring non-numeric {name} value: {value!r}")
            return None
        if not math.isfinite(parsed):
            logger.warning(f"Ignoring non-finite {name} value: {value!r}")
            return None
        return parsed
    logger.warning(f"Ignoring non-numeric {name} value: {value!r}")
    return None


def _to_str(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def _to_metric(value: Any) -> float | None:
    return coerce_metric(value)


IdStr = Annotated[str, BeforeValidator(_to_str)]
Metric = Annotated[float | None, BeforeValidator(_to_metric)]


class _OeModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ApplicationInfo(_OeModel):
    """An ABL application deployed on the PASOE instance."""

    name: str
    version: str | None = None
    description: str | None = None


class SessionInfo(_OeModel):
    """An ABL session inside an agent."""

    session_id: IdStr = Field(validation_alias=AliasChoices("SessionId", "sessionId", "id"))
    state_name: str | None = Field(default=None, validation_alias=AliasChoices("SessionState", "sessionState", "state"))
    connection_id: IdStr | None = Field(default=None, validation_alias=AliasChoices("ConnectionId", "connectionId", "connId"))
    request_count: Metric = Field(default=None, validation_alias=AliasChoices("RequestCount", "requestCount", "numRequests"))
    start_time: str | None = Field(default=None, validation_alias=AliasChoices("SessionStartTime", "startTime", "started"))
    memory: Metric = Field(default=None, validation_alias=AliasChoices("SessionMemory", "sessionMemory"))
    requests_completed: Metric = Field(default=None, validation_alias=AliasChoices("RequestsCompleted", "requestsCompleted"))
    requests_failed: Metric = Field(default=None, validation_alias=AliasChoices("RequestsFailed", "requestsFailed"))

    @property
    def state(self) -> SessionState:
        return SessionState.parse(self.state_name)

    @property
    def started_ms(self) -> int | None:
        """Session start in UNIX milliseconds, or None if missing or unparsable."""
        if not self.start_time:
            return None
        try:
            return parse_to_ms(self.start_time)
        except ValueError:
            logger.warning(f"Ignoring unparsable session start time: {self.start_time!r}")
            return None


class AgentInfo(_OeModel):
    """A PASOE agent (multi-session ABL process)."""

    agent_id: IdStr = Field(validation_alias=AliasChoices("agentId", "AgentId", "id"))
    pid: IdStr | None = Field(default=None, validation_alias=AliasChoices("pid", "PID", "Pid"))
    state_name: str | None = Field(default=None, validation_alias=AliasChoices("state", "State", "agentState"))
    session_count: Metric = Field(default=None, validation_alias=AliasChoices("sessionCount", "numSessions"))
    overhead_memory: Metric = Field(default=None, validation_alias=AliasChoices("overheadMemory", "OverheadMemory"))
    sessions: list[SessionInfo] = Field(default_factory=list, validation_alias=AliasChoices("sessions", "AgentSession"))

    @model_validator(mode="before")
    @classmethod
    def _pid_as_agent_id(cls, data: Any) -> Any:
        # Some releases only report the pid; the oemanager URLs accept it in place of agentId
        if isinstance(data, dict) and not any(k in data for k in ("agentId", "AgentId", "id", "agent_id")):
            pid = data.get("pid") or data.get("PID")
            if pid is not None:
                return {**data, "agentId": pid}
        return data

    @property
    def state(self) -> AgentState:
        return AgentState.parse(self.state_name)


class RequestInfo(_OeModel):
    """A running request, flattened from the nested sessionManager/agent/tomcat blocks."""

    request_id: IdStr = Field(validation_alias=AliasChoices("requestID", "requestId", "RequestID", "id"))
    session_id: IdStr | None = Field(default=None, validation_alias=AliasChoices("sessionId", "SessionId", "sessionID"))
    agent_id: IdStr | None = Field(default=None, validation_alias=AliasChoices("agentID", "agentId", "AgentId"))
    url: str | None = None
    state_name: str | None = Field(default=None, validation_alias=AliasChoices("requestState", "state", "RequestStatus"))
    elapsed_ms: Metric = Field(default=None, validation_alias=AliasChoices("requestElapsedTime", "elapsedTime", "RequestLen"))
    procedure: str | None = Field(default=None, validation_alias=AliasChoices("requestProcName", "RequestProcName"))

    @model_validator(mode="before")
    @classmethod
    def _flatten(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        flat = dict(data)
        session_manager = data.get("sessionManager") or {}
        agent = data.get("agent") or {}
        tomcat = data.get("tomcat") or {}
        if isinstance(session_manager, dict):
            for src, dst in (("sessionId", "sessionId"), ("requestState", "requestState"), ("requestElapsedTime", "requestElapsedTime")):
                if session_manager.get(src) is not None:
                    flat[dst] = session_manager[src]
        if isinstance(agent, dict):
            for src in ("requestProcName", "agentID", "agentId"):
                if agent.get(src) is not None:
                    flat[src] = agent[src]
        if isinstance(tomcat, dict) and tomcat.get("url") is not None:
            flat["url"] = tomcat["url"]
        return flat


class AgentStats(_OeModel):
    """First entry of an agent's ``AgentStatHist``."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    overhead_memory: Metric = Field(default=None, validation_alias=AliasChoices("OverheadMemory", "overheadMemory"))
    cstack_memory: Metric = Field(default=None, validation_alias=AliasChoices("CStackMemory", "cStackMemory", "cstackMemory"))

    @property
    def memory(self) -> float:
        """Agent memory outside its sessions (overhead plus C stack)."""
        return (self.overhead_memory or 0.0) + (self.cstack_memory or 0.0)


class SessionManagerMetrics(_OeModel):
    """SessionManager counters for one application.

    Field names follow the camelCase spelling the metric series use.
    """

    requests: Metric = Field(default=None, validation_alias=AliasChoices("requests", "Requests"))
    reads: Metric = Field(default=None, validation_alias=AliasChoices("reads", "Reads"))
    writes: Metric = Field(default=None, validation_alias=AliasChoices("writes", "Writes"))
    read_errors: Metric = Field(default=None, validation_alias=AliasChoices("readErrors", "ReadErrors"))
    write_errors: Metric = Field(default=None, validation_alias=AliasChoices("writeErrors", "WriteErrors"))
    reserve_waits: Metric = Field(
        default=None,
        validation_alias=AliasChoices("numReserveABLSessionWaits", "waits", "Waits"),
    )
    reserve_timeouts: Metric = Field(
        default=None,
        validation_alias=AliasChoices("numReserveABLSessionTimeouts", "timeouts", "Timeouts"),
    )
    concurrent_clients: Metric = Field(
        default=None,
        validation_alias=AliasChoices("concurrentConnectedClients", "ConcurrentConnectedClients"),
    )
    max_concurrent_clients: Metric = Field(
        default=None,
        validation_alias=AliasChoices("maxConcurrentClients", "MaxConcurrentClients"),
    )

    def as_metrics(self) -> dict[str, float | None]:
        """Counters keyed by their series metric names."""
        return {
            "requests": self.requests,
            "reads": self.reads,
            "writes": self.writes,
            "readErrors": self.read_errors,
            "writeErrors": self.write_errors,
            "numReserveABLSessionWaits": self.reserve_waits,
            "numReserveABLSessionTimeouts": self.reserve_timeouts,
            "concurrentConnectedClients": self.concurrent_clients,
            "maxConcurrentClients": self.max_concurrent_clients,
        }
