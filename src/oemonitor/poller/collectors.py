"""
Blocking collectors: fetch one poll's worth of data and build a Sample.

These run in a worker thread (see MetricsPoller) and may raise
OeManagerError or requests.RequestException for the poll as a whole.
"""

from __future__ import annotations

import logging

import requests

from oemonitor.client import OeManagerClient
from oemonitor.exceptions import OeManagerError
from oemonitor.models import AgentInfo, AgentStats, Sample
from oemonitor.poller.samples import StatsSnapshot, build_session_sample, build_stats_sample
from oemonitor.utils.timestamp import now_ms

logger = logging.getLogger(__name__)

__all__ = ["collect_session_sample", "collect_stats_sample"]


def _agent_stats(client: OeManagerClient, application: str, agent: AgentInfo) -> AgentStats | None:
    try:
        return client.fetch_agent_metrics(application, agent.agent_id)
    except (OeManagerError, requests.RequestException, ValueError) as e:
        # One unreachable agent must not drop the whole statistics point
        logger.debug(f"Skipping metrics of agent {agent.agent_id}: {e}")
        return None


def collect_stats_sample(client: OeManagerClient, application: str) -> Sample:
    """Fetch SessionManager metrics, agents, agent statistics and sessions."""
    metrics = client.fetch_metrics(application)
    agents = client.fetch_agents(application)

    agent_stats = [_agent_stats(client, application, agent) for agent in agents]

    agents_with_sessions: list[AgentInfo] = []
    if agents:
        try:
            agents_with_sessions = client.fetch_agents_with_sessions(application)
        except (OeManagerError, requests.RequestException, ValueError) as e:
            logger.warning(f"Session memory unavailable for {application}: {e}")

    snapshot = StatsSnapshot(
        metrics=metrics,
        agents=agents,
        agent_stats=agent_stats,
        agents_with_sessions=agents_with_sessions,
    )
    return build_stats_sample(snapshot, now_ms())


def collect_session_sample(client: OeManagerClient, application: str) -> Sample:
    """Fetch agents with their sessions and build the per-session sample."""
    agents_with_sessions = client.fetch_agents_with_sessions(application)
    return build_session_sample(agents_with_sessions, now_ms())
