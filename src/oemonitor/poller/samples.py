"""
Sample builders.

Turn normalized oemanager snapshots into Samples for the aggregator. All
derived counts (idle/busy sessions, stopping agents, summed memory) are
computed here; the aggregator treats them like any other scalar metric.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from oemonitor.models import AgentInfo, AgentStats, EntityKey, Sample, SeriesKey, SessionManagerMetrics

logger = logging.getLogger(__name__)

__all__ = [
    "SESSION_METRICS",
    "STATS_METRICS",
    "StatsSnapshot",
    "build_session_sample",
    "build_stats_sample",
    "stats_keys",
]

COUNTER_METRICS = (
    "requests",
    "reads",
    "writes",
    "readErrors",
    "writeErrors",
    "numReserveABLSessionWaits",
    "numReserveABLSessionTimeouts",
    "concurrentConnectedClients",
    "maxConcurrentClients",
)

DERIVED_METRICS = ("memoryUsed", "idleSessions", "busySessions", "stoppingAgents")

STATS_METRICS = DERIVED_METRICS + COUNTER_METRICS

SESSION_METRICS = ("sessionMemory", "requestsCompleted", "requestsFailed")


def stats_keys() -> list[SeriesKey]:
    """Keys expected in every statistics sample."""
    return [SeriesKey(metric=name) for name in STATS_METRICS]


@dataclass
class StatsSnapshot:
    """Everything fetched for one statistics poll of an application."""

    metrics: SessionManagerMetrics
    agents: Sequence[AgentInfo] = field(default_factory=list)
    agent_stats: Sequence[AgentStats | None] = field(default_factory=list)
    agents_with_sessions: Sequence[AgentInfo] = field(default_factory=list)


def build_stats_sample(snapshot: StatsSnapshot, timestamp: int) -> Sample:
    """Build the PASOE statistics sample.

    memoryUsed sums agent overhead, agent C stack and every session's memory.
    Sessions count as busy when BUSY or RESERVED; agents count as stopping
    when STOPPING or STOPPED.
    """
    stopping_agents = sum(1 for agent in snapshot.agents if agent.state.is_stopping)

    total_memory = sum(stats.memory for stats in snapshot.agent_stats if stats is not None)
    idle_sessions = 0
    busy_sessions = 0
    for agent in snapshot.agents_with_sessions:
        for session in agent.sessions:
            total_memory += session.memory or 0.0
            if session.state.is_idle:
                idle_sessions += 1
            elif session.state.is_busy:
                busy_sessions += 1

    metrics: dict[str, float | None] = {
        "memoryUsed": total_memory,
        "idleSessions": idle_sessions,
        "busySessions": busy_sessions,
        "stoppingAgents": stopping_agents,
    }
    metrics.update(snapshot.metrics.as_metrics())
    return Sample(timestamp=timestamp, metrics=metrics)


def build_session_sample(agents_with_sessions: Sequence[AgentInfo], timestamp: int) -> Sample:
    """Build the per-session sample keyed by (agent, session)."""
    entities: dict[str, dict[EntityKey, float | None]] = {name: {} for name in SESSION_METRICS}
    for agent in agents_with_sessions:
        for session in agent.sessions:
            key = EntityKey(entity_id=agent.agent_id, sub_entity_id=session.session_id)
            if key in entities["sessionMemory"]:
                logger.warning(f"Duplicate session {key} in agents/sessions response; keeping the first")
                continue
            entities["sessionMemory"][key] = session.memory
            entities["requestsCompleted"][key] = session.requests_completed
            entities["requestsFailed"][key] = session.requests_failed
    return Sample(timestamp=timestamp, entities=entities)
