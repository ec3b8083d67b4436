"""Tests for sample builders and collectors."""

from oemonitor.exceptions import OeManagerError
from oemonitor.models import AgentInfo, AgentStats, EntityKey, SessionManagerMetrics
from oemonitor.poller import (
    STATS_METRICS,
    StatsSnapshot,
    build_session_sample,
    build_stats_sample,
    collect_session_sample,
    collect_stats_sample,
    stats_keys,
)


def agent(agent_id, state="AVAILABLE", sessions=()):
    return AgentInfo.model_validate({"agentId": agent_id, "state": state, "sessions": list(sessions)})


class TestBuildStatsSample:
    """Tests for build_stats_sample."""

    def test_derived_counts(self):
        """Test session and agent counts derived from states."""
        with_sessions = [
            agent(
                "a",
                sessions=[
                    {"SessionId": 1, "SessionState": "IDLE", "SessionMemory": 100},
                    {"SessionId": 2, "SessionState": "BUSY", "SessionMemory": 200},
                    {"SessionId": 3, "SessionState": "RESERVED"},
                    {"SessionId": 4, "SessionState": "STARTING"},
                ],
            )
        ]
        snapshot = StatsSnapshot(
            metrics=SessionManagerMetrics.model_validate({"requests": 5}),
            agents=[agent("a"), agent("b", state="STOPPING"), agent("c", state="STOPPED")],
            agent_stats=[AgentStats.model_validate({"OverheadMemory": 1000, "CStackMemory": 10}), None, None],
            agents_with_sessions=with_sessions,
        )

        sample = build_stats_sample(snapshot, 1234)

        assert sample.timestamp == 1234
        assert sample.metrics["idleSessions"] == 1
        assert sample.metrics["busySessions"] == 2
        assert sample.metrics["stoppingAgents"] == 2
        assert sample.metrics["memoryUsed"] == 1310.0
        assert sample.metrics["requests"] == 5.0
        assert sample.metrics["reads"] is None

    def test_every_stats_metric_is_present(self):
        sample = build_stats_sample(StatsSnapshot(metrics=SessionManagerMetrics()), 0)

        assert set(sample.metrics) == set(STATS_METRICS)
        assert [k.metric for k in stats_keys()] == list(STATS_METRICS)


class TestBuildSessionSample:
    """Tests for build_session_sample."""

    def test_entities_keyed_by_agent_and_session(self):
        sample = build_session_sample(
            [agent("a", sessions=[{"SessionId": 7, "SessionMemory": 64, "RequestsCompleted": 3}])],
            99,
        )

        key = EntityKey(entity_id="a", sub_entity_id="7")
        assert sample.entities["sessionMemory"] == {key: 64.0}
        assert sample.entities["requestsCompleted"] == {key: 3.0}
        assert sample.entities["requestsFailed"] == {key: None}

    def test_duplicate_sessions_keep_first(self):
        sample = build_session_sample(
            [agent("a", sessions=[{"SessionId": 7, "SessionMemory": 1}, {"SessionId": 7, "SessionMemory": 2}])],
            0,
        )

        assert list(sample.entities["sessionMemory"].values()) == [1.0]


class TestCollectors:
    """Tests for blocking collectors over a fake client."""

    def test_collect_stats_sample(self, fake_client):
        fake_client.fetch_agent_metrics.return_value = AgentStats.model_validate({"OverheadMemory": 10})

        sample = collect_stats_sample(fake_client, "oepas1")

        assert sample.metrics["requests"] == 10.0
        assert sample.metrics["idleSessions"] == 1
        assert sample.metrics["busySessions"] == 1
        assert sample.metrics["memoryUsed"] == 10 + 1048576 + 2097152
        fake_client.fetch_agent_metrics.assert_called_once_with("oepas1", "agent-a")

    def test_unreachable_agent_does_not_fail_the_poll(self, fake_client):
        fake_client.fetch_agent_metrics.side_effect = OeManagerError("Failed to fetch agent metrics", 500)

        sample = collect_stats_sample(fake_client, "oepas1")

        assert sample.metrics["memoryUsed"] == 1048576 + 2097152

    def test_no_agents_skips_session_fetch(self, fake_client):
        fake_client.fetch_agents.return_value = []

        collect_stats_sample(fake_client, "oepas1")

        fake_client.fetch_agents_with_sessions.assert_not_called()

    def test_collect_session_sample(self, fake_client):
        sample = collect_session_sample(fake_client, "oepas1")

        assert len(sample.entities["sessionMemory"]) == 2
