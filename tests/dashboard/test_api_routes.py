"""
Tests for the oemanager proxy API.
"""

import pytest

from oemonitor.models import RequestInfo

CSRF = {"X-Requested-With": "XMLHttpRequest"}


class TestListings:
    """Tests for read-only listing endpoints."""

    def test_list_applications(self, test_client):
        response = test_client.get("/api/applications")

        assert response.status_code == 200
        assert response.json() == [{"name": "oepas1", "version": "12.8", "description": None}]

    def test_list_agents(self, test_client, fake_client):
        response = test_client.get("/api/applications/oepas1/agents")

        assert response.status_code == 200
        agents = response.json()
        assert agents[0]["agent_id"] == "agent-a"
        assert [s["session_id"] for s in agents[0]["sessions"]] == ["7", "8"]
        fake_client.fetch_agents.assert_called_once_with("oepas1")

    def test_list_agents_with_sessions(self, test_client, fake_client):
        response = test_client.get("/api/applications/oepas1/agents/sessions")

        assert response.status_code == 200
        fake_client.fetch_agents_with_sessions.assert_called_once_with("oepas1")

    def test_list_requests(self, test_client, fake_client):
        fake_client.fetch_requests.return_value = [
            RequestInfo.model_validate({"requestID": "ROOT:w:00000009", "sessionId": 7})
        ]

        response = test_client.get("/api/applications/oepas1/requests")

        assert response.json()[0]["request_id"] == "ROOT:w:00000009"

    def test_metrics(self, test_client):
        response = test_client.get("/api/applications/oepas1/metrics")

        assert response.status_code == 200
        assert response.json()["requests"] == 10.0

    def test_agent_metrics_may_be_null(self, test_client):
        response = test_client.get("/api/applications/oepas1/agents/agent-a/metrics")

        assert response.status_code == 200
        assert response.json() is None

    def test_agent_threads(self, test_client, fake_client):
        fake_client.fetch_agent_threads.return_value = [{"ThreadId": 1}]

        response = test_client.get("/api/applications/oepas1/agents/agent-a/threads")

        assert response.json() == [{"ThreadId": 1}]
        fake_client.fetch_agent_threads.assert_called_once_with("oepas1", "agent-a")

    def test_abl_objects_report_is_plain_text(self, test_client, fake_client):
        fake_client.get_abl_objects_report.return_value = "Handle Type Name"

        response = test_client.get("/api/applications/oepas1/agents/agent-a/abl-objects")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]
        assert response.text == "Handle Type Name"

    @pytest.mark.parametrize(
        "path",
        [
            "/api/applications/bad%20name/agents",
            "/api/applications/oepas1/agents/bad%20agent/sessions",
            "/api/applications/bad%2Fname/metrics",
        ],
    )
    def test_invalid_identifiers_return_400(self, test_client, fake_client, path):
        response = test_client.get(path)

        assert response.status_code in (400, 404)
        fake_client.fetch_agents.assert_not_called()
        fake_client.fetch_sessions.assert_not_called()
        fake_client.fetch_metrics.assert_not_called()


class TestControlActions:
    """Tests for control endpoints and their guards."""

    def test_add_agent(self, test_client, fake_client):
        fake_client.add_agent.return_value = {"result": "ok"}

        response = test_client.post("/api/applications/oepas1/agents", headers=CSRF)

        assert response.status_code == 200
        assert response.json() == {"result": "ok"}

    def test_missing_csrf_header_is_rejected(self, test_client, fake_client):
        response = test_client.post("/api/applications/oepas1/agents")

        assert response.status_code == 403
        fake_client.add_agent.assert_not_called()

    def test_read_only_mode_rejects_actions(self, test_client, fake_client, monkeypatch):
        monkeypatch.setenv("OEMONITOR_READ_ONLY", "1")

        response = test_client.delete("/api/applications/oepas1/agents/agent-a", headers=CSRF)

        assert response.status_code == 403
        assert "read-only" in response.json()["detail"]
        fake_client.trim_agent.assert_not_called()

    def test_read_only_mode_allows_reads(self, test_client, monkeypatch):
        monkeypatch.setenv("OEMONITOR_READ_ONLY", "1")

        assert test_client.get("/api/applications").status_code == 200

    def test_trim_agent_with_waits(self, test_client, fake_client):
        response = test_client.delete(
            "/api/applications/oepas1/agents/agent-a",
            params={"wait_to_finish": 0, "wait_after_stop": 500},
            headers=CSRF,
        )

        assert response.status_code == 204
        fake_client.trim_agent.assert_called_once_with("oepas1", "agent-a", 0, 500)

    def test_terminate_session(self, test_client, fake_client):
        response = test_client.delete("/api/applications/oepas1/agents/agent-a/sessions/7", headers=CSRF)

        assert response.status_code == 204
        fake_client.terminate_session.assert_called_once_with("oepas1", "agent-a", "7")

    def test_terminate_session_rejects_non_numeric_id(self, test_client, fake_client):
        response = test_client.delete("/api/applications/oepas1/agents/agent-a/sessions/abc", headers=CSRF)

        assert response.status_code == 400
        fake_client.terminate_session.assert_not_called()

    def test_cancel_request(self, test_client, fake_client):
        fake_client.cancel_request.return_value = False

        response = test_client.delete(
            "/api/applications/oepas1/requests",
            params={"requestId": "ROOT:w:00000009", "sessionId": "7"},
            headers=CSRF,
        )

        assert response.status_code == 200
        assert response.json() == {"cancelled": False}
        fake_client.cancel_request.assert_called_once_with("oepas1", "ROOT:w:00000009", "7")

    def test_cancel_request_invalid_ids(self, test_client, fake_client):
        response = test_client.delete(
            "/api/applications/oepas1/requests",
            params={"requestId": "x/y", "sessionId": "7"},
            headers=CSRF,
        )

        assert response.status_code == 400
        fake_client.cancel_request.assert_not_called()

    def test_reset_statistics(self, test_client, fake_client):
        response = test_client.delete("/api/applications/oepas1/agents/agent-a/statistics", headers=CSRF)

        assert response.status_code == 204
        fake_client.reset_agent_statistics.assert_called_once_with("oepas1", "agent-a")

    def test_abl_objects_tracking(self, test_client, fake_client):
        response = test_client.put(
            "/api/applications/oepas1/agents/agent-a/abl-objects",
            json={"enabled": True},
            headers=CSRF,
        )

        assert response.status_code == 204
        fake_client.set_abl_objects_tracking.assert_called_once_with("oepas1", "agent-a", True)

    def test_update_agent_properties(self, test_client, fake_client):
        response = test_client.put(
            "/api/applications/oepas1/agents/properties",
            json={"numInitialSessions": 5},
            headers=CSRF,
        )

        assert response.status_code == 204
        fake_client.update_agent_properties.assert_called_once_with("oepas1", {"numInitialSessions": 5})
