"""
Pytest configuration and shared fixtures.
"""

import os
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from oemonitor.client import OeManagerClient
from oemonitor.config import HistoryLimits, RefreshIntervals, reset_settings
from oemonitor.dashboard.dependencies import configure_monitor
from oemonitor.dashboard.main import app
from oemonitor.logger import logger as oemonitor_logger
from oemonitor.models import AgentInfo, ApplicationInfo, SessionManagerMetrics
from oemonitor.monitor import Monitor


@pytest.fixture(autouse=True)
def clean_env_for_tests(monkeypatch):
    """Clean environment variables for test isolation.

    Ensures tests never talk to a PASOE instance configured in the user's
    environment by clearing every OEMONITOR_* variable and the cached
    settings and monitor built from them.

    This fixture is applied automatically to all tests (autouse=True).
    """
    for name in list(os.environ):
        if name.startswith("OEMONITOR_"):
            monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()
    configure_monitor(None)


@pytest.fixture
def fake_client():
    """oemanager client double with canned responses for application oepas1."""
    client = MagicMock(spec=OeManagerClient)
    client.base_url = "http://pasoe.test:8810/oemanager"
    client.fetch_applications.return_value = [ApplicationInfo(name="oepas1", version="12.8")]
    client.fetch_metrics.return_value = SessionManagerMetrics.model_validate(
        {"requests": 10, "reads": 4, "writes": 4, "concurrentConnectedClients": 2, "maxConcurrentClients": 3}
    )
    agents = [
        AgentInfo.model_validate(
            {
                "agentId": "agent-a",
                "pid": 4242,
                "state": "AVAILABLE",
                "sessions": [
                    {"SessionId": 7, "SessionState": "IDLE", "SessionMemory": 1048576},
                    {"SessionId": 8, "SessionState": "BUSY", "SessionMemory": 2097152},
                ],
            }
        )
    ]
    client.fetch_agents.return_value = agents
    client.fetch_agents_with_sessions.return_value = agents
    client.fetch_agent_metrics.return_value = None
    return client


@pytest.fixture
def quiet_intervals():
    """Refresh intervals with every background loop disabled."""
    return RefreshIntervals(agents=0, requests=0, charts=0, stats=0)


@pytest.fixture
def monitor(fake_client, quiet_intervals):
    """Monitor over the fake client, watching oepas1, with no background polling."""
    return Monitor(fake_client, intervals=quiet_intervals, limits=HistoryLimits(), application="oepas1")


@pytest.fixture
def test_client(monitor):
    """Create a test client for the FastAPI app, wired to the fake monitor."""
    configure_monitor(monitor)
    return TestClient(app)


@pytest.fixture
def oemonitor_caplog(caplog, monkeypatch):
    """caplog that also receives records from the non-propagating oemonitor logger."""
    monkeypatch.setattr(oemonitor_logger, "propagate", True)
    return caplog
