"""Configuration and environment handling for oemonitor."""

import os

from pydantic import BaseModel, Field, field_validator

__all__ = [
    "ConnectionSettings",
    "HistoryLimits",
    "RefreshIntervals",
    "get_connection_settings",
    "get_default_application",
    "get_history_limits",
    "get_refresh_intervals",
    "is_dev_mode",
    "is_read_only",
    "reset_settings",
]


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable.

    Raises:
        ValueError: If the variable is set but is not an integer
    """
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class ConnectionSettings(BaseModel):
    """Connection settings for a PASOE instance hosting the oemanager webapp."""

    base_url: str = Field(default="http://localhost:8810", description="PASOE instance URL, without /oemanager")
    username: str = Field(default="tomcat", description="oemanager user")
    password: str = Field(default="", description="oemanager password")
    verify_tls: bool = Field(default=True, description="Verify the server TLS certificate")
    timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")
    wait_to_finish: int = Field(default=120_000, ge=0, description="Trim agent: ms to wait for requests to finish")
    wait_after_stop: int = Field(default=60_000, ge=0, description="Trim agent: ms to wait after stopping")

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @classmethod
    def from_env(cls) -> "ConnectionSettings":
        """Create ConnectionSettings from environment variables.

        Environment variables:
        - OEMONITOR_URL: PASOE instance URL (default: http://localhost:8810)
        - OEMONITOR_USER: oemanager user (default: tomcat)
        - OEMONITOR_PASSWORD: oemanager password (default: empty)
        - OEMONITOR_VERIFY_TLS: Verify TLS certificates (default: 1)
        - OEMONITOR_TIMEOUT: HTTP timeout in seconds (default: 30)
        - OEMONITOR_WAIT_TO_FINISH: Trim agent waitToFinish in ms (default: 120000)
        - OEMONITOR_WAIT_AFTER_STOP: Trim agent waitAfterStop in ms (default: 60000)
        """
        fields = cls.model_fields
        return cls(
            base_url=os.environ.get("OEMONITOR_URL") or fields["base_url"].default,
            username=os.environ.get("OEMONITOR_USER") or fields["username"].default,
            password=os.environ.get("OEMONITOR_PASSWORD", fields["password"].default),
            verify_tls=_env_flag("OEMONITOR_VERIFY_TLS", fields["verify_tls"].default),
            timeout=float(_env_int("OEMONITOR_TIMEOUT", int(fields["timeout"].default))),
            wait_to_finish=_env_int("OEMONITOR_WAIT_TO_FINISH", fields["wait_to_finish"].default),
            wait_after_stop=_env_int("OEMONITOR_WAIT_AFTER_STOP", fields["wait_after_stop"].default),
        )


class RefreshIntervals(BaseModel):
    """Polling intervals in seconds. Zero disables the corresponding poller."""

    agents: int = Field(default=10, ge=0, description="Agents and sessions list refresh")
    requests: int = Field(default=5, ge=0, description="Running requests refresh")
    charts: int = Field(default=10, ge=0, description="Per-session charts refresh")
    stats: int = Field(default=10, ge=0, description="PASOE statistics refresh")

    @classmethod
    def from_env(cls) -> "RefreshIntervals":
        """Create RefreshIntervals from OEMONITOR_REFRESH_{AGENTS,REQUESTS,CHARTS,STATS}."""
        fields = cls.model_fields
        return cls(
            agents=_env_int("OEMONITOR_REFRESH_AGENTS", fields["agents"].default),
            requests=_env_int("OEMONITOR_REFRESH_REQUESTS", fields["requests"].default),
            charts=_env_int("OEMONITOR_REFRESH_CHARTS", fields["charts"].default),
            stats=_env_int("OEMONITOR_REFRESH_STATS", fields["stats"].default),
        )


class HistoryLimits(BaseModel):
    """Capacities of the in-memory metric histories."""

    charts: int = Field(default=200, gt=0, description="Points kept per session chart line")
    stats: int = Field(default=500, gt=0, description="Points kept per PASOE statistics line")
    window_points: int = Field(default=100, gt=0, description="Polls visible on a chart time axis")

    @classmethod
    def from_env(cls) -> "HistoryLimits":
        """Create HistoryLimits from OEMONITOR_HISTORY_CHARTS, OEMONITOR_HISTORY_STATS and OEMONITOR_WINDOW_POINTS."""
        fields = cls.model_fields
        return cls(
            charts=_env_int("OEMONITOR_HISTORY_CHARTS", fields["charts"].default),
            stats=_env_int("OEMONITOR_HISTORY_STATS", fields["stats"].default),
            window_points=_env_int("OEMONITOR_WINDOW_POINTS", fields["window_points"].default),
        )


_connection_settings: ConnectionSettings | None = None
_refresh_intervals: RefreshIntervals | None = None
_history_limits: HistoryLimits | None = None


def get_connection_settings() -> ConnectionSettings:
    """Get connection settings.

    Returns cached instance if already initialized.
    """
    global _connection_settings
    if _connection_settings is None:
        _connection_settings = ConnectionSettings.from_env()
    return _connection_settings


def get_refresh_intervals() -> RefreshIntervals:
    """Get refresh intervals, cached after first use."""
    global _refresh_intervals
    if _refresh_intervals is None:
        _refresh_intervals = RefreshIntervals.from_env()
    return _refresh_intervals


def get_history_limits() -> HistoryLimits:
    """Get history limits, cached after first use."""
    global _history_limits
    if _history_limits is None:
        _history_limits = HistoryLimits.from_env()
    return _history_limits


def reset_settings() -> None:
    """Drop cached settings so the next accessor call re-reads the environment."""
    global _connection_settings, _refresh_intervals, _history_limits
    _connection_settings = None
    _refresh_intervals = None
    _history_limits = None


def get_default_application() -> str | None:
    """Get the application monitored at startup.

    Returns:
        Application name if OEMONITOR_APPLICATION is set, None otherwise.
    """
    return os.environ.get("OEMONITOR_APPLICATION") or None


def is_dev_mode() -> bool:
    """Check if running in development mode.

    Returns:
        True if OEMONITOR_DEV_MODE is set to "1", False otherwise.
    """
    return os.environ.get("OEMONITOR_DEV_MODE") == "1"


def is_read_only() -> bool:
    """Check if running in read-only mode.

    Returns:
        True if OEMONITOR_READ_ONLY is set to "1", False otherwise.
    """
    return os.environ.get("OEMONITOR_READ_ONLY") == "1"
