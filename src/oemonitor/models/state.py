"""
Agent and session state enumerations.

oemanager reports states as free-form upper or lower case strings; these
enums give them names and group them the way the statistics charts count them.
"""

from __future__ import annotations

from enum import Enum


class AgentState(Enum):
    """Lifecycle state of a PASOE agent process."""

    STARTING = "STARTING"
    AVAILABLE = "AVAILABLE"
    BUSY = "BUSY"
    STOPPING = "STOPPING"
    STOPPED = "STOPPED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, raw: str | None) -> AgentState:
        """Parse a raw state string, case-insensitively.

        Unrecognized or missing states map to UNKNOWN.
        """
        try:
            return cls((raw or "").strip().upper())
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_stopping(self) -> bool:
        """Whether the agent is going away (counted as "stopping" on charts)."""
        return self in (AgentState.STOPPING, AgentState.STOPPED)


class SessionState(Enum):
    """State of an ABL session inside an agent."""

    IDLE = "IDLE"
    BUSY = "BUSY"
    RESERVED = "RESERVED"
    STARTING = "STARTING"
    TERMINATING = "TERMINATING"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, raw: str | None) -> SessionState:
        """Parse a raw state string, case-insensitively.

        Unrecognized or missing states map to UNKNOWN.
        """
        try:
            return cls((raw or "").strip().upper())
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_idle(self) -> bool:
        return self is SessionState.IDLE

    @property
    def is_busy(self) -> bool:
        """Reserved sessions are serving a bound client, so they count as busy."""
        return self in (SessionState.BUSY, SessionState.RESERVED)
