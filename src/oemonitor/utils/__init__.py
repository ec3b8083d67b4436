"""Utility modules for oemonitor."""

from oemonitor.utils.timestamp import now_ms, parse_to_datetime, parse_to_ms
from oemonitor.utils.validators import (
    validate_agent_id,
    validate_application_name,
    validate_name,
    validate_request_id,
    validate_session_id,
)

__all__ = [
    "now_ms",
    "parse_to_datetime",
    "parse_to_ms",
    "validate_agent_id",
    "validate_application_name",
    "validate_name",
    "validate_request_id",
    "validate_session_id",
]
