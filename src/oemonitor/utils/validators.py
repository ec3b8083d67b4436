"""Input validators for oemonitor.

Identifiers received from users or from the dashboard API end up as path
segments and query parameters of oemanager URLs. These validators keep them
to the character sets the oemanager API actually produces.
"""

import re

__all__ = [
    "validate_name",
    "validate_application_name",
    "validate_agent_id",
    "validate_session_id",
    "validate_request_id",
]

# Application names and agent ids: alphanumeric characters, underscores, and hyphens
_SAFE_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")

# Session ids are numeric in every oemanager release we have seen
_SESSION_ID_PATTERN = re.compile(r"^[0-9]+$")

# Request ids look like "ROOT:w:00000009" and may carry dots
_REQUEST_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_.:\-]+$")

_MAX_NAME_LENGTH = 255


def validate_name(name: str, name_type: str = "name") -> None:
    """Validate a name used as an oemanager URL path segment.

    Args:
        name: Name from user input
        name_type: Type of name (for error messages), e.g., "application name"

    Raises:
        ValueError: If name is empty, too long or contains invalid characters

    Examples:
        >>> validate_name("oepas1", "application name")  # OK
        >>> validate_name("../applications", "application name")  # Raises ValueError
    """
    if not name or len(name) > _MAX_NAME_LENGTH or not _SAFE_NAME_PATTERN.match(name):
        raise ValueError(f"Invalid {name_type}. Only alphanumeric characters, underscores, and hyphens are allowed.")


def validate_application_name(application: str) -> None:
    """Validate an ABL application name.

    Raises:
        ValueError: If the name contains invalid characters
    """
    validate_name(application, "application name")


def validate_agent_id(agent_id: str) -> None:
    """Validate an agent id such as ``bk_2aS9vRJ2YeOJKdH64Jg``.

    Raises:
        ValueError: If the id contains invalid characters
    """
    validate_name(agent_id, "agent id")


def validate_session_id(session_id: str) -> None:
    """Validate an ABL session id.

    Raises:
        ValueError: If the id is not numeric
    """
    if not session_id or not _SESSION_ID_PATTERN.match(session_id):
        raise ValueError("Invalid session id. Only digits are allowed.")


def validate_request_id(request_id: str) -> None:
    """Validate a request id.

    Raises:
        ValueError: If the id is empty or contains invalid characters
    """
    if not request_id or len(request_id) > _MAX_NAME_LENGTH or not _REQUEST_ID_PATTERN.match(request_id):
        raise ValueError("Invalid request id. Only alphanumeric characters, underscores, hyphens, dots, and colons are allowed.")
