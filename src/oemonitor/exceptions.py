"""
oemonitor exceptions module.

Contains exception classes used across multiple modules to avoid circular dependencies.
"""

from __future__ import annotations


class OeManagerError(Exception):
    """Exception raised when the oemanager REST API reports a failure."""

    def __init__(self, operation: str, status_code: int | None = None, detail: str = "") -> None:
        self.operation = operation
        self.status_code = status_code
        self.detail = detail
        message = operation
        if status_code is not None:
            message = f"{message}: {status_code}"
        if detail:
            message = f"{message} {detail}"
        super().__init__(message)


class OeManagerAuthError(OeManagerError):
    """Exception raised when oemanager rejects the configured credentials."""

    pass


class OeManagerNotFoundError(OeManagerError):
    """Exception raised when an application, agent or session is not found."""

    pass


class MethodNotAllowedError(OeManagerError):
    """Exception raised on HTTP 405, usually a CORS or deployment problem."""

    def __init__(self, operation: str, detail: str = "") -> None:
        hint = (
            "Method Not Allowed (405). This may be a CORS issue - ensure the client is deployed "
            "on the same PASOE instance, or configure CORS headers on the server."
        )
        super().__init__(operation, 405, f"{hint} {detail}".strip())


class ApplicationNotSelectedError(Exception):
    """Exception raised when a monitoring operation needs a selected application."""

    pass
