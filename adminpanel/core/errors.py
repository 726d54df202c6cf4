"""Error types shared by the gateway client, services and web routes."""
from __future__ import annotations

from typing import Optional


class DashboardError(Exception):
    """Base class for errors surfaced to dashboard users."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(DashboardError):
    """Missing or invalid user input, shown next to the offending form."""


class RequestError(DashboardError):
    """The backend answered with a non-2xx status.

    ``detail`` is the message the backend supplied, or ``None`` when the
    message had to be synthesized from the status code.
    """

    def __init__(self, status_code: int, message: str, detail: Optional[str] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class SessionExpiredError(RequestError):
    """The backend rejected the stored credential on an authenticated call."""


class NetworkError(DashboardError):
    """No response was received from the backend (connection error or timeout)."""


class DuplicateSubmissionError(DashboardError):
    """A previous submission of the same form is still being processed."""


__all__ = [
    "DashboardError",
    "DuplicateSubmissionError",
    "NetworkError",
    "RequestError",
    "SessionExpiredError",
    "ValidationError",
]
