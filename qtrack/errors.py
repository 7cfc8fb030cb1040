"""Error taxonomy shared by the token rotator, API client and aggregator."""

from __future__ import annotations


class QtrackError(Exception):
    """Base exception for qtrack errors."""

    pass


class NetworkError(QtrackError):
    """Raised when a request fails at the transport level."""

    pass


class AuthError(QtrackError):
    """Raised when the token or data endpoints answer with a non-2xx status.

    The server's error payload is kept on ``body`` so callers can report it.
    """

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ParseError(QtrackError):
    """Raised when a response body is not valid JSON or lacks expected fields."""

    pass


class CredentialError(QtrackError):
    """Raised when the local refresh-token record is missing or conflicting."""

    pass


class DivisionUndefined(QtrackError):
    """Raised when percentages are requested for a zero-value portfolio."""

    pass


class NotFound(QtrackError):
    """Raised when a requested symbol or account yields no data."""

    pass
