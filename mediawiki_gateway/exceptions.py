"""
Exception classes for the MediaWiki gateway.
"""

from typing import Optional


class MediaWikiException(Exception):
    """Base exception for all gateway errors."""

    def __init__(self, message: str, details: Optional[dict] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ProtocolError(MediaWikiException):
    """Raised when the server response cannot be understood as API output."""


class NetworkError(ProtocolError):
    """Raised when the connection fails before a response arrives."""


class TimeoutError(ProtocolError):
    """Raised when a request times out."""

    def __init__(self, message: str = "Request timed out") -> None:
        super().__init__(message)


class APIError(MediaWikiException):
    """Raised when the API reports an error, or a warning promoted to one."""

    def __init__(self, code: str, info: str) -> None:
        super().__init__(f"API error: code '{code}', info '{info}'")
        self.code = code
        self.info = info


class Unauthorized(MediaWikiException):
    """Raised when a token is denied or a login/account creation fails."""


class ValidationError(MediaWikiException):
    """Raised when input validation fails."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"Validation error for {field}: {message}")
        self.field = field
