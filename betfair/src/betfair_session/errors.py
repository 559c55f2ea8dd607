"""
Exception hierarchy for the Betfair session client.

Every error raised by this package derives from :class:`BetfairError` so
callers can catch the whole family with a single ``except`` clause while
still being able to tell a rejected login apart from an unreachable
server or a malformed response.
"""

from __future__ import annotations

from typing import Optional


class BetfairError(Exception):
    """Base class for all session client errors."""


class AuthenticationError(BetfairError):
    """Login or keep-alive returned a non-success status.

    ``reason`` carries the status or error string reported by the
    identity service (e.g. ``"INVALID_USERNAME_OR_PASSWORD"``).
    """

    def __init__(self, reason: Optional[str]) -> None:
        self.reason = reason or "UNKNOWN"
        super().__init__(f"Authentication failed: {self.reason}")


class TransportError(BetfairError):
    """Network or TLS failure while reaching an endpoint."""

    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        self.status = status
        super().__init__(message)


class DecodeError(BetfairError):
    """Response body was not valid JSON or did not match the expected shape."""

    def __init__(self, message: str, *, body: bytes = b"") -> None:
        # Keep a truncated copy of the body for diagnostics only
        self.body = body[:200]
        super().__init__(message)


class ConfigurationError(BetfairError):
    """Invalid endpoint, exchange or request method supplied by the caller."""


class APIError(BetfairError):
    """JSON-RPC call returned an ``error`` object instead of a result."""

    def __init__(self, code: int, message: str) -> None:
        self.code = code
        super().__init__(f"API error {code}: {message}")


__all__ = [
    "BetfairError",
    "AuthenticationError",
    "TransportError",
    "DecodeError",
    "ConfigurationError",
    "APIError",
]
