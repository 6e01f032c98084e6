"""
udpclient.errors

Failure categories for the heartbeat client. Every one of them is fatal.
"""

from __future__ import annotations

from typing import Optional

__all__ = [
    "SenderError",
    "UsageError",
    "ArgumentError",
    "ResolutionError",
    "SocketSetupError",
    "TransmissionError",
]


class SenderError(RuntimeError):
    """Base class for every fatal client error."""


class UsageError(SenderError):
    """Raised when the client is started without any arguments."""


class ArgumentError(SenderError, ValueError):
    """Raised for an unknown flag, a missing value, or a malformed value."""

    def __init__(self, message: str, *, token: Optional[str] = None) -> None:
        super().__init__(message)
        self.token = token


class ResolutionError(SenderError):
    """Raised when the destination is not a valid IPv4 address."""


class SocketSetupError(SenderError):
    """Raised when the datagram socket cannot be created."""


class TransmissionError(SenderError):
    """Raised when a datagram cannot be sent."""
