"""
udpclient.config

Run configuration for the heartbeat client.
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "DEFAULT_SERVER",
    "DEFAULT_PORT",
    "DEFAULT_COUNT",
    "DEFAULT_INTERVAL",
    "DEFAULT_RETRY_BACKOFF",
    "SenderConfig",
]

DEFAULT_SERVER = "127.0.0.1"
DEFAULT_PORT = 5556  # watchdog port of the load balancer
DEFAULT_COUNT = 10
DEFAULT_INTERVAL = 1.0
DEFAULT_RETRY_BACKOFF = 0.5

_MAX_PORT = 0xFFFF


@dataclass(frozen=True)
class SenderConfig:
    """
    Immutable settings for one run of the client.

    server, port and count come from -s, -p and -c. The remaining fields
    are opt-in knobs whose defaults reproduce the plain one-per-second,
    fail-on-first-error behavior.
    """

    server: str = DEFAULT_SERVER
    port: int = DEFAULT_PORT
    count: int = DEFAULT_COUNT
    interval: float = DEFAULT_INTERVAL
    retries: int = 0
    retry_backoff: float = DEFAULT_RETRY_BACKOFF

    def __post_init__(self) -> None:
        if not 0 <= int(self.port) <= _MAX_PORT:
            raise ValueError(f"port out of range 0..{_MAX_PORT}: {self.port}")
        if int(self.count) < 0:
            raise ValueError(f"packet count must be >= 0: {self.count}")
        if float(self.interval) < 0:
            raise ValueError(f"interval must be >= 0: {self.interval}")
        if int(self.retries) < 0:
            raise ValueError(f"retries must be >= 0: {self.retries}")
        if float(self.retry_backoff) < 0:
            raise ValueError(f"retry backoff must be >= 0: {self.retry_backoff}")

    def summary(self) -> str:
        return f"Server: {self.server}, port: {self.port}, packets: {self.count}"
