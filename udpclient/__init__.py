"""
udpclient

Heartbeat client for a UDP watchdog.

The package keeps a hard separation between:
- run configuration (udpclient.config)
- socket setup and send (udpclient.net.transport)
- the send loop and progress output (udpclient.sender)
- the receiving watchdog (udpclient.net.watchdog)

The command line lives in udpclient.__main__ and udpclient.watch.
"""

from __future__ import annotations

__all__ = [
    "__version__",
    "SenderConfig",
    "Sender",
    "RetryPolicy",
    "progress_percent",
    "format_progress",
    "PAYLOAD",
    "NodeWatchdog",
    "SenderError",
    "UsageError",
    "ArgumentError",
    "ResolutionError",
    "SocketSetupError",
    "TransmissionError",
]

__version__ = "0.1.0"


from .config import SenderConfig  # noqa: E402
from .errors import (  # noqa: E402
    ArgumentError,
    ResolutionError,
    SenderError,
    SocketSetupError,
    TransmissionError,
    UsageError,
)
from .net.transport import PAYLOAD  # noqa: E402
from .net.watchdog import NodeWatchdog  # noqa: E402
from .sender import RetryPolicy, Sender, format_progress, progress_percent  # noqa: E402
