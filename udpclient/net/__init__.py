"""
udpclient.net

Networking helpers: the sending transport and the receiving watchdog.
"""

from __future__ import annotations

from .transport import PAYLOAD, open_socket, resolve_destination, send_datagram
from .watchdog import NodeWatchdog, open_listener

__all__ = [
    "PAYLOAD",
    "open_socket",
    "resolve_destination",
    "send_datagram",
    "NodeWatchdog",
    "open_listener",
]
