"""
udpclient.net.transport

Socket setup and single-datagram send for the heartbeat client.

The client never binds and never reads: it opens one IPv4 UDP socket,
turns the destination string into a socket address, and fires the fixed
payload at it.
"""

from __future__ import annotations

import socket
from typing import Optional, Tuple

from ..errors import ResolutionError, SocketSetupError, TransmissionError

PAYLOAD = b"test123\n"
PAYLOAD_SIZE = len(PAYLOAD)  # 8

__all__ = [
    "PAYLOAD",
    "PAYLOAD_SIZE",
    "Destination",
    "open_socket",
    "resolve_destination",
    "send_datagram",
]

Destination = Tuple[str, int]


def open_socket() -> socket.socket:
    """
    Create an unbound IPv4 datagram socket.

    The OS picks the ephemeral source port on the first send.
    """
    try:
        return socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
    except OSError as exc:
        raise SocketSetupError(f"socket: {exc.strerror or exc}") from exc


def resolve_destination(server: str, port: int) -> Destination:
    """
    Validate a dotted IPv4 address and pair it with the port.

    Uses inet_aton rules, so shorthand forms such as "127.1" are accepted
    and normalised, while host names are rejected. The port is carried in
    network byte order by the kernel's sockaddr, Python only needs the int.
    """
    try:
        packed = socket.inet_aton(server)
    except (OSError, TypeError, ValueError) as exc:
        raise ResolutionError("inet_aton() failed") from exc
    return socket.inet_ntoa(packed), int(port)


def send_datagram(sock: socket.socket, dest: Destination, payload: Optional[bytes] = None) -> int:
    """
    Send one datagram and return the number of bytes handed to the kernel.
    """
    data = PAYLOAD if payload is None else payload
    try:
        return sock.sendto(data, dest)
    except OSError as exc:
        raise TransmissionError(f"sendto(): {exc.strerror or exc}") from exc
