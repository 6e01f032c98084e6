"""
udpclient.net.watchdog

Receiving side of the heartbeat: a UDP listener that marks every node
that sends it a datagram as live.

Any datagram counts, the payload is only kept for display. Liveness is a
plain last-seen timestamp per source IP, so several clients behind one
address collapse into a single node.
"""

from __future__ import annotations

import socket
import time
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

__all__ = ["NodeWatchdog", "open_listener", "BUFFER_LEN"]

BUFFER_LEN = 512
# Keep a bounded history per node; interval stats only need recent gaps.
MAX_ARRIVALS = 1024


def open_listener(port: int, host: str = "0.0.0.0", *, timeout: Optional[float] = None) -> socket.socket:
    """
    Bind a UDP socket for the watchdog. port=0 picks a free port.
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.bind((host, int(port)))
    except OSError:
        sock.close()
        raise
    if timeout is None:
        sock.setblocking(False)
    else:
        sock.settimeout(float(timeout))
    return sock


class NodeWatchdog:
    """
    Track which nodes are sending heartbeats.

    Usage
    -----
    dog = NodeWatchdog(open_listener(5556, timeout=0.5))
    res = dog.recv_once()
    if res is not None:
        node, payload = res
    dog.live_nodes(max_age=5.0)
    """

    def __init__(self, sock: socket.socket, *, clock: Callable[[], float] = time.time) -> None:
        self.sock = sock
        self._clock = clock
        self.table: Dict[str, float] = {}
        self.last_payload: Dict[str, bytes] = {}
        self._arrivals: Dict[str, List[float]] = {}
        self.counters = {
            "datagrams": 0,
            "nodes_seen": 0,
            "expired": 0,
        }

    def recv_once(self) -> Optional[Tuple[str, bytes]]:
        """
        Receive at most one datagram and record its sender.

        Returns (node_ip, payload), or None when nothing arrived before the
        socket's timeout (or at once, for a non-blocking socket).
        """
        try:
            data, addr = self.sock.recvfrom(BUFFER_LEN)
        except (BlockingIOError, socket.timeout):
            return None
        node = str(addr[0])
        self.record(node, data)
        return node, data

    def record(self, node: str, payload: bytes = b"", *, now: Optional[float] = None) -> None:
        t = self._clock() if now is None else float(now)
        self.counters["datagrams"] += 1
        if node not in self.table:
            self.counters["nodes_seen"] += 1
        self.table[node] = t
        self.last_payload[node] = bytes(payload)
        arrivals = self._arrivals.setdefault(node, [])
        arrivals.append(t)
        if len(arrivals) > MAX_ARRIVALS:
            del arrivals[: len(arrivals) - MAX_ARRIVALS]

    def live_nodes(self, max_age: float, *, now: Optional[float] = None) -> List[str]:
        t = self._clock() if now is None else float(now)
        return sorted(node for node, seen in self.table.items() if t - seen <= float(max_age))

    def drop_stale(self, max_age: float, *, now: Optional[float] = None) -> List[str]:
        """
        Forget nodes not heard from within max_age seconds; return them.
        """
        t = self._clock() if now is None else float(now)
        stale = sorted(node for node, seen in self.table.items() if t - seen > float(max_age))
        for node in stale:
            self.table.pop(node, None)
            self.last_payload.pop(node, None)
            self._arrivals.pop(node, None)
            self.counters["expired"] += 1
        return stale

    def interval_stats(self, node: str) -> Dict[str, float]:
        """
        Summarise the gaps between consecutive heartbeats of one node.

        Keys: count (datagrams), mean, std, max (seconds). Gap stats are 0.0
        until at least two datagrams have arrived.
        """
        arrivals = np.asarray(self._arrivals.get(node, []), dtype=np.float64)
        stats = {"count": float(arrivals.size), "mean": 0.0, "std": 0.0, "max": 0.0}
        if arrivals.size < 2:
            return stats
        gaps = np.diff(arrivals)
        stats["mean"] = float(np.mean(gaps))
        stats["std"] = float(np.std(gaps))
        stats["max"] = float(np.max(gaps))
        return stats

    def close(self) -> None:
        self.sock.close()
