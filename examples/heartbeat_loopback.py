#!/usr/bin/env python3
"""
Minimal heartbeat demo: a client sends a few test123 datagrams to a
watchdog on localhost, which reports the node as live.
"""

from __future__ import annotations

import io
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from udpclient import NodeWatchdog, Sender, SenderConfig
from udpclient.net.watchdog import open_listener


def main() -> None:
    dog = NodeWatchdog(open_listener(0, "127.0.0.1", timeout=0.5))
    host, port = dog.sock.getsockname()

    progress = io.StringIO()
    sender = Sender(SenderConfig(server=host, port=port, count=5, interval=0.1), out=progress)
    sender.run()

    while dog.recv_once() is not None:
        pass
    dog.close()

    print("=== heartbeat_loopback ===")
    print(f"client progress : {' | '.join(progress.getvalue().splitlines())}")
    print(f"live nodes      : {dog.live_nodes(max_age=5.0)}")
    for node in dog.live_nodes(max_age=5.0):
        st = dog.interval_stats(node)
        print(f"{node}: {int(st['count'])} heartbeats, mean gap {st['mean']:.3f}s")


if __name__ == "__main__":
    main()
