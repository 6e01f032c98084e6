"""
udpclient.watch

CLI for the heartbeat watchdog: listen on a UDP port, print a line for
every heartbeat, and summarise each node on exit.

Usage:
  python -m udpclient.watch -p 5556 --duration 30 -v
"""

from __future__ import annotations

import argparse
import sys
import time
from typing import Optional, Sequence

from .config import DEFAULT_PORT
from .net.watchdog import NodeWatchdog, open_listener


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="udp_watch",
        description="Heartbeat watchdog: mark nodes live when they send a UDP datagram.",
    )
    p.add_argument("-p", "--port", type=int, default=DEFAULT_PORT, help="UDP port to listen on.")
    p.add_argument("-b", "--bind", default="0.0.0.0", help="Local address to bind.")
    p.add_argument("--max-age", type=float, default=5.0, help="Seconds after which a silent node is dropped.")
    p.add_argument("--duration", type=float, default=None, help="Stop after this many seconds (default: run until Ctrl+C).")
    p.add_argument("-v", "--verbose", action="store_true", help="Print the payload of every heartbeat.")
    return p.parse_args(argv)


def _format_payload(payload: bytes) -> str:
    return payload.decode("ascii", errors="replace").rstrip("\r\n")


def _print_summary(dog: NodeWatchdog) -> None:
    for node in sorted(dog.table):
        st = dog.interval_stats(node)
        print(
            f"{node}: {int(st['count'])} datagrams, "
            f"gap mean {st['mean']:.3f}s std {st['std']:.3f}s max {st['max']:.3f}s"
        )
    print(f"datagrams={dog.counters['datagrams']} nodes={dog.counters['nodes_seen']} expired={dog.counters['expired']}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    try:
        sock = open_listener(args.port, args.bind, timeout=0.2)
    except OSError as exc:
        print(f"bind {args.bind}:{args.port}: {exc.strerror or exc}", file=sys.stderr)
        return 1

    dog = NodeWatchdog(sock)
    deadline = None if args.duration is None else time.time() + float(args.duration)
    print(f"Watching {args.bind}:{sock.getsockname()[1]}")
    sys.stdout.flush()
    try:
        while deadline is None or time.time() < deadline:
            res = dog.recv_once()
            if res is not None:
                node, payload = res
                if args.verbose:
                    print(f"Node {node} sent: {_format_payload(payload)}")
                else:
                    print(f"Node {node} is live.")
                sys.stdout.flush()
            for node in dog.drop_stale(args.max_age):
                print(f"Node {node} expired.")
    except KeyboardInterrupt:
        pass
    finally:
        dog.close()

    _print_summary(dog)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
