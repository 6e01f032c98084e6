"""
udpclient.__main__

CLI entry point.

This file is intentionally small:
- parse args
- dispatch to udpclient.sender
It must not contain socket handling or the send loop itself.
"""

from __future__ import annotations

import argparse
import signal
import sys
import threading
from typing import Callable, List, Optional, Sequence

from .config import DEFAULT_COUNT, DEFAULT_INTERVAL, DEFAULT_PORT, DEFAULT_RETRY_BACKOFF, DEFAULT_SERVER, SenderConfig
from .errors import ArgumentError, SenderError, UsageError
from .sender import Sender

USAGE = "Usage:\n udp_client -s {ip_address} -p {udp_port} [-c {packets}]"
EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130
_VALUE_FLAGS = frozenset(["-s", "-p", "-c", "--interval", "--retries", "--retry-backoff"])


class _ArgumentParser(argparse.ArgumentParser):
    """argparse that raises instead of printing its own usage and exiting 2."""

    def error(self, message: str) -> None:  # type: ignore[override]
        raise ArgumentError(message)


def _build_parser() -> argparse.ArgumentParser:
    p = _ArgumentParser(
        prog="udp_client",
        description="Send test123 heartbeats to a UDP watchdog, one per interval.",
        add_help=False,
        allow_abbrev=False,
    )
    p.add_argument("-s", dest="server", default=DEFAULT_SERVER, help="Destination IPv4 address.")
    p.add_argument("-p", dest="port", type=int, default=DEFAULT_PORT, help="Destination UDP port.")
    p.add_argument("-c", dest="count", type=int, default=DEFAULT_COUNT, help="Number of packets to send.")
    p.add_argument("--interval", type=float, default=DEFAULT_INTERVAL, help="Seconds between packets.")
    p.add_argument("--retries", type=int, default=0, help="Extra attempts per packet when a send fails.")
    p.add_argument(
        "--retry-backoff",
        type=float,
        default=DEFAULT_RETRY_BACKOFF,
        help="First retry delay in seconds; doubles on every further attempt.",
    )
    return p


def _scan_args(args: Sequence[str]) -> List[str]:
    """
    Walk the tokens left to right, pairing each flag with the token after it.

    Only the exact flag spellings count; attached forms such as "-c0" or
    "-c=0" are unknown tokens. The value is whatever follows the flag, even
    if it starts with "-". Returns "flag=value" tokens for argparse, which
    then only converts and range-checks.
    """
    pairs: List[str] = []
    i = 0
    while i < len(args):
        token = args[i]
        if token not in _VALUE_FLAGS:
            raise ArgumentError(f"Invalid: {token}", token=token)
        if i + 1 >= len(args):
            raise ArgumentError(f"option {token} requires a value")
        pairs.append(f"{token}={args[i + 1]}")
        i += 2
    return pairs


def parse_args(argv: Sequence[str]) -> SenderConfig:
    """
    Turn the argument list into a SenderConfig.

    Raises UsageError for an empty list and ArgumentError for anything
    unknown or malformed. The first unknown token is reported as-is on the
    error, before any value is converted.
    """
    args = list(argv)
    if not args:
        raise UsageError(USAGE)

    ns = _build_parser().parse_args(_scan_args(args))

    try:
        return SenderConfig(
            server=ns.server,
            port=ns.port,
            count=ns.count,
            interval=ns.interval,
            retries=ns.retries,
            retry_backoff=ns.retry_backoff,
        )
    except ValueError as exc:
        raise ArgumentError(str(exc)) from exc


def _install_signal_handlers(sender: Sender) -> Callable[[], None]:
    if threading.current_thread() is not threading.main_thread():
        return lambda: None

    def _handler(signum, frame) -> None:
        sender.stop()

    previous = {sig: signal.signal(sig, _handler) for sig in (signal.SIGINT, signal.SIGTERM)}

    def _restore() -> None:
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    return _restore


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)

    try:
        config = parse_args(args)
    except UsageError as exc:
        print(exc, file=sys.stderr)
        return EXIT_FAILURE
    except ArgumentError as exc:
        if exc.token is not None:
            print(exc)
        else:
            print(f"udp_client: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    print(config.summary())
    sys.stdout.flush()

    try:
        sender = Sender(config)
    except SenderError as exc:
        print(exc, file=sys.stderr)
        return EXIT_FAILURE

    restore = _install_signal_handlers(sender)
    try:
        sent = sender.run()
    except SenderError as exc:
        print(exc, file=sys.stderr)
        return EXIT_FAILURE
    finally:
        restore()

    if sender.interrupted:
        print(f"interrupted after {sent} packets", file=sys.stderr)
        return EXIT_INTERRUPTED
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
