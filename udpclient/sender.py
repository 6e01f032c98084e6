"""
udpclient.sender

The fixed-count send loop.

One datagram per interval, a progress line after each send, and a final
"100.00 %" once the counter reaches the configured count. The first
transmission error ends the run unless a RetryPolicy allows more attempts.
"""

from __future__ import annotations

import select
import socket
import sys
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, TextIO

from .config import DEFAULT_RETRY_BACKOFF, SenderConfig
from .errors import TransmissionError
from .net.transport import PAYLOAD, Destination, open_socket, resolve_destination, send_datagram

__all__ = [
    "RetryPolicy",
    "Sender",
    "progress_percent",
    "format_progress",
]

COMPLETE_LINE = "100.00 %"


def progress_percent(index: int, count: int) -> float:
    """
    Percentage shown after the send at position `index` (0-based).

    Integer division is kept on purpose: for count=3 the lines read
    0.00, 33.00, 66.00, never the fractional values.
    """
    if count <= 0:
        return 100.0
    return float((int(index) * 100) // int(count))


def format_progress(percent: float) -> str:
    return f"{percent:.2f} %"


@dataclass(frozen=True)
class RetryPolicy:
    """
    Extra send attempts with exponential backoff.

    retries=0 means a failed send is fatal straight away.
    """

    retries: int = 0
    backoff: float = DEFAULT_RETRY_BACKOFF
    factor: float = 2.0

    def delays(self) -> Iterator[float]:
        delay = float(self.backoff)
        for _ in range(int(self.retries)):
            yield delay
            delay *= float(self.factor)


class Sender:
    """
    Owns the socket and drives the RUNNING -> DONE loop.

    Usage
    -----
    sender = Sender(SenderConfig(server="10.0.0.5", count=3))
    sender.run()
    """

    def __init__(
        self,
        config: SenderConfig,
        *,
        sock: Optional[socket.socket] = None,
        out: Optional[TextIO] = None,
        retry: Optional[RetryPolicy] = None,
        backoff_sleep: Optional[Callable[[float], object]] = None,
    ) -> None:
        self.config = config
        self.retry = retry or RetryPolicy(retries=config.retries, backoff=config.retry_backoff)
        self.out = out if out is not None else sys.stdout
        self._backoff_sleep = backoff_sleep if backoff_sleep is not None else self._sleep
        self._stop_requested = False
        self.dest: Destination = resolve_destination(config.server, config.port)
        self.sock = sock if sock is not None else open_socket()
        # stop() writes a byte to _wake_w to wake the select() in _sleep.
        try:
            self._wake_r, self._wake_w = socket.socketpair()
        except OSError:
            self.sock.close()
            raise
        self._wake_r.setblocking(False)
        self._wake_w.setblocking(False)
        self.interrupted = False
        self.counters = {
            "sent_datagrams": 0,
            "sent_bytes": 0,
            "send_errors": 0,
            "retries": 0,
        }

    def stop(self) -> None:
        """
        Wake the interval or backoff sleep and end the loop.

        Only sets a flag and writes to the wake socket, so it may run inside
        a signal handler that interrupted the loop's own thread.
        """
        self._stop_requested = True
        if self._wake_w.fileno() < 0:
            return
        try:
            self._wake_w.send(b"\0")
        except BlockingIOError:
            pass  # buffer full: a wakeup is already pending

    @property
    def stopped(self) -> bool:
        return self._stop_requested

    def _sleep(self, delay: float) -> bool:
        """
        Sleep up to `delay` seconds; return True when stop() was requested.
        """
        if self._stop_requested:
            return True
        if delay > 0:
            select.select([self._wake_r], [], [], float(delay))
        return self._stop_requested

    def _emit(self, line: str) -> None:
        print(line, file=self.out)
        self.out.flush()

    def _send_with_retry(self) -> Optional[int]:
        """
        Send the payload, retrying per the policy.

        Returns the byte count, or None when stop() arrived while a retry
        was pending.
        """
        delays = self.retry.delays()
        while True:
            try:
                return send_datagram(self.sock, self.dest, PAYLOAD)
            except TransmissionError:
                self.counters["send_errors"] += 1
                delay = next(delays, None)
                if delay is None:
                    raise
                if self.stopped:
                    return None
                self.counters["retries"] += 1
                self._backoff_sleep(delay)
                if self.stopped:
                    return None

    def close(self) -> None:
        self.sock.close()
        self._wake_r.close()
        self._wake_w.close()

    def run(self) -> int:
        """
        Send `count` datagrams and return how many went out.

        The sockets are closed on every exit path. When stop() cuts the run
        short, `interrupted` is set and the completion line is not printed.
        """
        count = int(self.config.count)
        try:
            for index in range(count):
                if self.stopped:
                    break
                nbytes = self._send_with_retry()
                if nbytes is None:
                    break
                self.counters["sent_datagrams"] += 1
                self.counters["sent_bytes"] += int(nbytes)
                self._emit(format_progress(progress_percent(index, count)))
                if self._sleep(float(self.config.interval)):
                    break
            sent = self.counters["sent_datagrams"]
            if sent < count:
                self.interrupted = True
                return sent
            self._emit(COMPLETE_LINE)
            return sent
        finally:
            self.close()
