import contextlib
import errno
import io
import os
import signal
import socket
import unittest
from unittest import mock

from udpclient.__main__ import USAGE, _install_signal_handlers, main, parse_args
from udpclient.config import SenderConfig
from udpclient.errors import ArgumentError, UsageError
from udpclient.net.transport import PAYLOAD
from udpclient.sender import Sender


def _udp_sock() -> socket.socket:
    try:
        s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    except PermissionError as exc:
        raise unittest.SkipTest(f"UDP socket not permitted: {exc}") from exc
    s.bind(("127.0.0.1", 0))
    s.settimeout(1.0)
    return s


class _RecordingSocket:
    def __init__(self, on_send=None) -> None:
        self.sent = []
        self.closed = False
        self.on_send = on_send

    def sendto(self, data: bytes, addr) -> int:
        self.sent.append(bytes(data))
        if self.on_send is not None:
            self.on_send()
        return len(data)

    def close(self) -> None:
        self.closed = True


def _run(argv):
    out, err = io.StringIO(), io.StringIO()
    with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
        code = main(argv)
    return code, out.getvalue().splitlines(), err.getvalue()


class TestParseArgs(unittest.TestCase):
    def test_flags(self) -> None:
        cfg = parse_args(["-s", "10.0.0.7", "-p", "6000", "-c", "3"])
        self.assertEqual(cfg, SenderConfig(server="10.0.0.7", port=6000, count=3))

    def test_defaults_fill_missing_flags(self) -> None:
        cfg = parse_args(["-c", "2"])
        self.assertEqual((cfg.server, cfg.port, cfg.count), ("127.0.0.1", 5556, 2))
        self.assertEqual(cfg.interval, 1.0)
        self.assertEqual(cfg.retries, 0)

    def test_last_flag_wins(self) -> None:
        self.assertEqual(parse_args(["-p", "1", "-p", "2"]).port, 2)

    def test_empty_is_usage_error(self) -> None:
        with self.assertRaises(UsageError):
            parse_args([])

    def test_unknown_token(self) -> None:
        for argv, token in [(["-x"], "-x"), (["-s", "1.2.3.4", "foo"], "foo"), (["-h"], "-h")]:
            with self.subTest(argv=argv):
                with self.assertRaises(ArgumentError) as ctx:
                    parse_args(argv)
                self.assertEqual(ctx.exception.token, token)
                self.assertEqual(str(ctx.exception), f"Invalid: {token}")

    def test_malformed_values_fail_loudly(self) -> None:
        for argv in [["-p", "abc"], ["-c", "ten"], ["-s"], ["-p", "70000"], ["-c", "-1"]]:
            with self.subTest(argv=argv):
                with self.assertRaises(ArgumentError) as ctx:
                    parse_args(argv)
                self.assertIsNone(ctx.exception.token)

    def test_attached_values_are_unknown_tokens(self) -> None:
        for token in ["-c0", "-c=0", "-s10.0.0.1", "-sc", "--retries=2", "--interval0.5"]:
            with self.subTest(token=token):
                with self.assertRaises(ArgumentError) as ctx:
                    parse_args([token, "-s", "127.0.0.1"])
                self.assertEqual(ctx.exception.token, token)

    def test_first_unknown_token_wins_over_bad_values(self) -> None:
        with self.assertRaises(ArgumentError) as ctx:
            parse_args(["-x", "-c", "abc"])
        self.assertEqual(str(ctx.exception), "Invalid: -x")

    def test_flag_consumes_next_token_verbatim(self) -> None:
        self.assertEqual(parse_args(["-s", "-x"]).server, "-x")
        self.assertEqual(parse_args(["-s", "a=b", "-c", "1"]).server, "a=b")

    def test_extension_options(self) -> None:
        cfg = parse_args(["--interval", "0.1", "--retries", "3", "--retry-backoff", "0.2"])
        self.assertEqual((cfg.interval, cfg.retries, cfg.retry_backoff), (0.1, 3, 0.2))


class TestMain(unittest.TestCase):
    def test_no_arguments(self) -> None:
        code, out, err = _run([])
        self.assertEqual(code, 1)
        self.assertEqual(out, [])
        self.assertIn(USAGE, err)

    def test_invalid_flag(self) -> None:
        code, out, _err = _run(["-x"])
        self.assertEqual(code, 1)
        self.assertEqual(out, ["Invalid: -x"])

    def test_non_numeric_port(self) -> None:
        code, out, err = _run(["-p", "abc"])
        self.assertEqual(code, 1)
        self.assertEqual(out, [])
        self.assertIn("-p", err)

    def test_zero_packets(self) -> None:
        code, out, _err = _run(["-s", "127.0.0.1", "-p", "5556", "-c", "0"])
        self.assertEqual(code, 0)
        self.assertEqual(out, ["Server: 127.0.0.1, port: 5556, packets: 0", "100.00 %"])

    def test_resolution_failure(self) -> None:
        code, out, err = _run(["-s", "999.1.1.1", "-c", "1"])
        self.assertEqual(code, 1)
        self.assertEqual(out, ["Server: 999.1.1.1, port: 5556, packets: 1"])
        self.assertIn("inet_aton() failed", err)

    def test_three_packets_to_loopback(self) -> None:
        rx = _udp_sock()
        try:
            port = rx.getsockname()[1]
            code, out, _err = _run(["-s", "127.0.0.1", "-p", str(port), "-c", "3", "--interval", "0"])
            self.assertEqual(code, 0)
            self.assertEqual(
                out,
                [
                    f"Server: 127.0.0.1, port: {port}, packets: 3",
                    "0.00 %",
                    "33.00 %",
                    "66.00 %",
                    "100.00 %",
                ],
            )
            self.assertEqual([rx.recvfrom(64)[0] for _ in range(3)], [PAYLOAD] * 3)
        finally:
            rx.close()

    def test_attached_value_rejected(self) -> None:
        for argv in [["-c=0"], ["-c0", "-s", "127.0.0.1"]]:
            with self.subTest(argv=argv):
                code, out, _err = _run(argv)
                self.assertEqual(code, 1)
                self.assertEqual(out, [f"Invalid: {argv[0]}"])

    def test_unknown_reported_before_bad_value(self) -> None:
        code, out, err = _run(["-x", "-c", "abc"])
        self.assertEqual(code, 1)
        self.assertEqual(out, ["Invalid: -x"])
        self.assertEqual(err, "")

    def test_dash_address_fails_resolution(self) -> None:
        code, out, err = _run(["-s", "-x", "-c", "1"])
        self.assertEqual(code, 1)
        self.assertEqual(out, ["Server: -x, port: 5556, packets: 1"])
        self.assertIn("inet_aton() failed", err)

    def test_socket_creation_failure(self) -> None:
        err = OSError(errno.EMFILE, os.strerror(errno.EMFILE))
        with mock.patch.object(socket, "socket", side_effect=err):
            code, out, stderr = _run(["-c", "1"])
        self.assertEqual(code, 1)
        self.assertEqual(out, ["Server: 127.0.0.1, port: 5556, packets: 1"])
        self.assertIn(f"socket: {os.strerror(errno.EMFILE)}", stderr)

    @unittest.skipIf(os.name == "nt", "POSIX signal delivery")
    def test_sigint_interrupts_run(self) -> None:
        previous = signal.getsignal(signal.SIGINT)
        seen = []

        def _interrupt() -> None:
            seen.append(signal.getsignal(signal.SIGINT))
            os.kill(os.getpid(), signal.SIGINT)

        sock = _RecordingSocket(on_send=_interrupt)
        with mock.patch("udpclient.sender.open_socket", return_value=sock):
            code, out, err = _run(["-c", "3", "--interval", "30"])

        self.assertEqual(code, 130)
        self.assertEqual(out, ["Server: 127.0.0.1, port: 5556, packets: 3", "0.00 %"])
        self.assertIn("interrupted after 1 packets", err)
        self.assertEqual(sock.sent, [PAYLOAD])
        self.assertTrue(sock.closed)
        self.assertIsNot(seen[0], previous)
        self.assertIs(signal.getsignal(signal.SIGINT), previous)


class TestSignalHandlers(unittest.TestCase):
    def test_install_and_restore(self) -> None:
        before = {sig: signal.getsignal(sig) for sig in (signal.SIGINT, signal.SIGTERM)}
        sender = Sender(SenderConfig(count=0), sock=_RecordingSocket(), out=io.StringIO())
        restore = _install_signal_handlers(sender)
        try:
            for sig in before:
                self.assertIsNot(signal.getsignal(sig), before[sig])
            signal.getsignal(signal.SIGTERM)(signal.SIGTERM, None)
            self.assertTrue(sender.stopped)
        finally:
            restore()
            sender.close()
        for sig, handler in before.items():
            self.assertIs(signal.getsignal(sig), handler)


if __name__ == "__main__":
    unittest.main()
