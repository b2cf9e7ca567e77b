"""APRS-IS TCP feed client.

One call to ``collect_lines`` is one connection: connect, send the login
line, read lines until the collection window expires, then close.
"""

from __future__ import annotations

import logging
import socket
import time
from typing import Any, Callable

logger = logging.getLogger(__name__)

CLIENT_NAME = "aprs-etl"
CLIENT_VERSION = "1.0.0"

IDLE = "IDLE"
CONNECTING = "CONNECTING"
AUTHENTICATED = "AUTHENTICATED"
COLLECTING = "COLLECTING"
CLOSING = "CLOSING"
CLOSED = "CLOSED"
ERRORED = "ERRORED"

RECV_BUFFER_BYTES = 4096


class FeedError(Exception):
    """Base class for APRS-IS connection failures."""


class FeedConnectionError(FeedError):
    """Raised when the socket cannot be opened or fails mid-session."""


class FeedConnectionTimeout(FeedError):
    """Raised when the server does not accept the connection in time."""


class FeedIdleTimeout(FeedError):
    """Raised when an open session delivers no data for too long."""


def connect_within(
    address: tuple[str, int],
    timeout: float,
    clock: Callable[[], float] = time.monotonic,
) -> socket.socket:
    """Open a TCP connection, trying each resolved address in turn.

    Unlike ``socket.create_connection``, ``timeout`` bounds all attempts
    together rather than each address separately.
    """
    host, port = address
    deadline = clock() + timeout
    last_error: OSError | None = None
    addresses = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    for family, socktype, proto, _, sockaddr in addresses:
        remaining = deadline - clock()
        if remaining <= 0:
            break
        sock = socket.socket(family, socktype, proto)
        try:
            sock.settimeout(remaining)
            sock.connect(sockaddr)
        except OSError as exc:
            sock.close()
            last_error = exc
            continue
        return sock

    if deadline - clock() <= 0:
        raise TimeoutError(f"Connecting to {host}:{port} took longer than {timeout}s")
    if last_error is not None:
        raise last_error
    raise OSError(f"No addresses found for {host}:{port}")


class APRSISClient:
    """Collects raw APRS-IS lines over a bounded window."""

    def __init__(
        self,
        host: str,
        port: int,
        callsign: str,
        passcode: str = "-1",
        filter_expression: str | None = None,
        client_name: str = CLIENT_NAME,
        client_version: str = CLIENT_VERSION,
        collection_window_seconds: float = 300,
        connect_timeout_seconds: float = 30,
        idle_timeout_seconds: float = 30,
        socket_factory: Callable[..., Any] = connect_within,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._host = host
        self._port = port
        self._callsign = callsign
        self._passcode = passcode
        self._filter = filter_expression
        self._client_name = client_name
        self._client_version = client_version
        self._window = collection_window_seconds
        self._connect_timeout = connect_timeout_seconds
        self._idle_timeout = idle_timeout_seconds
        self._socket_factory = socket_factory
        self._clock = clock
        self._state = IDLE

    @property
    def state(self) -> str:
        return self._state

    def login_line(self) -> str:
        """Build the APRS-IS login command, CRLF terminated."""
        line = (
            f"user {self._callsign} pass {self._passcode} "
            f"vers {self._client_name} {self._client_version}"
        )
        if self._filter:
            line += f" filter {self._filter}"
        return line + "\r\n"

    def collect_lines(self) -> list[str]:
        """Run one session and return every data line received.

        Raises a FeedError subclass on failure; lines collected before the
        failure are discarded.
        """
        self._state = CONNECTING
        sock = self._open()
        try:
            self._login(sock)
            lines = self._collect(sock)
        except FeedError:
            self._state = ERRORED
            _close_quietly(sock)
            raise

        self._state = CLOSING
        sock.close()
        self._state = CLOSED
        logger.info("aprs_session_closed host=%s lines=%d", self._host, len(lines))
        return lines

    def _open(self) -> Any:
        logger.info("aprs_connecting host=%s port=%s", self._host, self._port)
        try:
            return self._socket_factory((self._host, self._port), timeout=self._connect_timeout)
        except TimeoutError as exc:
            self._state = ERRORED
            raise FeedConnectionTimeout(
                f"Timed out connecting to {self._host}:{self._port}"
            ) from exc
        except OSError as exc:
            self._state = ERRORED
            raise FeedConnectionError(
                f"Could not connect to {self._host}:{self._port}: {exc}"
            ) from exc

    def _login(self, sock: Any) -> None:
        try:
            sock.sendall(self.login_line().encode("utf-8"))
        except OSError as exc:
            raise FeedConnectionError(f"Login send failed: {exc}") from exc
        self._state = AUTHENTICATED
        logger.debug("aprs_login_sent callsign=%s filter=%s", self._callsign, self._filter)

    def _collect(self, sock: Any) -> list[str]:
        self._state = COLLECTING
        lines: list[str] = []
        buffer = b""
        deadline = self._clock() + self._window
        last_data_at = self._clock()

        while True:
            now = self._clock()
            remaining = deadline - now
            if remaining <= 0:
                break
            idle_remaining = self._idle_timeout - (now - last_data_at)
            if idle_remaining <= 0:
                raise FeedIdleTimeout(f"No data from {self._host} for {self._idle_timeout}s")

            sock.settimeout(min(remaining, idle_remaining))
            try:
                chunk = sock.recv(RECV_BUFFER_BYTES)
            except TimeoutError:
                continue
            except OSError as exc:
                raise FeedConnectionError(f"Socket error while collecting: {exc}") from exc

            if not chunk:
                logger.info("aprs_server_closed_stream host=%s", self._host)
                break

            last_data_at = self._clock()
            buffer += chunk
            *complete, buffer = buffer.split(b"\n")
            for raw in complete:
                line = raw.decode("utf-8", errors="replace").strip()
                if line and not line.startswith("#"):
                    lines.append(line)

        return lines


def _close_quietly(sock: Any) -> None:
    try:
        sock.close()
    except OSError as exc:
        logger.debug("aprs_close_failed error=%s", exc)


__all__ = [
    "IDLE",
    "CONNECTING",
    "AUTHENTICATED",
    "COLLECTING",
    "CLOSING",
    "CLOSED",
    "ERRORED",
    "FeedError",
    "FeedConnectionError",
    "FeedConnectionTimeout",
    "FeedIdleTimeout",
    "APRSISClient",
    "connect_within",
]
