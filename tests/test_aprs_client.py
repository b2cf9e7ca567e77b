from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from aprs_etl.data.aprs_client import (
    CLOSED,
    ERRORED,
    IDLE,
    APRSISClient,
    FeedConnectionError,
    FeedConnectionTimeout,
    FeedIdleTimeout,
    connect_within,
)


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class FakeSocket:
    """Replays scripted recv results; a float entry means 'no data for that many seconds'."""

    def __init__(self, clock: FakeClock, script: list) -> None:
        self._clock = clock
        self._script = list(script)
        self._timeout: float | None = None
        self.sent: list[bytes] = []
        self.closed = False

    def sendall(self, data: bytes) -> None:
        self.sent.append(data)

    def settimeout(self, value: float) -> None:
        self._timeout = value

    def recv(self, size: int) -> bytes:
        if not self._script:
            self._clock.now += self._timeout
            raise TimeoutError("timed out")
        item = self._script.pop(0)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, float):
            waited = min(item, self._timeout)
            self._clock.now += waited
            if waited < item:
                self._script.insert(0, item - waited)
            raise TimeoutError("timed out")
        self._clock.now += 1
        return item

    def close(self) -> None:
        self.closed = True


def _client(sock: FakeSocket | None, clock: FakeClock, **kwargs) -> APRSISClient:
    factory = MagicMock(return_value=sock)
    params = {
        "host": "rotate.aprs.net",
        "port": 14580,
        "callsign": "N0CALL",
        "passcode": "-1",
        "filter_expression": "r/-41.29/174.78/50",
        "collection_window_seconds": 60,
        "idle_timeout_seconds": 30,
        "socket_factory": factory,
        "clock": clock,
    }
    params.update(kwargs)
    return APRSISClient(**params)


def test_login_line_format() -> None:
    client = _client(None, FakeClock())

    assert client.login_line() == (
        "user N0CALL pass -1 vers aprs-etl 1.0.0 filter r/-41.29/174.78/50\r\n"
    )


def test_login_line_without_filter() -> None:
    client = _client(None, FakeClock(), filter_expression=None)

    assert client.login_line() == "user N0CALL pass -1 vers aprs-etl 1.0.0\r\n"


def test_collects_lines_until_window_expires() -> None:
    clock = FakeClock()
    sock = FakeSocket(
        clock,
        [
            b"# aprsc 2.1.14 logresp N0CALL unverified\r\n",
            b"CALL-1>APRS:!4903.50N/07201.75W-one\r\nCALL-2>AP",
            b"RS:>status\r\n\r\n",
            b"# keepalive\r\n",
            20.0,
            b"CALL-3>APRS:=4903.50S/07201.75E-\r\n",
        ],
    )
    client = _client(sock, clock, idle_timeout_seconds=45)

    lines = client.collect_lines()

    assert lines == [
        "CALL-1>APRS:!4903.50N/07201.75W-one",
        "CALL-2>APRS:>status",
        "CALL-3>APRS:=4903.50S/07201.75E-",
    ]
    assert sock.sent == [client.login_line().encode("utf-8")]
    assert sock.closed
    assert client.state == CLOSED


def test_partial_trailing_line_is_dropped() -> None:
    clock = FakeClock()
    sock = FakeSocket(clock, [b"CALL-1>APRS:!4903.50N/07201.75W-\nCALL-2>APRS:!49", b""])
    client = _client(sock, clock)

    assert client.collect_lines() == ["CALL-1>APRS:!4903.50N/07201.75W-"]


def test_server_close_ends_collection() -> None:
    clock = FakeClock()
    sock = FakeSocket(clock, [b"CALL-1>APRS:>hello\n", b""])
    client = _client(sock, clock)

    assert client.collect_lines() == ["CALL-1>APRS:>hello"]
    assert client.state == CLOSED


def test_idle_timeout_discards_batch() -> None:
    clock = FakeClock()
    sock = FakeSocket(clock, [b"CALL-1>APRS:>hello\n", 45.0])
    client = _client(sock, clock)

    with pytest.raises(FeedIdleTimeout):
        client.collect_lines()

    assert client.state == ERRORED
    assert sock.closed


def test_connect_failure_raises_connection_error() -> None:
    clock = FakeClock()
    client = _client(None, clock, socket_factory=MagicMock(side_effect=ConnectionRefusedError("refused")))

    assert client.state == IDLE
    with pytest.raises(FeedConnectionError):
        client.collect_lines()
    assert client.state == ERRORED


def test_connect_timeout() -> None:
    factory = MagicMock(side_effect=TimeoutError("timed out"))
    client = _client(None, FakeClock(), socket_factory=factory, connect_timeout_seconds=30)

    with pytest.raises(FeedConnectionTimeout):
        client.collect_lines()

    factory.assert_called_once_with(("rotate.aprs.net", 14580), timeout=30)


def test_socket_error_mid_collection() -> None:
    clock = FakeClock()
    sock = FakeSocket(clock, [b"CALL-1>APRS:>hello\n", ConnectionResetError("reset")])
    client = _client(sock, clock)

    with pytest.raises(FeedConnectionError):
        client.collect_lines()

    assert client.state == ERRORED
    assert sock.closed


def test_login_send_failure() -> None:
    clock = FakeClock()
    sock = FakeSocket(clock, [])
    sock.sendall = MagicMock(side_effect=BrokenPipeError("pipe"))
    client = _client(sock, clock)

    with pytest.raises(FeedConnectionError):
        client.collect_lines()


_TWO_ADDRESSES = [
    (2, 1, 6, "", ("192.0.2.1", 14580)),
    (2, 1, 6, "", ("192.0.2.2", 14580)),
]


def test_connect_within_shares_timeout_across_addresses() -> None:
    clock = FakeClock()
    first = MagicMock()

    def slow_connect(sockaddr):
        clock.now += 30
        raise TimeoutError("timed out")

    first.connect.side_effect = slow_connect

    with patch("aprs_etl.data.aprs_client.socket.getaddrinfo", return_value=_TWO_ADDRESSES), patch(
        "aprs_etl.data.aprs_client.socket.socket", return_value=first
    ) as socket_cls:
        with pytest.raises(TimeoutError):
            connect_within(("rotate.aprs.net", 14580), timeout=30, clock=clock)

    socket_cls.assert_called_once()
    first.settimeout.assert_called_once_with(30)
    first.close.assert_called_once()


def test_connect_within_falls_back_to_next_address() -> None:
    clock = FakeClock()
    refused = MagicMock()
    refused.connect.side_effect = ConnectionRefusedError("refused")
    accepted = MagicMock()

    with patch("aprs_etl.data.aprs_client.socket.getaddrinfo", return_value=_TWO_ADDRESSES), patch(
        "aprs_etl.data.aprs_client.socket.socket", side_effect=[refused, accepted]
    ):
        sock = connect_within(("rotate.aprs.net", 14580), timeout=30, clock=clock)

    assert sock is accepted
    accepted.connect.assert_called_once_with(("192.0.2.2", 14580))
    refused.close.assert_called_once()


def test_connect_within_reraises_last_refusal() -> None:
    clock = FakeClock()
    refused = MagicMock()
    refused.connect.side_effect = ConnectionRefusedError("refused")

    with patch("aprs_etl.data.aprs_client.socket.getaddrinfo", return_value=_TWO_ADDRESSES[:1]), patch(
        "aprs_etl.data.aprs_client.socket.socket", return_value=refused
    ):
        with pytest.raises(ConnectionRefusedError):
            connect_within(("rotate.aprs.net", 14580), timeout=30, clock=clock)
