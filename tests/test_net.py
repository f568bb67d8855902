from __future__ import annotations

import socket
import struct

import pytest

from filexfer.errors import SetupError
from filexfer.net import new_stream_socket, open_connection, open_listener, recv_until_closed, validate_ipv4


def _unused_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def test_validate_ipv4_accepts_dotted_quad():
    assert validate_ipv4("127.0.0.1") == "127.0.0.1"


@pytest.mark.parametrize("host", ["999.1.1.1", "localhost", "", "::1"])
def test_validate_ipv4_rejects(host):
    with pytest.raises(SetupError):
        validate_ipv4(host)


def test_recv_until_closed_returns_on_peer_close():
    a, b = socket.socketpair()
    try:
        a.sendall(b"hello")
        a.close()
        view = memoryview(bytearray(16))
        n = recv_until_closed(b, view)
        assert n == 5
        assert bytes(view[:n]) == b"hello"
    finally:
        b.close()


def test_recv_until_closed_stops_at_capacity():
    a, b = socket.socketpair()
    try:
        a.sendall(b"0123456789")
        view = memoryview(bytearray(4))
        assert recv_until_closed(b, view) == 4
        assert bytes(view) == b"0123"
    finally:
        a.close()
        b.close()


def test_open_listener_bind_conflict():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as busy:
        busy.bind(("127.0.0.1", 0))
        busy.listen(1)
        port = busy.getsockname()[1]
        with pytest.raises(SetupError, match="bind"):
            open_listener("127.0.0.1", port)


def test_open_connection_refused():
    sock = new_stream_socket()
    try:
        with pytest.raises(SetupError, match="connecting"):
            open_connection(sock, "127.0.0.1", _unused_port())
    finally:
        sock.close()


def _reset_after(payload: bytes):
    """Loopback pair where the client sends ``payload`` then aborts with RST."""
    listener = open_listener("127.0.0.1", 0)
    client = socket.create_connection(listener.getsockname())
    server_side, _ = listener.accept()
    listener.close()
    if payload:
        client.sendall(payload)
    client.setsockopt(socket.SOL_SOCKET, socket.SO_LINGER, struct.pack("ii", 1, 0))
    client.close()
    return server_side


def test_recv_until_closed_keeps_data_before_reset():
    conn = _reset_after(b"partial payload")
    try:
        view = memoryview(bytearray(1024))
        n = recv_until_closed(conn, view)
        assert n == 15
        assert bytes(view[:n]) == b"partial payload"
    finally:
        conn.close()


def test_recv_until_closed_reset_without_data_raises():
    conn = _reset_after(b"")
    try:
        with pytest.raises(ConnectionResetError):
            recv_until_closed(conn, memoryview(bytearray(1024)))
    finally:
        conn.close()
