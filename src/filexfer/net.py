from __future__ import annotations

import socket

from .constants import LISTEN_BACKLOG
from .errors import SetupError


def validate_ipv4(host: str) -> str:
    """Accept only a dotted IPv4 literal; names are never resolved."""
    try:
        socket.inet_pton(socket.AF_INET, host)
    except (OSError, ValueError) as exc:
        raise SetupError("Invalid IP address.") from exc
    return host


def open_connection(sock: socket.socket, host: str, port: int) -> None:
    validate_ipv4(host)
    try:
        sock.connect((host, port))
    except OSError as exc:
        raise SetupError(f"connecting to {host}:{port}") from exc


def new_stream_socket() -> socket.socket:
    try:
        return socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    except OSError as exc:
        raise SetupError("Failed to create socket.") from exc


def open_listener(host: str, port: int, backlog: int = LISTEN_BACKLOG) -> socket.socket:
    sock = new_stream_socket()
    try:
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        except OSError as exc:
            raise SetupError("setsockopt failed.") from exc
        try:
            sock.bind((host, port))
        except OSError as exc:
            raise SetupError("Failed to bind socket.") from exc
        try:
            sock.listen(backlog)
        except OSError as exc:
            raise SetupError("listen(): Failed.") from exc
    except SetupError:
        sock.close()
        raise
    return sock


def recv_until_closed(conn: socket.socket, view: memoryview) -> int:
    """Fill ``view`` until it is full or the peer closes; return the count.

    MSG_WAITALL may still hand back a short read when a signal arrives, so
    keep asking until EOF or no room is left. A reset after some bytes have
    arrived ends the stream like a close; a reset before any data is an error.
    """
    total = 0
    capacity = len(view)
    while total < capacity:
        try:
            n = conn.recv_into(view[total:], capacity - total, socket.MSG_WAITALL)
        except OSError:
            if total == 0:
                raise
            break
        if n == 0:
            break
        total += n
    return total
