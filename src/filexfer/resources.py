from __future__ import annotations

import logging
import signal
import socket
from contextlib import contextmanager
from dataclasses import dataclass
from typing import BinaryIO, Iterator

from .constants import BUFFER_SIZE
from .errors import Interrupted, SetupError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SessionResources:
    """Everything a client or server process holds open.

    Each slot is ``None`` when not held. ``release`` may be called any number
    of times, from any exit path.
    """

    buffer: bytearray | None = None
    listener: socket.socket | None = None
    conn: socket.socket | None = None
    file: BinaryIO | None = None

    def allocate(self, capacity: int = BUFFER_SIZE) -> memoryview:
        if self.buffer is None:
            try:
                self.buffer = bytearray(capacity)
            except MemoryError as exc:
                raise SetupError("Failed to allocate memory.") from exc
        return memoryview(self.buffer)

    @property
    def capacity(self) -> int:
        return 0 if self.buffer is None else len(self.buffer)

    def close_file(self) -> None:
        if self.file is not None:
            f, self.file = self.file, None
            f.close()

    def close_conn(self) -> None:
        if self.conn is not None:
            conn, self.conn = self.conn, None
            conn.close()

    def close_iteration(self) -> None:
        self.close_file()
        self.close_conn()

    def release(self) -> None:
        self.buffer = None
        self.close_iteration()
        if self.listener is not None:
            listener, self.listener = self.listener, None
            listener.close()

    def __enter__(self) -> "SessionResources":
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()


def _raise_interrupted(signum, frame):
    raise Interrupted(signum)


def interrupt_signals() -> tuple[int, ...]:
    if hasattr(signal, "SIGTERM"):
        return (signal.SIGINT, signal.SIGTERM)
    return (signal.SIGINT,)


@contextmanager
def interrupt_guard(signums: tuple[int, ...] | None = None) -> Iterator[None]:
    """Turn operator interrupts into ``Interrupted`` raised in the main thread.

    The handler touches no resources: the exception unwinds whatever blocking
    call was in progress and the caller's ``finally`` blocks do the cleanup.
    Must be entered from the main thread.
    """
    previous = {}
    for signum in signums or interrupt_signals():
        previous[signum] = signal.signal(signum, _raise_interrupted)
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)
