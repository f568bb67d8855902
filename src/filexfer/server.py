from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from .constants import (
    BUFFER_SIZE,
    DEFAULT_LISTEN_HOST,
    LISTEN_BACKLOG,
    OUTPUT_MODE,
    OUTPUT_PREFIX,
    OUTPUT_SUFFIX,
)
from .net import open_listener, recv_until_closed
from .resources import SessionResources
from .stats import TransferStats

logger = logging.getLogger(__name__)


def output_filename(counter: int) -> str:
    return f"{OUTPUT_PREFIX}{counter:02d}{OUTPUT_SUFFIX}"


def _owner_only(path: str, flags: int) -> int:
    return os.open(path, flags, OUTPUT_MODE)


@dataclass(slots=True)
class Server:
    """Accepts one connection at a time and saves each payload to a new file.

    Names come from ``counter``, which only advances once a file has been
    created: a failed receive or a failed create reuses the same name for the
    next connection.
    """

    resources: SessionResources
    host: str = DEFAULT_LISTEN_HOST
    port: int = 0
    output_dir: str = "."
    capacity: int = BUFFER_SIZE
    backlog: int = LISTEN_BACKLOG
    counter: int = 1

    def bind(self) -> tuple[str, int]:
        self.resources.allocate(self.capacity)
        if self.resources.listener is None:
            self.resources.listener = open_listener(self.host, self.port, self.backlog)
        return self.address

    @property
    def address(self) -> tuple[str, int]:
        if self.resources.listener is None:
            return (self.host, self.port)
        host, port = self.resources.listener.getsockname()[:2]
        return (host, port)

    def serve(self, limit: int | None = None) -> TransferStats:
        """Run the accept loop; forever unless ``limit`` connections were handled."""
        if self.resources.listener is None:
            self.bind()
        view = self.resources.allocate(self.capacity)
        stats = TransferStats()
        port = self.address[1]
        handled = 0

        logger.info("Awaiting TCP connections over port %d...", port)
        while limit is None or handled < limit:
            try:
                self.resources.conn, addr = self.resources.listener.accept()
            except OSError as exc:
                logger.error("While attempting to accept a connection (%s).", exc)
                continue

            handled += 1
            try:
                self._receive_one(view, stats, addr)
            finally:
                self.resources.close_iteration()
            logger.info("Awaiting TCP connections over port %d...", port)

        return stats.finish()

    def _receive_one(self, view: memoryview, stats: TransferStats, addr) -> None:
        res = self.resources
        logger.info("Connection accepted from %s:%d!", addr[0], addr[1])
        logger.info("Receiving file...")

        try:
            nrecv = recv_until_closed(res.conn, view)
        except OSError as exc:
            logger.error("Reading from socket (%s).", exc)
            stats.record(0, ok=False)
            return
        logger.info("Connection closed.")
        logger.debug("received %d bytes", nrecv)

        name = output_filename(self.counter)
        path = os.path.join(self.output_dir, name)
        logger.info('Saving file: "%s"...', name)
        try:
            res.file = open(path, "wb", buffering=0, opener=_owner_only)
        except OSError as exc:
            logger.error("Unable to create: %s (%s)", name, exc.strerror or exc)
            stats.record(0, ok=False)
            return

        try:
            nwritten = res.file.write(view[:nrecv])
            res.close_file()
        except OSError as exc:
            logger.debug("write failed: %s", exc)
            nwritten = -1

        if nwritten != nrecv:
            logger.error("Unable to write: %s", name)
            stats.record(max(nwritten, 0), ok=False)
        else:
            logger.info("Done.")
            stats.record(nrecv)

        self.counter += 1
