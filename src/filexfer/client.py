from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from .constants import BUFFER_SIZE
from .net import new_stream_socket, open_connection
from .resources import SessionResources
from .stats import TransferStats

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Client:
    """Sends each file over its own connection, one after another.

    Socket creation, address and connect failures raise ``SetupError`` and end
    the run; anything that goes wrong with a single file is logged and the
    next file is tried.
    """

    resources: SessionResources
    host: str
    port: int
    capacity: int = BUFFER_SIZE

    def run(self, paths: Iterable[str]) -> TransferStats:
        stats = TransferStats()
        view = self.resources.allocate(self.capacity)

        for path in paths:
            try:
                self._send_one(path, view, stats)
            finally:
                self.resources.close_iteration()

        logger.info("File transfer(s) complete.")
        return stats.finish()

    def _send_one(self, path: str, view: memoryview, stats: TransferStats) -> None:
        res = self.resources
        res.conn = new_stream_socket()

        logger.info("Connecting to %s:%d...", self.host, self.port)
        open_connection(res.conn, self.host, self.port)
        logger.info("Success!")

        logger.info('Sending: "%s"...', path)
        try:
            res.file = open(path, "rb", buffering=0)
        except OSError as exc:
            logger.error("Failed to open: %s (%s)", path, exc.strerror or exc)
            stats.record(0, ok=False)
            return

        # one read: anything past the buffer's capacity is dropped
        try:
            nread = res.file.readinto(view) or 0
        except OSError as exc:
            logger.error("Unable to read: %s (%s)", path, exc.strerror or exc)
            stats.record(0, ok=False)
            return

        try:
            nsent = res.conn.send(view[:nread])
        except OSError as exc:
            logger.debug("send failed: %s", exc)
            nsent = -1

        if nsent != nread:
            logger.error("While sending data (%d of %d bytes sent).", max(nsent, 0), nread)
            stats.record(max(nsent, 0), ok=False)
            return

        logger.debug("sent %d bytes", nsent)
        logger.info("Done.")
        stats.record(nsent)
