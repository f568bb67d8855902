from __future__ import annotations

import signal


class TransferError(Exception):
    pass


class SetupError(TransferError):
    """Unrecoverable failure before or around the transfer loop."""


class Interrupted(TransferError):
    def __init__(self, signum: int):
        self.signum = signum
        try:
            name = signal.Signals(signum).name
        except ValueError:
            name = f"signal {signum}"
        super().__init__(f"interrupted by {name}")
