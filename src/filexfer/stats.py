from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass(slots=True)
class TransferStats:
    files_ok: int = 0
    files_failed: int = 0
    bytes_transferred: int = 0
    start_ts: float = field(default_factory=time.monotonic)
    end_ts: float | None = None

    def record(self, nbytes: int, ok: bool = True) -> None:
        if ok:
            self.files_ok += 1
        else:
            self.files_failed += 1
        self.bytes_transferred += nbytes

    def finish(self) -> "TransferStats":
        self.end_ts = time.monotonic()
        return self

    @property
    def duration_s(self) -> float:
        if self.end_ts is None:
            return 0.0
        return max(0.0, self.end_ts - self.start_ts)

    @property
    def throughput_mbps(self) -> float:
        if self.duration_s <= 0:
            return 0.0
        return (self.bytes_transferred * 8 / 1_000_000) / self.duration_s

    def as_dict(self) -> dict:
        return {
            "files_ok": self.files_ok,
            "files_failed": self.files_failed,
            "bytes": self.bytes_transferred,
            "seconds": self.duration_s,
            "mbps": self.throughput_mbps,
        }
