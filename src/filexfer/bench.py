from __future__ import annotations

import os
import tempfile
import threading
from dataclasses import dataclass

from .client import Client
from .constants import BUFFER_SIZE
from .resources import SessionResources
from .server import Server, output_filename


@dataclass(frozen=True, slots=True)
class BenchmarkResult:
    files: int
    bytes_transferred: int
    duration_s: float
    throughput_mbps: float


def run_benchmark(
    *,
    count: int = 4,
    size_bytes: int = 1_000_000,
    capacity: int = BUFFER_SIZE,
) -> BenchmarkResult:
    """Loopback run: server thread plus client loop, outputs checked afterwards."""
    if size_bytes > capacity:
        raise ValueError(f"size_bytes {size_bytes} exceeds buffer capacity {capacity}")

    payload = os.urandom(size_bytes)

    with tempfile.TemporaryDirectory() as workdir:
        out_dir = os.path.join(workdir, "out")
        os.mkdir(out_dir)
        paths = []
        for i in range(count):
            path = os.path.join(workdir, f"in-{i}.bin")
            with open(path, "wb") as f:
                f.write(payload)
            paths.append(path)

        server_res = SessionResources()
        server = Server(server_res, port=0, output_dir=out_dir, capacity=capacity)
        host, port = server.bind()

        def server_runner():
            with server_res:
                server.serve(limit=count)

        t = threading.Thread(target=server_runner, daemon=True)
        t.start()

        with SessionResources() as client_res:
            stats = Client(client_res, host, port, capacity=capacity).run(paths)

        t.join(timeout=30.0)
        if t.is_alive():
            raise RuntimeError("server did not finish within 30s")

        for i in range(1, count + 1):
            with open(os.path.join(out_dir, output_filename(i)), "rb") as f:
                if f.read() != payload:
                    raise RuntimeError(f"content mismatch in {output_filename(i)}")

    duration_s = max(0.001, stats.duration_s)
    total = stats.bytes_transferred
    return BenchmarkResult(
        files=stats.files_ok,
        bytes_transferred=total,
        duration_s=duration_s,
        throughput_mbps=(total * 8 / 1_000_000) / duration_s,
    )
