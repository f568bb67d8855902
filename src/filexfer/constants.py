from __future__ import annotations

BUFFER_SIZE = 10 * 1024 * 1024  # 10 MiB, also the largest transferable file

MIN_PORT = 1024
MAX_PORT = 65535

LISTEN_BACKLOG = 32
DEFAULT_LISTEN_HOST = "127.0.0.1"

OUTPUT_PREFIX = "file-"
OUTPUT_SUFFIX = ".dat"
OUTPUT_MODE = 0o600

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
