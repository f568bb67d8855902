from __future__ import annotations

import argparse
import json
import logging
import sys

from .bench import run_benchmark
from .client import Client
from .constants import DEFAULT_LISTEN_HOST, EXIT_FAILURE, EXIT_SUCCESS, MAX_PORT, MIN_PORT
from .errors import Interrupted, SetupError
from .resources import SessionResources, interrupt_guard
from .server import Server

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def port_number(text: str) -> int:
    try:
        port = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port number: {text!r}") from None
    if not MIN_PORT <= port <= MAX_PORT:
        raise argparse.ArgumentTypeError(
            f"Port number is privileged or out of range: {port} (allowed {MIN_PORT}-{MAX_PORT})"
        )
    return port


def _emit(payload: dict, as_json: bool) -> None:
    print(json.dumps(payload, indent=2) if as_json else payload)


def cmd_client(args: argparse.Namespace) -> int:
    with SessionResources() as res:
        try:
            with interrupt_guard():
                stats = Client(res, args.server_ip, args.server_port).run(args.files)
        except Interrupted:
            logger.error("Client interrupted. Shutting down.")
            return EXIT_FAILURE
        except SetupError as exc:
            logger.error("%s", exc)
            return EXIT_FAILURE

    _emit({"role": "client", **stats.as_dict()}, args.json)
    logger.info("Goodbye!")
    return EXIT_SUCCESS


def cmd_server(args: argparse.Namespace) -> int:
    if args.host != DEFAULT_LISTEN_HOST:
        logger.warning("binding to %s instead of loopback; reachable from other hosts", args.host)

    with SessionResources() as res:
        try:
            with interrupt_guard():
                Server(res, host=args.host, port=args.listen_port, output_dir=args.output_dir).serve()
        except Interrupted:
            logger.error("Server interrupted. Shutting down.")
            return EXIT_FAILURE
        except SetupError as exc:
            logger.error("%s", exc)
            return EXIT_FAILURE
    # serve() only returns when given a limit
    return EXIT_SUCCESS


def cmd_bench(args: argparse.Namespace) -> int:
    r = run_benchmark(count=args.count, size_bytes=args.size_bytes)
    payload = {
        "role": "bench",
        "files": r.files,
        "bytes": r.bytes_transferred,
        "seconds": r.duration_s,
        "mbps": r.throughput_mbps,
    }
    _emit(payload, args.json)
    return EXIT_SUCCESS


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="filexfer", description="One-file-per-connection TCP file transfer.")
    sub = p.add_subparsers(dest="cmd", required=True)

    def add_common(x: argparse.ArgumentParser) -> None:
        x.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
        x.add_argument("--json", action="store_true", help="print the run summary as JSON")

    client = sub.add_parser("client", help="send files, one connection each")
    add_common(client)
    client.add_argument("server_ip", help="dotted IPv4 address of the server")
    client.add_argument("server_port", type=port_number)
    client.add_argument("files", nargs="+", metavar="file")
    client.set_defaults(func=cmd_client)

    server = sub.add_parser("server", help="receive files into file-NN.dat until interrupted")
    add_common(server)
    server.add_argument("listen_port", type=port_number)
    server.add_argument("--host", default=DEFAULT_LISTEN_HOST, help="bind address (default: loopback only)")
    server.add_argument("--output-dir", default=".", help="where file-NN.dat are written")
    server.set_defaults(func=cmd_server)

    bench = sub.add_parser("bench", help="loopback benchmark")
    add_common(bench)
    bench.add_argument("--count", type=int, default=4)
    bench.add_argument("--size-bytes", type=int, default=1_000_000)
    bench.set_defaults(func=cmd_bench)

    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT)
    return int(args.func(args))


def client_main(argv: list[str] | None = None) -> int:
    return main(["client", *(sys.argv[1:] if argv is None else argv)])


def server_main(argv: list[str] | None = None) -> int:
    return main(["server", *(sys.argv[1:] if argv is None else argv)])


if __name__ == "__main__":
    raise SystemExit(main())
