from __future__ import annotations

import argparse
import json
import signal
import socket
import threading

import pytest

from filexfer import cli
from filexfer.errors import Interrupted
from filexfer.resources import SessionResources
from filexfer.server import Server


@pytest.mark.parametrize("text,expected", [("1024", 1024), ("8080", 8080), ("65535", 65535)])
def test_port_number_accepts(text, expected):
    assert cli.port_number(text) == expected


@pytest.mark.parametrize("text", ["0", "80", "1023", "65536", "abc", "-1"])
def test_port_number_rejects(text):
    with pytest.raises(argparse.ArgumentTypeError):
        cli.port_number(text)


@pytest.mark.parametrize(
    "argv",
    [
        ["server", "80"],
        ["server"],
        ["client", "127.0.0.1", "70000", "f"],
        ["client", "127.0.0.1", "9000"],
    ],
)
def test_bad_command_line_exits_nonzero(argv):
    with pytest.raises(SystemExit) as info:
        cli.main(argv)
    assert info.value.code != 0


def test_client_connect_failure_exit_status(tmp_path, caplog):
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        port = s.getsockname()[1]
    src = tmp_path / "f"
    src.write_bytes(b"x")
    assert cli.main(["client", "127.0.0.1", str(port), str(src)]) == 1
    assert f"connecting to 127.0.0.1:{port}" in caplog.messages


def test_client_sends_and_reports(tmp_path, capsys):
    src = tmp_path / "f"
    src.write_bytes(b"hello server")
    out = tmp_path / "out"
    out.mkdir()

    res = SessionResources()
    server = Server(res, port=0, output_dir=str(out), capacity=1024)
    host, port = server.bind()

    def runner():
        with res:
            server.serve(limit=2)

    t = threading.Thread(target=runner, daemon=True)
    t.start()
    code = cli.main(["client", host, str(port), str(src), str(tmp_path / "missing"), "--json"])
    t.join(timeout=10)

    assert code == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["role"] == "client"
    assert summary["files_ok"] == 1
    assert summary["files_failed"] == 1
    assert (out / "file-01.dat").read_bytes() == b"hello server"


def test_client_interrupted_exit_status(tmp_path, monkeypatch, caplog):
    def interrupted(self, paths):
        raise Interrupted(signal.SIGINT)

    monkeypatch.setattr(cli.Client, "run", interrupted)
    assert cli.main(["client", "127.0.0.1", "9000", str(tmp_path / "f")]) == 1
    assert "Client interrupted. Shutting down." in caplog.text


def test_server_interrupted_exit_status(monkeypatch, caplog):
    def interrupted(self, limit=None):
        raise Interrupted(signal.SIGINT)

    monkeypatch.setattr(cli.Server, "serve", interrupted)
    assert cli.main(["server", "9000"]) == 1
    assert "Server interrupted. Shutting down." in caplog.text


def test_bench_json(capsys):
    assert cli.main(["bench", "--count", "2", "--size-bytes", "2000", "--json"]) == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["files"] == 2
    assert summary["bytes"] == 4000
