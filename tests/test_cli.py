from __future__ import annotations

import socket

import pytest

from filefetch import cli
from filefetch import config as config_mod


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("FILEFETCH_HOST", "FILEFETCH_SERVER", "FILEFETCH_PORT", "FILEFETCH_BASE_DIR", "FILEFETCH_DEST_DIR"):
        monkeypatch.delenv(name, raising=False)


def _fetch_args(server, dest_dir, *extra):
    host, port = server.server_address
    return ["fetch", *extra, "--server", host, "--port", str(port), "--dest-dir", str(dest_dir), "--no-progress"]


def test_fetch_success(server, base_dir, dest_dir):
    (base_dir / "hello.txt").write_bytes(b"hi")
    assert cli.main(_fetch_args(server, dest_dir, "hello.txt")) == 0
    assert (dest_dir / "hello.txt").read_bytes() == b"hi"


def test_fetch_not_found_message(server, dest_dir, capsys):
    assert cli.main(_fetch_args(server, dest_dir, "missing.txt")) == 1
    assert "File missing.txt not found." in capsys.readouterr().out
    assert not (dest_dir / "missing.txt").exists()


def test_fetch_without_file_prints_usage(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["fetch"])
    assert exc.value.code == 2
    assert "usage" in capsys.readouterr().err.lower()


def test_fetch_unresolvable_host(dest_dir):
    code = cli.main(["fetch", "a", "--server", "no-such-host.invalid", "--dest-dir", str(dest_dir)])
    assert code == 3


def test_fetch_invalid_port(dest_dir, capsys):
    assert cli.main(["fetch", "a", "--port", "99999", "--dest-dir", str(dest_dir)]) == 6
    assert "Port out of range" in capsys.readouterr().err


def test_fetch_connection_refused(dest_dir):
    with socket.socket() as s:
        s.bind(("127.0.0.1", 0))
        port = s.getsockname()[1]
    code = cli.main(["fetch", "a", "--server", "127.0.0.1", "--port", str(port), "--dest-dir", str(dest_dir)])
    assert code == 7


def test_fetch_without_working_directory(monkeypatch):
    def boom():
        raise FileNotFoundError(2, "No such file or directory")

    monkeypatch.setattr(config_mod.os, "getcwd", boom)
    assert cli.main(["fetch", "a", "--server", "127.0.0.1"]) == 5


def test_serve_port_in_use(tmp_path):
    with socket.socket() as taken:
        taken.bind(("127.0.0.1", 0))
        taken.listen(1)
        port = taken.getsockname()[1]
        code = cli.main(["serve", "--host", "127.0.0.1", "--port", str(port), "--base-dir", str(tmp_path)])
    assert code == 9


def test_serve_invalid_port(tmp_path):
    assert cli.main(["serve", "--port", "not-a-port", "--base-dir", str(tmp_path)]) == 6


def test_fetch_multiline_file_name(dest_dir, capsys):
    code = cli.main(["fetch", "a\nb", "--server", "127.0.0.1", "--port", "1", "--dest-dir", str(dest_dir)])
    assert code == 10
    assert "single line" in capsys.readouterr().err
    assert list(dest_dir.iterdir()) == []
