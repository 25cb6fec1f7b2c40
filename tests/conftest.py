from __future__ import annotations

import threading

import pytest

from filefetch.config import ClientConfig, ServerConfig
from filefetch.server import FileServer


@pytest.fixture
def base_dir(tmp_path):
    d = tmp_path / "served"
    d.mkdir()
    return d


@pytest.fixture
def dest_dir(tmp_path):
    d = tmp_path / "fetched"
    d.mkdir()
    return d


@pytest.fixture
def server(base_dir):
    srv = FileServer(ServerConfig(host="127.0.0.1", port=0, base_directory=str(base_dir)))
    ready = threading.Event()
    t = threading.Thread(target=srv.serve_forever, kwargs={"ready_event": ready}, daemon=True)
    t.start()
    assert ready.wait(timeout=5.0)
    try:
        yield srv
    finally:
        srv.shutdown()
        t.join(timeout=5.0)


@pytest.fixture
def client_config(server, dest_dir):
    host, port = server.server_address
    return ClientConfig(server_address=host, port=port, destination_directory=str(dest_dir))
