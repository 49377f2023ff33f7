import signal
import socket

import pytest

from BanlistServer import HTTPServer
from ServerConfig import ServerConfig
from ShutdownLatch import CountDownLatch


@pytest.fixture
def unused_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Run with an empty working directory so banned-players.json starts absent."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def live_server(workdir, unused_port):
    server = HTTPServer(ServerConfig(host="127.0.0.1", port=unused_port), CountDownLatch())
    server.start(trap_signals=False)
    yield server
    server.stop()


@pytest.fixture
def restore_signals():
    saved = {sig: signal.getsignal(sig) for sig in (signal.SIGTERM, signal.SIGINT)}
    yield
    for sig, handler in saved.items():
        signal.signal(sig, handler)
