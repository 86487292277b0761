from __future__ import annotations

import threading
import time

import pytest

from ok_target.config import Settings
from ok_target.server import bind_listener, build_server, listening_url


@pytest.fixture
def live_server():
    """Run the real listener on an ephemeral loopback port in a background thread."""
    settings = Settings(port=0)
    sock = bind_listener(settings.host, settings.port, settings.backlog)
    server = build_server(settings)
    thread = threading.Thread(target=server.run, kwargs={"sockets": [sock]}, daemon=True)
    thread.start()

    deadline = time.time() + 5
    while not server.started:
        if time.time() > deadline:
            raise RuntimeError("listener did not start")
        time.sleep(0.01)

    url = listening_url(sock)
    yield url

    server.should_exit = True
    thread.join(timeout=5)
    sock.close()
