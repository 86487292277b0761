# ok_target/server.py
"""
Constant-response listener.

Lifecycle is Starting -> Listening. The socket is bound here, before uvicorn
starts, so an occupied port fails fast with ListenerBindError and nothing is
left listening. Connection handling, keep-alive and request framing are all
uvicorn's.
"""

from __future__ import annotations

import logging
import signal
import socket
import threading

import uvicorn

from ok_target.config import Settings
from ok_target.main import create_app
from ok_target.observability import LOGGER_NAME, setup_json_logging

log = logging.getLogger(LOGGER_NAME)

STARTUP_FAILURE = 3


class ListenerBindError(OSError):
    """The listening socket could not be acquired."""

    def __init__(self, host: str, port: int, reason: OSError):
        super().__init__(reason.errno, f"cannot listen on {host}:{port}: {reason.strerror or reason}")
        self.host = host
        self.port = port
        self.reason = reason


class ShutdownRequested(Exception):
    """Raised from the SIGTERM handler once uvicorn has finished shutting down."""


def bind_listener(host: str, port: int, backlog: int = 100) -> socket.socket:
    """Create, bind and listen on a TCP socket. Port 0 picks a free port."""
    try:
        infos = socket.getaddrinfo(host or None, port, type=socket.SOCK_STREAM, flags=socket.AI_PASSIVE)
    except socket.gaierror as e:
        raise ListenerBindError(host, port, e) from e

    family, socktype, proto, _, sockaddr = infos[0]
    sock = socket.socket(family, socktype, proto)
    try:
        # Only lets us reuse TIME_WAIT addresses; an active listener still wins
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind(sockaddr)
        sock.listen(backlog)
    except OSError as e:
        sock.close()
        raise ListenerBindError(host, port, e) from e
    sock.setblocking(False)
    return sock


def listening_url(sock: socket.socket) -> str:
    host, port = sock.getsockname()[:2]
    if ":" in host:
        host = f"[{host}]"
    return f"http://{host}:{port}"


def announce(sock: socket.socket) -> None:
    print(f"Listening on {listening_url(sock)}", flush=True)


def build_server(settings: Settings) -> uvicorn.Server:
    config = uvicorn.Config(
        create_app(settings),
        log_level=settings.log_level,
        access_log=False,
        lifespan="off",
        backlog=settings.backlog,
        timeout_keep_alive=settings.keepalive_timeout,
        server_header=False,
        date_header=False,
    )
    return uvicorn.Server(config)


def _raise_shutdown(signum, frame):
    raise ShutdownRequested()


def serve(settings: Settings) -> int:
    """
    Bind, announce and serve until SIGINT/SIGTERM.

    Returns the process exit code. ListenerBindError propagates to the caller.
    """
    setup_json_logging(level=settings.log_level)
    server = build_server(settings)
    try:
        sock = bind_listener(settings.host, settings.port, settings.backlog)
    except ListenerBindError as e:
        log.error('bind_failed host="%s" port=%d reason="%s"', e.host, e.port, e.reason)
        raise

    previous_sigterm = None
    try:
        # uvicorn restores and re-raises captured signals after shutdown
        if threading.current_thread() is threading.main_thread():
            previous_sigterm = signal.signal(signal.SIGTERM, _raise_shutdown)
        announce(sock)
        log.info('listener_started url="%s"', listening_url(sock))
        server.run(sockets=[sock])
    except (KeyboardInterrupt, ShutdownRequested):
        pass
    finally:
        if previous_sigterm is not None:
            signal.signal(signal.SIGTERM, previous_sigterm)
        sock.close()
        log.info("listener_stopped")

    if not server.started:
        return STARTUP_FAILURE
    return 0
