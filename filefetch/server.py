"""
filefetch/server.py

filefetch SERVER (the RequestResponder role).

Responsibilities:
  - Listen on a TCP port
  - For each connection: read one file name line, strip "/" from it,
    resolve it against the base directory, then answer b"R" + file bytes
    or b"F"
  - Close every connection after its single exchange
  - Keep serving when one client misbehaves

Architecture:
  - One accept loop, run on the calling thread
  - Connections are handled inline, strictly one after another; clients that
    connect meanwhile wait in the listen backlog
  - Any file open failure (missing, permission denied, is a directory) is
    reported as FILE_NOT_FOUND; the protocol has no finer-grained flag
"""

import os
import signal
import socket
import threading
import logging
from dataclasses import dataclass
from typing import BinaryIO, Optional

from filefetch.config import ServerConfig
from filefetch.errors import BindError, ProtocolError
from filefetch.protocol import (
    BUFFER_SIZE,
    StatusFlag,
    read_request_line,
    sanitize_file_name,
    send_file,
)

logger = logging.getLogger(__name__)

# How often the accept loop wakes up to check for shutdown
ACCEPT_POLL_INTERVAL = 0.5


# ---------------------------------------------------------------------------
# Open attempt
# ---------------------------------------------------------------------------

@dataclass
class OpenResult:
    """Outcome of trying to open a requested file: a handle or a reason."""
    path: str
    handle: Optional[BinaryIO] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.handle is not None


def open_requested_file(base_directory: str, file_name: str) -> OpenResult:
    path = os.path.join(base_directory, file_name)
    try:
        handle = open(path, "rb", buffering=BUFFER_SIZE)
    except OSError as exc:
        return OpenResult(path=path, reason=exc.strerror or str(exc))
    except ValueError as exc:  # e.g. embedded NUL byte
        return OpenResult(path=path, reason=str(exc))
    return OpenResult(path=path, handle=handle)


# ---------------------------------------------------------------------------
# One exchange
# ---------------------------------------------------------------------------

def handle_connection(conn: socket.socket, base_directory: str) -> Optional[StatusFlag]:
    """
    Serve a single request on ``conn`` and close it.

    Returns the StatusFlag that was sent, or None if the exchange was
    abandoned before a flag went out. Never raises for per-connection
    failures: they are logged and the connection is dropped.
    """
    peer = _peer_name(conn)
    try:
        with conn, conn.makefile("rb") as reader:
            requested = read_request_line(reader)
            file_name = sanitize_file_name(requested)
            if file_name != requested:
                logger.warning("%s: stripped '/' from request %r -> %r", peer, requested, file_name)

            result = open_requested_file(base_directory, file_name)
            if not result.ok:
                logger.info("%s: %r unavailable (%s)", peer, file_name, result.reason)
                conn.sendall(StatusFlag.FILE_NOT_FOUND.value)
                return StatusFlag.FILE_NOT_FOUND

            with result.handle as src:
                conn.sendall(StatusFlag.READY.value)
                sent = send_file(conn, src)
            logger.info("%s: sent %r (%d bytes)", peer, file_name, sent)
            return StatusFlag.READY

    except ProtocolError as exc:
        logger.warning("%s: %s", peer, exc)
    except ConnectionError as exc:
        logger.info("%s: connection lost: %s", peer, exc)
    except OSError as exc:
        logger.error("%s: I/O error: %s", peer, exc)
    except Exception as exc:
        logger.error("%s: unexpected error: %s", peer, exc, exc_info=True)
    return None


def _peer_name(conn: socket.socket) -> str:
    try:
        peer = conn.getpeername()
    except OSError:
        return "<unknown>"
    if isinstance(peer, tuple):
        return f"{peer[0]}:{peer[1]}"
    return str(peer) or "<local>"


# ---------------------------------------------------------------------------
# FileServer — accept loop
# ---------------------------------------------------------------------------

class FileServer:
    """
    Sequential TCP file server.

    Usage:
        server = FileServer(ServerConfig(port=12345, base_directory="./Images"))
        server.serve_forever()          # blocks
    """

    def __init__(self, config: ServerConfig) -> None:
        self.config = config
        self._shutdown = threading.Event()
        self._sock: Optional[socket.socket] = None

    @property
    def server_address(self) -> Optional[tuple]:
        """Bound (host, port), available once listening."""
        if self._sock is None:
            return None
        return self._sock.getsockname()[:2]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def serve_forever(self, ready_event: Optional[threading.Event] = None) -> None:
        """
        Bind, listen and serve until shutdown() is called.

        Args:
            ready_event: If provided, set() once the socket is bound and
                         listening (useful for tests / programmatic callers).

        Raises:
            BindError: the listening socket could not be set up
        """
        self._sock = self._bind()
        previous_handlers = {}
        try:
            if threading.current_thread() is threading.main_thread():
                for signum in (signal.SIGINT, signal.SIGTERM):
                    previous_handlers[signum] = signal.signal(signum, self._on_signal)

            host, port = self.server_address
            logger.info("Serving %s on %s:%d", self.config.base_directory, host, port)
            if not os.path.isdir(self.config.base_directory):
                logger.warning("Base directory %s does not exist; every request will get FILE_NOT_FOUND",
                               self.config.base_directory)

            if ready_event is not None:
                ready_event.set()

            self._accept_loop()
        finally:
            for signum, handler in previous_handlers.items():
                if handler is not None:  # None: installed outside Python
                    signal.signal(signum, handler)
            self._sock.close()
            logger.info("Server stopped")

    def shutdown(self) -> None:
        """Stop accepting; the exchange in progress, if any, completes first."""
        self._shutdown.set()

    def _bind(self) -> socket.socket:
        cfg = self.config
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((cfg.host, cfg.port))
            sock.listen(cfg.backlog)
            sock.settimeout(ACCEPT_POLL_INTERVAL)  # so accept() can notice shutdown
        except (OSError, OverflowError) as exc:
            sock.close()
            raise BindError(f"Server socket could not be bound on {cfg.host}:{cfg.port}: {exc}") from exc
        return sock

    def _accept_loop(self) -> None:
        while not self._shutdown.is_set():
            try:
                conn, addr = self._sock.accept()
            except socket.timeout:
                continue
            except OSError as exc:
                if self._shutdown.is_set():
                    break
                logger.error("accept() failed: %s", exc)
                continue

            logger.info("New connection from %s:%d", *addr[:2])
            conn.settimeout(self.config.connection_timeout)
            handle_connection(conn, self.config.base_directory)

        logger.info("Accept loop exited")

    def _on_signal(self, signum, frame) -> None:
        logger.info("Signal %d received, shutting down", signum)
        self.shutdown()
