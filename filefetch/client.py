"""
filefetch/client.py

filefetch CLIENT (the FileFetcher role).

One fetch = one connection:
  1. Connect to the server (distinct errors for bad port, unresolvable host,
     refused / unreachable server)
  2. Send the file name line
  3. Read the one-byte StatusFlag
  4. READY          → stream the rest of the connection into the destination
     FILE_NOT_FOUND → report it, touch nothing on disk

The payload is written to a temporary file beside the target and renamed
into place only after the server closes the connection, so an aborted
download never leaves a truncated file behind.
"""

import os
import socket
import logging
import tempfile
from dataclasses import dataclass
from typing import Optional

from tqdm import tqdm

from filefetch.config import ClientConfig, validate_port
from filefetch.errors import (
    ConnectFailedError,
    HostResolutionError,
    TransferIOError,
)
from filefetch.protocol import (
    BUFFER_SIZE,
    StatusFlag,
    encode_request,
    recv_into_file,
    sanitize_file_name,
)

logger = logging.getLogger(__name__)

LOCAL_FILE_MODE = 0o644


@dataclass
class FetchResult:
    status: StatusFlag
    file_name: str
    local_path: Optional[str] = None
    bytes_received: int = 0

    @property
    def found(self) -> bool:
        return self.status is StatusFlag.READY


class FileFetcher:
    """
    Requests named files from a filefetch server.

    Usage:
        fetcher = FileFetcher(ClientConfig(server_address="10.0.0.5"))
        result = fetcher.fetch("hello.txt")
        if not result.found:
            print(f"File {result.file_name} not found.")
    """

    def __init__(self, config: ClientConfig) -> None:
        self.config = config

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def fetch(self, file_name: str) -> FetchResult:
        """
        Fetch ``file_name`` into the configured destination directory.

        Raises:
            InvalidPortError:    configured port is out of range
            HostResolutionError: server host name does not resolve
            ConnectFailedError:  server refused or could not be reached
            ProtocolError:       server closed early or sent an unknown flag
            TransferIOError:     I/O failure while sending or receiving
        """
        request = encode_request(file_name)

        with self._connect() as sock:
            try:
                sock.sendall(request)
                flag = StatusFlag.parse(sock.recv(1))
            except OSError as exc:
                raise TransferIOError(f"I/O error while requesting {file_name}: {exc}") from exc

            if flag is StatusFlag.FILE_NOT_FOUND:
                logger.warning("Server reports %s not found", file_name)
                return FetchResult(status=flag, file_name=file_name)

            local_path, received = self._receive(sock, file_name)

        logger.info("Fetched %s -> %s (%d bytes)", file_name, local_path, received)
        return FetchResult(
            status=flag,
            file_name=file_name,
            local_path=local_path,
            bytes_received=received,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _connect(self) -> socket.socket:
        cfg = self.config
        port = validate_port(cfg.port)
        try:
            sock = socket.create_connection((cfg.server_address, port), timeout=cfg.connect_timeout)
        except socket.gaierror as exc:
            raise HostResolutionError(f"Cannot resolve host {cfg.server_address}: {exc}") from exc
        except OSError as exc:
            raise ConnectFailedError(f"Cannot connect to {cfg.server_address}:{port}: {exc}") from exc
        logger.debug("Connected to %s:%d", cfg.server_address, port)
        return sock

    def _receive(self, sock: socket.socket, file_name: str) -> tuple[str, int]:
        dest_dir = self.config.destination_directory
        local_path = os.path.join(dest_dir, sanitize_file_name(file_name))

        try:
            fd, tmp_path = tempfile.mkstemp(prefix=".filefetch-", suffix=".part", dir=dest_dir)
        except OSError as exc:
            raise TransferIOError(f"Cannot create file in {dest_dir}: {exc}") from exc

        try:
            with os.fdopen(fd, "wb", buffering=BUFFER_SIZE) as out, tqdm(
                desc=file_name,
                unit="B",
                unit_scale=True,
                unit_divisor=1024,
                disable=not self.config.progress,
                leave=False,
            ) as bar:
                received = recv_into_file(sock, out, on_chunk=bar.update)
            os.chmod(tmp_path, LOCAL_FILE_MODE)  # mkstemp creates 0600
            os.replace(tmp_path, local_path)
        except OSError as exc:
            _discard(tmp_path)
            raise TransferIOError(f"I/O error while receiving {file_name}: {exc}") from exc
        except BaseException:
            _discard(tmp_path)
            raise

        return local_path, received


def _discard(path: str) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass


def fetch(
    server_address: str,
    port: int,
    file_name: str,
    destination_directory: str,
    **options,
) -> FetchResult:
    """One-shot helper: build a ClientConfig and fetch a single file."""
    config = ClientConfig(
        server_address=server_address,
        port=port,
        destination_directory=destination_directory,
        **options,
    )
    return FileFetcher(config).fetch(file_name)
