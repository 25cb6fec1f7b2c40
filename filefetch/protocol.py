"""
filefetch/protocol.py

Wire protocol for one filefetch exchange.

Exchange layout (one TCP connection, client-initiated):
┌───────────┬─────────────────┬───────────────────────────────────────────┐
│ Direction │ Bytes           │ Description                               │
├───────────┼─────────────────┼───────────────────────────────────────────┤
│ C → S     │ name + b"\\n"    │ requested file name, UTF-8, one line      │
│ S → C     │ 1               │ StatusFlag: b"R" (READY) or b"F"          │
│ S → C     │ 0..∞            │ raw file bytes, only after b"R"           │
└───────────┴─────────────────┴───────────────────────────────────────────┘

There is no length prefix: the server closing the connection marks the end
of the payload. A b"F" is never followed by payload bytes.
"""

import logging
import socket
from enum import Enum
from typing import BinaryIO, Callable, Optional

from filefetch.errors import InvalidFileNameError, ProtocolError

logger = logging.getLogger(__name__)

# ------------------------------------------------------------------
# Constants
# ------------------------------------------------------------------
BUFFER_SIZE = 1024          # chunk size for both copy loops
DEFAULT_PORT = 12345
DEFAULT_BASE_SUBDIR = "Images"
MAX_REQUEST_LINE = 4096     # bytes, terminator included
REQUEST_ENCODING = "utf-8"


class StatusFlag(Enum):
    READY          = b"R"
    FILE_NOT_FOUND = b"F"

    @classmethod
    def parse(cls, raw: bytes) -> "StatusFlag":
        """
        Map the first byte of a server response to a StatusFlag.

        Raises:
            ProtocolError: if the server closed before sending a flag, or
                           sent a byte that is neither b"R" nor b"F"
        """
        if not raw:
            raise ProtocolError("Connection closed before a status flag was received")
        try:
            return cls(raw[:1])
        except ValueError:
            raise ProtocolError(f"Unrecognized status flag {raw[:1]!r}") from None


# ------------------------------------------------------------------
# Request line
# ------------------------------------------------------------------

def encode_request(file_name: str) -> bytes:
    """Encode a FileRequest: the name followed by a single newline."""
    if "\n" in file_name or "\r" in file_name:
        raise InvalidFileNameError(f"File name must be a single line: {file_name!r}")
    return (file_name + "\n").encode(REQUEST_ENCODING)


def read_request_line(reader: BinaryIO, limit: int = MAX_REQUEST_LINE) -> str:
    """
    Read one request line from a binary reader (e.g. ``sock.makefile("rb")``).

    The trailing ``\\n`` and an optional ``\\r`` before it are removed. A line
    cut short by the peer closing is returned as-is.

    Raises:
        ProtocolError: peer closed without sending anything, the line is
                       longer than ``limit`` bytes, or it is not valid UTF-8
    """
    raw = reader.readline(limit + 1)
    if not raw:
        raise ProtocolError("Connection closed before a request line was received")
    if len(raw) > limit:
        raise ProtocolError(f"Request line exceeds {limit} bytes")

    if raw.endswith(b"\n"):
        raw = raw[:-1]
        if raw.endswith(b"\r"):
            raw = raw[:-1]

    try:
        return raw.decode(REQUEST_ENCODING)
    except UnicodeDecodeError as exc:
        raise ProtocolError(f"Request line is not valid {REQUEST_ENCODING}: {exc}") from exc


def sanitize_file_name(raw_name: str) -> str:
    """
    Remove every "/" from a requested name.

    This only blocks traversal through "/" separators: "../secret" becomes
    "..secret". Backslashes and other platform separators pass through.
    """
    return raw_name.replace("/", "")


# ------------------------------------------------------------------
# Chunked copy loops
# ------------------------------------------------------------------

def send_file(sock: socket.socket, src: BinaryIO, chunk_size: int = BUFFER_SIZE) -> int:
    """Copy ``src`` to ``sock`` in chunks until EOF. Returns bytes sent."""
    total = 0
    while True:
        chunk = src.read(chunk_size)
        if not chunk:
            break
        sock.sendall(chunk)
        total += len(chunk)
    return total


def recv_into_file(
    sock: socket.socket,
    dest: BinaryIO,
    chunk_size: int = BUFFER_SIZE,
    on_chunk: Optional[Callable[[int], None]] = None,
) -> int:
    """
    Copy everything the peer sends into ``dest`` until the peer closes.

    Args:
        on_chunk: called with the size of every chunk written (progress hook)

    Returns:
        int: total bytes written
    """
    total = 0
    while True:
        chunk = sock.recv(chunk_size)
        if not chunk:
            break
        dest.write(chunk)
        total += len(chunk)
        if on_chunk is not None:
            on_chunk(len(chunk))
    return total
