"""
filefetch/config.py

Explicit configuration for both roles.

Nothing here is read lazily at call time: the CLI (or a test) builds a
ServerConfig / ClientConfig once at startup and passes it into FileServer or
FileFetcher. Values come from, in increasing priority:

  1. built-in defaults (port 12345, ./Images for the server, ./ for the client)
  2. environment variables (FILEFETCH_*)
  3. explicit keyword overrides (CLI flags)
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from filefetch.errors import InvalidPortError, WorkingDirectoryError
from filefetch.protocol import DEFAULT_BASE_SUBDIR, DEFAULT_PORT

logger = logging.getLogger(__name__)

ENV_HOST       = "FILEFETCH_HOST"
ENV_SERVER     = "FILEFETCH_SERVER"
ENV_PORT       = "FILEFETCH_PORT"
ENV_BASE_DIR   = "FILEFETCH_BASE_DIR"
ENV_DEST_DIR   = "FILEFETCH_DEST_DIR"


def working_directory() -> str:
    """
    Return the process working directory.

    Raises:
        WorkingDirectoryError: the directory was removed or is not accessible
    """
    try:
        return os.getcwd()
    except OSError as exc:
        raise WorkingDirectoryError(f"Cannot determine working directory: {exc}") from exc


def validate_port(value) -> int:
    """Coerce ``value`` to a TCP port number or raise InvalidPortError."""
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise InvalidPortError(f"Port must be an integer, got {value!r}") from None
    if not 0 <= port <= 65535:
        raise InvalidPortError(f"Port out of range (0-65535): {port}")
    return port


def _pick(overrides: dict, key: str, environ: Mapping[str, str], env_key: str):
    value = overrides.pop(key, None)
    if value is None:
        value = environ.get(env_key) or None
    return value


@dataclass
class ServerConfig:
    """
    Settings for FileServer.

    Args:
        host:               interface to bind
        port:               TCP port to listen on (0 picks a free port)
        base_directory:     directory requested names are resolved against
        backlog:            pending connections queued while one is served
        connection_timeout: per-connection socket timeout in seconds;
                            None blocks indefinitely on a stalled client
    """
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    base_directory: str = field(default_factory=lambda: os.path.join(working_directory(), DEFAULT_BASE_SUBDIR))
    backlog: int = 5
    connection_timeout: Optional[float] = None

    def __post_init__(self) -> None:
        self.port = validate_port(self.port)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] = os.environ, **overrides) -> "ServerConfig":
        overrides = dict(overrides)
        kwargs = {
            "host":           _pick(overrides, "host", environ, ENV_HOST),
            "port":           _pick(overrides, "port", environ, ENV_PORT),
            "base_directory": _pick(overrides, "base_directory", environ, ENV_BASE_DIR),
        }
        kwargs = {k: v for k, v in kwargs.items() if v is not None}
        kwargs.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**kwargs)


@dataclass
class ClientConfig:
    """
    Settings for FileFetcher.

    Args:
        server_address:        host name or IP of the server
        port:                  server port
        destination_directory: where fetched files are written
        connect_timeout:       seconds for connect and each read; None blocks
        progress:              show a tqdm progress bar while downloading
    """
    server_address: str = "127.0.0.1"
    port: int = DEFAULT_PORT
    destination_directory: str = field(default_factory=working_directory)
    connect_timeout: Optional[float] = None
    progress: bool = False

    def __post_init__(self) -> None:
        self.port = validate_port(self.port)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] = os.environ, **overrides) -> "ClientConfig":
        overrides = dict(overrides)
        kwargs = {
            "server_address":        _pick(overrides, "server_address", environ, ENV_SERVER),
            "port":                  _pick(overrides, "port", environ, ENV_PORT),
            "destination_directory": _pick(overrides, "destination_directory", environ, ENV_DEST_DIR),
        }
        kwargs = {k: v for k, v in kwargs.items() if v is not None}
        kwargs.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**kwargs)
