"""
filefetch/errors.py

Failure taxonomy for filefetch.

Every fatal cause has its own exception class and its own process exit code,
so a script driving the CLI can tell "host did not resolve" apart from
"connection refused" or "server sent garbage". The CLI is the only place the
codes are turned into an exit status; library callers just catch the classes.

┌───────────────────────┬──────┬───────────────────────────────────────────┐
│ Exception             │ Code │ Cause                                     │
├───────────────────────┼──────┼───────────────────────────────────────────┤
│ HostResolutionError   │   3  │ server host name cannot be resolved       │
│ TransferIOError       │   4  │ socket / file I/O failure mid-exchange    │
│ WorkingDirectoryError │   5  │ current working directory unavailable     │
│ InvalidPortError      │   6  │ port not an integer in 0..65535           │
│ ConnectFailedError    │   7  │ connect refused / unreachable / timed out │
│ ProtocolError         │   8  │ unknown flag, early close, bad request    │
│ BindError             │   9  │ server cannot bind or listen              │
│ InvalidFileNameError  │  10  │ requested name spans more than one line   │
└───────────────────────┴──────┴───────────────────────────────────────────┘

Exit code 1 is reserved for "file not found on the server" and 2 for
argparse usage errors.
"""

EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_USAGE = 2


class FileFetchError(Exception):
    """Base class for all filefetch failures."""

    exit_code = 1


class HostResolutionError(FileFetchError):
    exit_code = 3


class TransferIOError(FileFetchError):
    exit_code = 4


class WorkingDirectoryError(FileFetchError):
    exit_code = 5


class InvalidPortError(FileFetchError):
    exit_code = 6


class ConnectFailedError(FileFetchError):
    exit_code = 7


class ProtocolError(FileFetchError):
    exit_code = 8


class BindError(FileFetchError):
    exit_code = 9


class InvalidFileNameError(FileFetchError, ValueError):
    exit_code = 10
