#!/usr/bin/env python3
"""
filefetch — CLI entry point

Subcommands
───────────
  serve   Serve files from a directory, one client at a time
  fetch   Download one file from a running server

Usage examples
──────────────
  # Serve ./Images on the default port 12345
  filefetch serve

  # Serve another directory on port 9000
  filefetch serve --port 9000 --base-dir /srv/images

  # Fetch hello.txt into the current directory
  filefetch fetch hello.txt --server 10.21.75.6

Environment
───────────
  FILEFETCH_HOST, FILEFETCH_PORT, FILEFETCH_BASE_DIR   (serve)
  FILEFETCH_SERVER, FILEFETCH_PORT, FILEFETCH_DEST_DIR (fetch)

Exit status
───────────
  0 ok, 1 file not found on server, 2 usage error, 3 host not resolved,
  4 transfer I/O error, 5 working directory unavailable, 6 invalid port,
  7 connection failed, 8 protocol error, 9 cannot bind,
  10 invalid file name
"""

import argparse
import logging
import sys
from typing import Optional

from filefetch.errors import EXIT_NOT_FOUND, EXIT_OK, EXIT_USAGE, FileFetchError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Logging setup (called before anything else so imports log correctly)
# ---------------------------------------------------------------------------

def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    fmt   = "%(asctime)s  %(levelname)-8s  %(name)s — %(message)s"
    datefmt = "%H:%M:%S"
    logging.basicConfig(level=level, format=fmt, datefmt=datefmt)


# ---------------------------------------------------------------------------
# Subcommand: serve
# ---------------------------------------------------------------------------

def cmd_serve(args: argparse.Namespace) -> int:
    """Run the file server until interrupted."""
    from filefetch.config import ServerConfig
    from filefetch.server import FileServer

    config = ServerConfig.from_env(
        host=args.host,
        port=args.port,
        base_directory=args.base_dir,
    )
    FileServer(config).serve_forever()   # blocks
    return EXIT_OK


# ---------------------------------------------------------------------------
# Subcommand: fetch
# ---------------------------------------------------------------------------

def cmd_fetch(args: argparse.Namespace) -> int:
    """Request one file from a server."""
    from filefetch.client import FileFetcher
    from filefetch.config import ClientConfig

    config = ClientConfig.from_env(
        server_address=args.server,
        port=args.port,
        destination_directory=args.dest_dir,
        connect_timeout=args.timeout,
        progress=args.progress,
    )
    result = FileFetcher(config).fetch(args.file)

    if not result.found:
        print(f"File {result.file_name} not found.")
        return EXIT_NOT_FOUND
    return EXIT_OK


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="filefetch",
        description="filefetch — single-file retrieval over TCP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True

    # ── serve ──────────────────────────────────────────────────────────
    p_serve = sub.add_parser(
        "serve",
        help="Serve files from a directory",
        description="Answer file requests sequentially from a base directory.",
    )
    p_serve.add_argument(
        "--host", default=None, metavar="HOST",
        help="Interface to bind (default: $FILEFETCH_HOST or 0.0.0.0)",
    )
    p_serve.add_argument(
        "--port", default=None, metavar="PORT",
        help="TCP port to listen on (default: $FILEFETCH_PORT or 12345)",
    )
    p_serve.add_argument(
        "--base-dir", default=None, metavar="DIR",
        help="Directory to serve files from (default: $FILEFETCH_BASE_DIR or ./Images)",
    )

    # ── fetch ──────────────────────────────────────────────────────────
    p_fetch = sub.add_parser(
        "fetch",
        help="Fetch a file from a server",
        description="Request FILE from a filefetch server and save it locally.",
    )
    p_fetch.add_argument(
        "file",
        metavar="FILE",
        help="Name of the file to request",
    )
    p_fetch.add_argument(
        "--server", default=None, metavar="HOST",
        help="Server hostname or IP (default: $FILEFETCH_SERVER or 127.0.0.1)",
    )
    p_fetch.add_argument(
        "--port", default=None, metavar="PORT",
        help="Server port (default: $FILEFETCH_PORT or 12345)",
    )
    p_fetch.add_argument(
        "--dest-dir", default=None, metavar="DIR",
        help="Directory to save the file in (default: $FILEFETCH_DEST_DIR or .)",
    )
    p_fetch.add_argument(
        "--timeout", type=float, default=None, metavar="SECS",
        help="Connect / read timeout in seconds (default: wait forever)",
    )
    p_fetch.add_argument(
        "--no-progress", dest="progress", action="store_false",
        help="Do not show a progress bar",
    )

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main(argv: Optional[list] = None) -> int:
    parser = build_parser()
    args   = parser.parse_args(argv)
    _setup_logging(args.verbose)

    dispatch = {
        "serve": cmd_serve,
        "fetch": cmd_fetch,
    }

    handler = dispatch.get(args.command)
    if handler is None:
        parser.print_help()
        return EXIT_USAGE

    try:
        return handler(args)
    except FileFetchError as exc:
        logger.debug("%s failed", args.command, exc_info=True)
        print(f"  Error: {exc}", file=sys.stderr)
        return exc.exit_code


if __name__ == "__main__":
    sys.exit(main())
