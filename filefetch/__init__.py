"""
filefetch — single-file retrieval over TCP.

Modules
───────
  protocol  — StatusFlag, request line framing, "/" stripping, chunked copy loops
  errors    — exception taxonomy, one exit code per fatal cause
  config    — ServerConfig / ClientConfig (defaults, environment, overrides)
  server    — FileServer: sequential accept loop, one exchange per connection
  client    — FileFetcher: request a file and store it locally
  cli       — argparse CLI: serve / fetch subcommands
"""

__version__ = "1.0.0"
