"""CLI package for the Codex Gateway

Subcommands to authorize, inspect and drop the stored credential, send a
prompt through the gateway, and run the HTTP server.
"""

from cli.main import main

__all__ = [
    "main",
]
