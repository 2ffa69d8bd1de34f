"""
Codex Gateway HTTP server package.

Exposes the authorization status surface and a completion endpoint on top of
the credential manager and streaming gateway.
"""
from .server import GatewayServer, setup_logging
from .app import app, create_app

__version__ = "0.1.0"

__all__ = [
    'GatewayServer',
    'setup_logging',
    'app',
    'create_app',
]
