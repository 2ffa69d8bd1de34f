"""
Endpoint handlers for the gateway server.
"""
from .health import router as health_router
from .auth import router as auth_router
from .complete import router as complete_router

__all__ = [
    'health_router',
    'auth_router',
    'complete_router',
]
