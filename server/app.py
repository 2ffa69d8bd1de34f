"""
FastAPI application initialization and configuration.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from codex_gateway import CodexGateway
from codex_oauth import AuthorizationSessionManager, CredentialAccessor, CredentialStore
from .middleware import log_requests_middleware
from .endpoints import (
    health_router,
    auth_router,
    complete_router,
)

logger = logging.getLogger(__name__)


def create_app(
    session_manager: Optional[AuthorizationSessionManager] = None,
    gateway: Optional[CodexGateway] = None,
) -> FastAPI:
    """Build the application around one session manager and gateway

    Both share a single credential store unless supplied explicitly.
    """
    if session_manager is None:
        session_manager = AuthorizationSessionManager(store=CredentialStore())
    gateway = gateway or CodexGateway(accessor=CredentialAccessor(store=session_manager.store))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.session_manager.shutdown()

    app = FastAPI(title="Codex Gateway", version="0.1.0", lifespan=lifespan)
    app.state.session_manager = session_manager
    app.state.gateway = gateway

    # Add middleware
    app.middleware("http")(log_requests_middleware)

    # Register routers
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(complete_router)

    logger.debug("FastAPI application initialized with all routers and middleware")
    return app


app = create_app()
