"""
Codex OAuth endpoints: start authorization, disconnect, status.
"""
import logging
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from codex_oauth import AuthorizationSessionManager
from ..models import AuthorizationResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/openai")


def _session_manager(request: Request) -> AuthorizationSessionManager:
    return request.app.state.session_manager


@router.post("/authorize", response_model=AuthorizationResponse)
async def authorize(request: Request):
    """Start an authorization attempt and return the URL to open"""
    try:
        authorization = await _session_manager(request).start()
    except Exception as e:
        logger.exception(f"Failed to start OpenAI authorization: {e}")
        return JSONResponse({"error": f"Failed to start OpenAI authorization: {e}"}, status_code=500)
    return AuthorizationResponse(**authorization._asdict())


@router.post("/logout")
async def logout(request: Request):
    """Forget the stored credential"""
    await _session_manager(request).disconnect()
    return {"success": True}


@router.get("/status")
async def status(request: Request):
    """Auth status without exposing secrets"""
    return _session_manager(request).status()
