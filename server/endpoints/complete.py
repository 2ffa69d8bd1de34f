"""
Completion endpoint backed by the Codex streaming gateway.
"""
import logging
import uuid

from fastapi import APIRouter, HTTPException, Request

from codex_gateway import CodexGateway, GatewayError
from codex_oauth import NotConnected, TokenRefreshFailed
from ..models import CompletionRequest, CompletionResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/v1/complete", response_model=CompletionResponse)
async def complete(body: CompletionRequest, request: Request):
    """Run one completion through the fallback chain and return the text"""
    gateway: CodexGateway = request.app.state.gateway
    request_id = uuid.uuid4().hex[:8]

    try:
        output = await gateway.complete(
            body.message_dicts(),
            body.model,
            is_json=body.json_output,
            request_id=request_id,
        )
    except NotConnected as e:
        raise HTTPException(status_code=401, detail=str(e))
    except TokenRefreshFailed as e:
        logger.error(f"[{request_id}] {e}")
        raise HTTPException(status_code=401, detail=str(e))
    except GatewayError as e:
        logger.error(f"[{request_id}] Gateway request failed: {e}")
        status = e.status if e.status and 400 <= e.status < 600 else 502
        raise HTTPException(status_code=status, detail=str(e))

    return CompletionResponse(output=output)
