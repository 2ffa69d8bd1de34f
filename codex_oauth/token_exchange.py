"""
OAuth token exchange against the Codex issuer
"""
import json
import logging
from typing import Dict

import httpx

from settings import TOKEN_EXCHANGE_TIMEOUT
from .constants import CLIENT_ID, TOKEN_URL
from .exceptions import TokenExchangeFailed, TokenRefreshFailed
from .models import PkceCodes, TokenResponse

logger = logging.getLogger(__name__)


async def _post_token_request(form: Dict[str, str], timeout: float) -> httpx.Response:
    async with httpx.AsyncClient(timeout=timeout) as client:
        return await client.post(
            TOKEN_URL,
            data=form,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )


def _parse_token_payload(response: httpx.Response) -> TokenResponse:
    payload = response.json()
    if not isinstance(payload, dict):
        raise ValueError("token endpoint returned a non-object payload")
    return TokenResponse.from_dict(payload)


async def exchange_code_for_tokens(
    code: str,
    redirect_uri: str,
    pkce: PkceCodes,
    timeout: float = TOKEN_EXCHANGE_TIMEOUT,
) -> TokenResponse:
    """
    Exchange authorization code for access and refresh tokens.

    Args:
        code: Authorization code from callback
        redirect_uri: OAuth redirect URI used for the authorization request
        pkce: PKCE pair of the pending session
        timeout: Request timeout in seconds

    Returns:
        TokenResponse

    Raises:
        TokenExchangeFailed: On transport errors, non-2xx status or bad payload
    """
    form = {
        "grant_type": "authorization_code",
        "code": code,
        "redirect_uri": redirect_uri,
        "client_id": CLIENT_ID,
        "code_verifier": pkce.verifier,
    }

    logger.info(f"Exchanging authorization code for tokens at {TOKEN_URL}")

    try:
        response = await _post_token_request(form, timeout)
    except httpx.TimeoutException as e:
        logger.error(f"Token exchange timed out after {timeout} seconds: {e}")
        raise TokenExchangeFailed("Token exchange failed: timeout") from e
    except httpx.RequestError as e:
        logger.error(f"Token exchange request failed: {e}")
        raise TokenExchangeFailed(f"Token exchange failed: {e}") from e

    logger.debug(f"Token exchange response status: {response.status_code}")

    if not response.is_success:
        logger.error(f"Token exchange failed with status {response.status_code}: {response.text}")
        raise TokenExchangeFailed(f"Token exchange failed: {response.status_code}")

    try:
        tokens = _parse_token_payload(response)
    except (json.JSONDecodeError, ValueError) as e:
        logger.error(f"Failed to parse token exchange response: {e}")
        raise TokenExchangeFailed("Token exchange failed: invalid response") from e

    if not tokens.access_token or not tokens.refresh_token:
        logger.error("Token exchange response missing required tokens")
        raise TokenExchangeFailed("Token exchange failed: missing tokens")

    logger.info("Successfully exchanged authorization code for tokens")
    return tokens


async def refresh_access_token(
    refresh_token: str,
    timeout: float = TOKEN_EXCHANGE_TIMEOUT,
) -> TokenResponse:
    """
    Refresh access token using refresh token.

    The issuer may omit a new refresh token; the previous one is kept then.

    Args:
        refresh_token: OAuth refresh token
        timeout: Request timeout in seconds

    Returns:
        TokenResponse

    Raises:
        TokenRefreshFailed: On transport errors, non-2xx status or bad payload
    """
    if not refresh_token:
        raise TokenRefreshFailed("Token refresh failed: no refresh token")

    form = {
        "grant_type": "refresh_token",
        "refresh_token": refresh_token,
        "client_id": CLIENT_ID,
    }

    try:
        response = await _post_token_request(form, timeout)
    except httpx.RequestError as e:
        logger.error(f"Token refresh request failed: {e}")
        raise TokenRefreshFailed(f"Token refresh failed: {e}") from e

    if not response.is_success:
        logger.error(f"Token refresh failed with status {response.status_code}: {response.text}")
        raise TokenRefreshFailed(f"Token refresh failed: {response.status_code}")

    try:
        tokens = _parse_token_payload(response)
    except (json.JSONDecodeError, ValueError) as e:
        logger.error(f"Failed to parse token refresh response: {e}")
        raise TokenRefreshFailed("Token refresh failed: invalid response") from e

    if not tokens.access_token:
        logger.error("Token refresh response missing access token")
        raise TokenRefreshFailed("Token refresh failed: missing access token")

    if not tokens.refresh_token:
        tokens.refresh_token = refresh_token

    logger.info("Successfully refreshed Codex OAuth tokens")
    return tokens
