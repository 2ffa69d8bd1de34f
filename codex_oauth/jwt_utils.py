"""
JWT claim parsing and ChatGPT account ID extraction
"""
import base64
import binascii
import json
import logging
from typing import Any, Dict, Optional

from .constants import AUTH_CLAIM_NAMESPACE, CHATGPT_ACCOUNT_ID_CLAIM
from .models import TokenResponse

logger = logging.getLogger(__name__)


def decode_jwt(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode JWT payload without verification.

    Note: This only decodes the payload, does not verify signature.
    Claims are read for convenience metadata, never for trust decisions.

    Args:
        token: JWT token

    Returns:
        Decoded JWT payload as dictionary, or None if malformed
    """
    if not isinstance(token, str):
        return None

    # JWT structure: header.payload.signature
    parts = token.split(".")
    if len(parts) != 3:
        return None

    payload = parts[1]
    # JWT uses base64url without padding
    payload += "=" * (-len(payload) % 4)

    try:
        claims = json.loads(base64.urlsafe_b64decode(payload.encode("ascii")).decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError) as e:
        logger.debug(f"Could not decode JWT payload: {e}")
        return None

    return claims if isinstance(claims, dict) else None


def extract_account_id_from_claims(claims: Dict[str, Any]) -> Optional[str]:
    """
    Extract the ChatGPT account ID from decoded claims.

    Precedence: direct claim, then the auth namespace claim, then the first
    organization id.

    Args:
        claims: Decoded JWT payload

    Returns:
        Account ID if found, None otherwise
    """
    direct = claims.get(CHATGPT_ACCOUNT_ID_CLAIM)
    if isinstance(direct, str) and direct:
        return direct

    namespaced = claims.get(AUTH_CLAIM_NAMESPACE)
    if isinstance(namespaced, dict):
        account_id = namespaced.get(CHATGPT_ACCOUNT_ID_CLAIM)
        if isinstance(account_id, str) and account_id:
            return account_id

    organizations = claims.get("organizations")
    if isinstance(organizations, list) and organizations:
        first = organizations[0]
        if isinstance(first, dict):
            org_id = first.get("id")
            if isinstance(org_id, str) and org_id:
                return org_id

    return None


def extract_account_id(tokens: TokenResponse) -> Optional[str]:
    """
    Extract the account ID from a token response.

    The ID token is consulted first; the access token only when the ID token
    is absent or yields nothing.

    Args:
        tokens: Token endpoint response

    Returns:
        Account ID if found, None otherwise
    """
    for token in (tokens.id_token, tokens.access_token):
        if not token:
            continue
        claims = decode_jwt(token)
        if claims:
            account_id = extract_account_id_from_claims(claims)
            if account_id:
                return account_id
    return None
