"""
Authorization URL construction for the Codex OAuth flow
"""
from urllib.parse import urlencode

from .constants import AUTHORIZE_URL, CLIENT_ID, SCOPE
from .models import PkceCodes


def build_authorize_url(redirect_uri: str, pkce: PkceCodes, state: str) -> str:
    """
    Build the issuer authorization URL.

    Args:
        redirect_uri: Local callback listener URI
        pkce: PKCE pair for this attempt (only the challenge is sent)
        state: Anti-CSRF state token

    Returns:
        str: Full authorization URL
    """
    params = {
        "response_type": "code",
        "client_id": CLIENT_ID,
        "redirect_uri": redirect_uri,
        "scope": SCOPE,
        "code_challenge": pkce.challenge,
        "code_challenge_method": "S256",
        # Codex CLI parameters (required for token exchange)
        "id_token_add_organizations": "true",
        "codex_cli_simplified_flow": "true",
        "state": state,
    }

    return f"{AUTHORIZE_URL}?{urlencode(params)}"
