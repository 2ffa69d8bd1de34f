"""
Codex OAuth credential lifecycle module
"""
from .constants import (
    CLIENT_ID,
    ISSUER,
    AUTHORIZE_URL,
    TOKEN_URL,
    SCOPE,
    OAUTH_CALLBACK_PATH,
    OAUTH_CANCEL_PATH,
    redirect_uri,
)
from .exceptions import (
    OAuthError,
    NotConnected,
    AuthorizationError,
    InvalidState,
    MissingCode,
    ProviderDenied,
    CallbackTimeout,
    Cancelled,
    TokenExchangeFailed,
    TokenRefreshFailed,
)
from .models import (
    PkceCodes,
    TokenResponse,
    PersistedCredential,
    AuthState,
    AuthStatus,
    AuthorizationRequest,
    CallbackOutcome,
)
from .pkce import generate_pkce, generate_state
from .authorization import build_authorize_url
from .jwt_utils import decode_jwt, extract_account_id, extract_account_id_from_claims
from .token_exchange import exchange_code_for_tokens, refresh_access_token
from .storage import CredentialStore
from .callback_server import CallbackListener
from .session import AuthorizationSession, AuthorizationSessionManager
from .token_manager import CredentialAccessor

__all__ = [
    # Constants
    "CLIENT_ID",
    "ISSUER",
    "AUTHORIZE_URL",
    "TOKEN_URL",
    "SCOPE",
    "OAUTH_CALLBACK_PATH",
    "OAUTH_CANCEL_PATH",
    "redirect_uri",
    # Errors
    "OAuthError",
    "NotConnected",
    "AuthorizationError",
    "InvalidState",
    "MissingCode",
    "ProviderDenied",
    "CallbackTimeout",
    "Cancelled",
    "TokenExchangeFailed",
    "TokenRefreshFailed",
    # Models
    "PkceCodes",
    "TokenResponse",
    "PersistedCredential",
    "AuthState",
    "AuthStatus",
    "AuthorizationRequest",
    "CallbackOutcome",
    # PKCE / authorization
    "generate_pkce",
    "generate_state",
    "build_authorize_url",
    # JWT utilities
    "decode_jwt",
    "extract_account_id",
    "extract_account_id_from_claims",
    # Token exchange
    "exchange_code_for_tokens",
    "refresh_access_token",
    # Storage / lifecycle
    "CredentialStore",
    "CallbackListener",
    "AuthorizationSession",
    "AuthorizationSessionManager",
    "CredentialAccessor",
]
