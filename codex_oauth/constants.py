"""
OAuth constants for the Codex (ChatGPT subscription) issuer
"""

# OAuth Configuration
CLIENT_ID = "app_EMoamEEZ73f0CkXaXp7hrann"
ISSUER = "https://auth.openai.com"
AUTHORIZE_URL = f"{ISSUER}/oauth/authorize"
TOKEN_URL = f"{ISSUER}/oauth/token"
SCOPE = "openid profile email offline_access"

# JWT claim paths for the ChatGPT account ID
AUTH_CLAIM_NAMESPACE = "https://api.openai.com/auth"
CHATGPT_ACCOUNT_ID_CLAIM = "chatgpt_account_id"

# OAuth callback listener
OAUTH_CALLBACK_HOST = "localhost"
OAUTH_CALLBACK_PATH = "/auth/callback"
OAUTH_CANCEL_PATH = "/cancel"

# Lifetime assumed when the issuer omits expires_in
DEFAULT_EXPIRES_IN = 3600

# PKCE verifier alphabet (RFC 7636 unreserved characters)
PKCE_VERIFIER_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-._~"
PKCE_VERIFIER_LENGTH = 43


def redirect_uri(port: int) -> str:
    """Redirect URI registered for the local callback listener"""
    return f"http://{OAUTH_CALLBACK_HOST}:{port}{OAUTH_CALLBACK_PATH}"
