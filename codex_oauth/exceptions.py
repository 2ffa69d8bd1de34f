"""
OAuth exception classes for the Codex credential lifecycle.

Authorization-flow errors are recorded into the observable auth status by the
session manager; they never escape the callback listener. Token errors
propagate to whoever asked for a credential.
"""


class OAuthError(Exception):
    """Base exception for all Codex OAuth errors."""

    pass


class NotConnected(OAuthError):
    """No credential is stored (authorize first)."""

    def __init__(self, message: str = "OpenAI OAuth is not connected. Connect ChatGPT subscription to use Codex models."):
        super().__init__(message)


class AuthorizationError(OAuthError):
    """An authorization attempt ended in the error state."""

    pass


class InvalidState(AuthorizationError):
    """Redirect state does not match the pending session (possible CSRF)."""

    def __init__(self, message: str = "Invalid state - potential CSRF attack"):
        super().__init__(message)


class MissingCode(AuthorizationError):
    """Redirect carried neither an error nor an authorization code."""

    def __init__(self, message: str = "missing authorization code"):
        super().__init__(message)


class ProviderDenied(AuthorizationError):
    """Redirect carried an error from the identity provider."""

    pass


class CallbackTimeout(AuthorizationError):
    """No redirect arrived before the session deadline."""

    def __init__(self, message: str = "OAuth callback timeout - authorization took too long"):
        super().__init__(message)


class Cancelled(AuthorizationError):
    """The attempt was cancelled through the cancel trigger."""

    def __init__(self, message: str = "login cancelled"):
        super().__init__(message)


class TokenExchangeFailed(AuthorizationError):
    """Failed to exchange the authorization code for tokens."""

    pass


class TokenRefreshFailed(OAuthError):
    """Failed to refresh the access token using the refresh token."""

    pass
