"""
Authorization session management for the Codex OAuth flow

Owns the single in-flight authorization attempt and the observable auth
status. Starting a new attempt supersedes the previous one; a redirect, a
timeout or a cancellation ends it.
"""
import asyncio
import hmac
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional

from settings import AUTHORIZATION_TIMEOUT, OAUTH_CALLBACK_PORT
from .authorization import build_authorize_url
from .callback_server import CallbackListener
from .constants import DEFAULT_EXPIRES_IN, redirect_uri
from .exceptions import (
    AuthorizationError,
    CallbackTimeout,
    Cancelled,
    InvalidState,
    MissingCode,
    ProviderDenied,
    TokenExchangeFailed,
)
from .jwt_utils import extract_account_id
from .models import (
    AuthorizationRequest,
    AuthState,
    AuthStatus,
    CallbackOutcome,
    PersistedCredential,
    PkceCodes,
    TokenResponse,
)
from .pkce import generate_pkce, generate_state
from .storage import CredentialStore
from .token_exchange import exchange_code_for_tokens

logger = logging.getLogger(__name__)

CodeExchanger = Callable[[str, str, PkceCodes], Awaitable[TokenResponse]]

# Redirect problems the user or provider caused; everything else is a server failure
_CLIENT_ERRORS = (ProviderDenied, MissingCode, InvalidState)


@dataclass(eq=False)
class AuthorizationSession:
    """One pending authorization attempt"""
    pkce: PkceCodes
    state: str
    timer: Optional[asyncio.Task] = field(default=None, repr=False)


class AuthorizationSessionManager:
    """Owns the pending authorization attempt and the auth status"""

    def __init__(
        self,
        store: Optional[CredentialStore] = None,
        listener: Optional[CallbackListener] = None,
        exchanger: Optional[CodeExchanger] = None,
        timeout: float = AUTHORIZATION_TIMEOUT,
        port: int = OAUTH_CALLBACK_PORT,
    ):
        """
        Initialize session manager.

        Args:
            store: Credential store written on success (creates default if None)
            listener: Callback listener (creates one bound to this manager if None)
            exchanger: Coroutine exchanging an authorization code for tokens
            timeout: Seconds an attempt may stay pending
            port: Local callback port used in the redirect URI
        """
        self.store = store or CredentialStore()
        self.listener = listener or CallbackListener(self.handle_callback, self.cancel, port=port)
        self.timeout = timeout
        self.redirect_uri = redirect_uri(port)
        self._exchange = exchanger or exchange_code_for_tokens
        self._status = AuthStatus()
        self._session: Optional[AuthorizationSession] = None
        self._lock = asyncio.Lock()

    @property
    def auth_status(self) -> AuthStatus:
        return AuthStatus(status=self._status.status, error=self._status.error)

    @property
    def session(self) -> Optional[AuthorizationSession]:
        return self._session

    async def start(self) -> AuthorizationRequest:
        """
        Begin a new authorization attempt.

        Any pending attempt is discarded first (its timer is cancelled).

        Returns:
            AuthorizationRequest with the URL to open in the browser

        Raises:
            OSError: The callback listener could not bind its port
        """
        async with self._lock:
            await self.listener.start()

            pkce = generate_pkce()
            state = generate_state()

            self._discard_session()
            session = AuthorizationSession(pkce=pkce, state=state)
            session.timer = asyncio.get_running_loop().create_task(self._expire(session))
            self._session = session
            self._status = AuthStatus(status=AuthState.PENDING)

        logger.info("Authorization attempt started")
        return AuthorizationRequest(url=build_authorize_url(self.redirect_uri, pkce, state))

    async def handle_callback(self, params: Dict[str, str]) -> CallbackOutcome:
        """
        Drive the pending attempt from the provider redirect.

        Args:
            params: Redirect query parameters

        Returns:
            CallbackOutcome for the listener to render
        """
        async with self._lock:
            try:
                await self._complete(params)
            except AuthorizationError as e:
                self._fail(e)
                status = 400 if isinstance(e, _CLIENT_ERRORS) else 500
                return CallbackOutcome(ok=False, message=str(e), http_status=status)

            self._finish(AuthStatus(status=AuthState.SUCCESS))
            logger.info("Authorization completed successfully")
            return CallbackOutcome(ok=True)

    async def _complete(self, params: Dict[str, str]) -> None:
        error = params.get("error")
        if error:
            raise ProviderDenied(params.get("error_description") or error)

        code = params.get("code")
        if not code:
            raise MissingCode()

        # Must be decided before any request to the issuer
        session = self._session
        state = params.get("state") or ""
        if session is None or not hmac.compare_digest(state.encode("utf-8"), session.state.encode("utf-8")):
            raise InvalidState()

        try:
            tokens = await self._exchange(code, self.redirect_uri, session.pkce)
            credential = PersistedCredential.from_tokens(tokens, extract_account_id(tokens), DEFAULT_EXPIRES_IN)
        except AuthorizationError:
            raise
        except Exception as e:
            logger.exception(f"Unexpected error during token exchange: {e}")
            raise TokenExchangeFailed(f"Token exchange failed: {e}") from e

        if not self.store.save(credential):
            raise AuthorizationError("Failed to save credential")

    async def cancel(self) -> None:
        """Cancel the pending attempt, if any"""
        async with self._lock:
            if self._session is None:
                logger.debug("Cancel requested with no pending authorization")
                self.listener.request_stop()
                return
            self._fail(Cancelled())

    async def disconnect(self) -> None:
        """Forget the stored credential and reset the flow to idle"""
        async with self._lock:
            self._discard_session()
            self.listener.request_stop()
            self.store.clear()
            self._status = AuthStatus()
        logger.info("Disconnected Codex credential")

    async def shutdown(self) -> None:
        """Release the timer and listener (process exit)"""
        async with self._lock:
            self._discard_session()
        await self.listener.stop()

    def status(self) -> Dict[str, Any]:
        """
        Status query surface.

        A stored credential with no flow activity reports success.

        Returns:
            Dictionary with status, optional error, connected and accountId
        """
        credential = self.store.load()
        current = self._status

        state = current.status
        if credential is not None and state == AuthState.IDLE:
            state = AuthState.SUCCESS

        result: Dict[str, Any] = {"status": state.value}
        if current.error:
            result["error"] = current.error
        result["connected"] = credential is not None
        result["accountId"] = credential.account_id if credential else None
        return result

    async def _expire(self, session: AuthorizationSession) -> None:
        await asyncio.sleep(self.timeout)
        async with self._lock:
            if self._session is session:
                self._fail(CallbackTimeout())

    def _fail(self, error: AuthorizationError) -> None:
        logger.warning(f"Authorization failed: {error}")
        self._finish(AuthStatus(status=AuthState.ERROR, error=str(error)))

    def _finish(self, status: AuthStatus) -> None:
        self._status = status
        self._discard_session()
        self.listener.request_stop()

    def _discard_session(self) -> None:
        session, self._session = self._session, None
        if session is None or session.timer is None:
            return
        if session.timer is not asyncio.current_task():
            session.timer.cancel()
