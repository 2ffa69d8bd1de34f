"""
OAuth credential lifecycle management
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from .constants import DEFAULT_EXPIRES_IN
from .exceptions import NotConnected
from .jwt_utils import extract_account_id
from .models import PersistedCredential, TokenResponse
from .storage import CredentialStore
from .token_exchange import refresh_access_token

logger = logging.getLogger(__name__)

Refresher = Callable[[str], Awaitable[TokenResponse]]


class CredentialAccessor:
    """Hands out a currently valid credential, refreshing it when expired"""

    def __init__(
        self,
        store: Optional[CredentialStore] = None,
        refresher: Optional[Refresher] = None,
    ):
        """
        Initialize credential accessor.

        Args:
            store: Credential store (creates default if None)
            refresher: Coroutine performing the refresh-token exchange
        """
        self.store = store or CredentialStore()
        self._refresh = refresher or refresh_access_token
        self._lock = asyncio.Lock()

    def is_connected(self) -> bool:
        """Check whether a credential is stored"""
        return self.store.exists()

    async def get_valid_credential(self) -> PersistedCredential:
        """
        Return a credential whose access token is usable now.

        Concurrent callers share a single refresh.

        Returns:
            PersistedCredential

        Raises:
            NotConnected: No credential is stored
            TokenRefreshFailed: The credential was expired and refresh failed
        """
        credential = self.store.load()
        if credential is None:
            raise NotConnected()
        if not credential.is_expired():
            return credential

        async with self._lock:
            # Another caller may have refreshed while we waited
            credential = self.store.load()
            if credential is None:
                raise NotConnected()
            if not credential.is_expired():
                return credential
            return await self._refresh_credential(credential)

    async def _refresh_credential(self, credential: PersistedCredential) -> PersistedCredential:
        logger.info("Codex access token expired, refreshing...")

        tokens = await self._refresh(credential.refresh)
        account_id = extract_account_id(tokens) or credential.account_id

        updated = PersistedCredential.from_tokens(tokens, account_id, DEFAULT_EXPIRES_IN)

        if self.store.save(updated):
            logger.info("Access token refreshed and saved")
        else:
            logger.error("Failed to save refreshed credential; using it for this process only")
        return updated
