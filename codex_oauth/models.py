"""Data models for Codex OAuth authentication"""

import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional


class PkceCodes(NamedTuple):
    """PKCE code verifier and challenge pair"""
    verifier: str
    challenge: str


def _lifetime_seconds(value: Any) -> Optional[int]:
    """Token lifetime as whole seconds; absent, non-numeric or non-finite values yield None"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return int(value)


@dataclass
class TokenResponse:
    """Token endpoint response

    Attributes:
        id_token: JWT ID token containing user identity (may be empty)
        access_token: Bearer token for API authentication
        refresh_token: Token for refreshing expired access tokens
        expires_in: Lifetime of the access token in seconds, if reported
    """
    id_token: str
    access_token: str
    refresh_token: str
    expires_in: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenResponse":
        expires_in = data.get("expires_in")
        return cls(
            id_token=data.get("id_token") or "",
            access_token=data.get("access_token") or "",
            refresh_token=data.get("refresh_token") or "",
            expires_in=_lifetime_seconds(expires_in),
        )


@dataclass
class PersistedCredential:
    """The single on-disk credential record

    Attributes:
        access: OAuth access token
        refresh: OAuth refresh token
        expires_at_ms: Access token expiry as epoch milliseconds
        account_id: ChatGPT account identifier, when one could be extracted
    """
    access: str
    refresh: str
    expires_at_ms: int
    account_id: Optional[str] = None

    def is_expired(self, now_ms: Optional[int] = None) -> bool:
        """Check whether the access token can no longer be used"""
        if now_ms is None:
            now_ms = int(time.time() * 1000)
        return not self.access or self.expires_at_ms < now_ms

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the on-disk JSON shape"""
        data: Dict[str, Any] = {
            "type": "oauth",
            "access": self.access,
            "refresh": self.refresh,
            "expires": self.expires_at_ms,
        }
        if self.account_id:
            data["accountId"] = self.account_id
        return data

    @classmethod
    def from_dict(cls, data: Any) -> Optional["PersistedCredential"]:
        """Load from the on-disk JSON shape

        Returns:
            PersistedCredential, or None when the shape is not recognised
        """
        if not isinstance(data, dict) or data.get("type") != "oauth":
            return None

        access = data.get("access")
        refresh = data.get("refresh")
        expires = data.get("expires")
        account_id = data.get("accountId")

        if not isinstance(access, str) or not isinstance(refresh, str) or not refresh:
            return None
        if isinstance(expires, bool) or not isinstance(expires, (int, float)) or not expires:
            return None

        return cls(
            access=access,
            refresh=refresh,
            expires_at_ms=int(expires),
            account_id=account_id if isinstance(account_id, str) and account_id else None,
        )

    @classmethod
    def from_tokens(
        cls,
        tokens: TokenResponse,
        account_id: Optional[str],
        default_expires_in: int,
        now_ms: Optional[int] = None,
    ) -> "PersistedCredential":
        """Build a full replacement credential from a token response"""
        if now_ms is None:
            now_ms = int(time.time() * 1000)
        expires_in = tokens.expires_in if tokens.expires_in is not None else default_expires_in
        return cls(
            access=tokens.access_token,
            refresh=tokens.refresh_token,
            expires_at_ms=now_ms + expires_in * 1000,
            account_id=account_id,
        )


class AuthState(str, Enum):
    """Observable state of the authorization flow"""
    IDLE = "idle"
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class AuthStatus:
    """Process-wide authorization status"""
    status: AuthState = AuthState.IDLE
    error: Optional[str] = None


class AuthorizationRequest(NamedTuple):
    """What a caller needs to send the user to the issuer"""
    url: str
    method: str = "auto"
    instructions: str = "Complete authorization in your browser. This window will close automatically."


class CallbackOutcome(NamedTuple):
    """Result of handling one provider redirect, for rendering"""
    ok: bool
    message: Optional[str] = None
    http_status: int = 200
