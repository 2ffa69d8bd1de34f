"""Shared fixtures for the test suite"""

import base64
import json
import time

import pytest

from codex_oauth import CredentialStore, PersistedCredential


def make_jwt(claims: dict) -> str:
    """Build an unsigned JWT carrying the given claims"""
    def encode(part: dict) -> str:
        return base64.urlsafe_b64encode(json.dumps(part).encode()).decode().rstrip("=")

    return f"{encode({'alg': 'none', 'typ': 'JWT'})}.{encode(claims)}.signature"


def now_ms() -> int:
    return int(time.time() * 1000)


@pytest.fixture
def store(tmp_path):
    return CredentialStore(tmp_path / ".stackfish" / "auth.json")


@pytest.fixture
def valid_credential():
    return PersistedCredential(
        access="access-token",
        refresh="refresh-token",
        expires_at_ms=now_ms() + 3600 * 1000,
        account_id="acct_123",
    )


@pytest.fixture
def expired_credential():
    return PersistedCredential(
        access="old-access",
        refresh="old-refresh",
        expires_at_ms=now_ms() - 1000,
        account_id="acct_old",
    )
