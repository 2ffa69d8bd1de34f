"""
PKCE (Proof Key for Code Exchange) and state generation
"""
import base64
import hashlib
import secrets

from .constants import PKCE_VERIFIER_ALPHABET, PKCE_VERIFIER_LENGTH
from .models import PkceCodes


def base64url_encode(data: bytes) -> str:
    """Base64url encode without padding"""
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def generate_verifier(length: int = PKCE_VERIFIER_LENGTH) -> str:
    """
    Generate a random PKCE code verifier.

    One random byte is consumed per character and mapped into the unreserved
    alphabet by modulo. The mapping is slightly biased per character; overall
    entropy is still well above what RFC 7636 asks for.

    Args:
        length: Number of characters (43-128)

    Returns:
        str: Code verifier
    """
    alphabet_size = len(PKCE_VERIFIER_ALPHABET)
    return "".join(PKCE_VERIFIER_ALPHABET[b % alphabet_size] for b in secrets.token_bytes(length))


def compute_challenge(verifier: str) -> str:
    """S256 challenge: base64url(sha256(verifier)) without padding"""
    return base64url_encode(hashlib.sha256(verifier.encode("ascii")).digest())


def generate_pkce() -> PkceCodes:
    """
    Generate PKCE code verifier and challenge.

    Returns:
        PkceCodes: Tuple of (verifier, challenge)
    """
    verifier = generate_verifier()
    return PkceCodes(verifier=verifier, challenge=compute_challenge(verifier))


def generate_state() -> str:
    """
    Generate random state parameter for CSRF protection.

    Returns:
        str: base64url encoding of 32 random bytes
    """
    return base64url_encode(secrets.token_bytes(32))
