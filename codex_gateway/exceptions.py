"""
Gateway exception classes.

Only the final outcome of the fallback policy reaches callers; per-attempt
failures are logged and absorbed.
"""
from typing import Optional


class GatewayError(Exception):
    """Base exception for gateway failures."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class UpstreamHTTPError(GatewayError):
    """Non-2xx response in the non-retryable class."""

    pass


class UpstreamTransientError(GatewayError):
    """Transient failure (429/500/503 or a transport error with no status)."""

    pass


class FallbackExhausted(GatewayError):
    """Every candidate model used up its attempts.

    Carries the last encountered error, whose status and message it repeats.
    """

    def __init__(self, last_error: Optional[GatewayError]):
        message = str(last_error) if last_error else "Codex request failed"
        super().__init__(message, status=last_error.status if last_error else None)
        self.last_error = last_error
