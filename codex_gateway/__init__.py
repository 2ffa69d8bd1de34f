"""
Codex streaming gateway module
"""
from .exceptions import (
    GatewayError,
    UpstreamHTTPError,
    UpstreamTransientError,
    FallbackExhausted,
)
from .fallback import RetryDecision, build_fallback_chain, decide
from .request_builder import (
    ResponsesPayload,
    build_response_input,
    build_request_body,
    build_headers,
    message_text,
)
from .sse_parser import SSEParser, OutputAccumulator, iter_sse_events, collect_output
from .client import CodexGateway

__all__ = [
    # Errors
    "GatewayError",
    "UpstreamHTTPError",
    "UpstreamTransientError",
    "FallbackExhausted",
    # Fallback policy
    "RetryDecision",
    "build_fallback_chain",
    "decide",
    # Request construction
    "ResponsesPayload",
    "build_response_input",
    "build_request_body",
    "build_headers",
    "message_text",
    # Stream decoding
    "SSEParser",
    "OutputAccumulator",
    "iter_sse_events",
    "collect_output",
    # Gateway
    "CodexGateway",
]
