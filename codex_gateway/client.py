"""
Streaming gateway for the Codex Responses API.

Fans one completion request out over a chain of candidate models with a
bounded number of attempts per candidate and returns the streamed text.
"""
import asyncio
import json
import logging
import uuid
from typing import AsyncIterator, Iterable, Optional, Sequence, Union

import httpx

from settings import (
    CODEX_API_ENDPOINT,
    CODEX_FALLBACK_MODELS,
    CODEX_MAX_ATTEMPTS,
    CODEX_ORIGINATOR,
    CODEX_USER_AGENT,
    CONNECT_TIMEOUT,
    READ_TIMEOUT,
    REQUEST_TIMEOUT,
)
import settings
from codex_oauth import CredentialAccessor, PersistedCredential
from stream_debug import StreamTracer, maybe_create_stream_tracer
from .exceptions import FallbackExhausted, GatewayError, UpstreamHTTPError, UpstreamTransientError
from .fallback import RetryDecision, build_fallback_chain, decide, is_retryable
from .request_builder import Message, ResponsesPayload, build_headers, build_request_body, build_response_input
from .sse_parser import collect_output, iter_sse_events

logger = logging.getLogger(__name__)


class CodexGateway:
    """Executes completion requests against the Codex Responses API"""

    def __init__(
        self,
        accessor: Optional[CredentialAccessor] = None,
        endpoint: str = CODEX_API_ENDPOINT,
        fallback_models: Optional[Iterable[str]] = None,
        max_attempts: int = CODEX_MAX_ATTEMPTS,
        request_timeout: float = REQUEST_TIMEOUT,
        originator: str = CODEX_ORIGINATOR,
        user_agent: str = CODEX_USER_AGENT,
    ):
        """Initialize gateway

        Args:
            accessor: Credential accessor (creates default if None)
            endpoint: Responses API endpoint
            fallback_models: Fixed priority list appended after the requested model
            max_attempts: Attempts per candidate model
            request_timeout: Total budget for a single attempt, in seconds
            originator: Originator header value
            user_agent: User-Agent header value
        """
        self.accessor = accessor or CredentialAccessor()
        self.endpoint = endpoint
        self.fallback_models = list(CODEX_FALLBACK_MODELS if fallback_models is None else fallback_models)
        self.max_attempts = max(1, max_attempts)
        self.request_timeout = request_timeout
        self.originator = originator
        self.user_agent = user_agent

    async def complete(
        self,
        messages: Union[str, Sequence[Message]],
        model: str,
        is_json: bool = False,
        request_id: Optional[str] = None,
    ) -> str:
        """Run one logical completion request

        Args:
            messages: Chat messages (or a bare prompt string)
            model: Requested model, tried first
            is_json: Ask for JSON-only output
            request_id: Request ID for logging

        Returns:
            Accumulated output text (empty when the stream carried none)

        Raises:
            NotConnected: No credential is stored
            TokenRefreshFailed: The credential could not be refreshed
            UpstreamHTTPError: A non-retryable status was returned
            FallbackExhausted: Every candidate used up its attempts
        """
        request_id = request_id or uuid.uuid4().hex[:8]

        credential = await self.accessor.get_valid_credential()
        payload = build_response_input(messages, is_json)
        chain = build_fallback_chain(model, self.fallback_models)

        last_error: Optional[GatewayError] = None
        for candidate in chain:
            for attempt in range(self.max_attempts):
                try:
                    return await self._attempt(candidate, payload, credential, request_id)
                except GatewayError as e:
                    last_error = e
                    decision = decide(e.status, attempt, attempt == self.max_attempts - 1)
                    logger.warning(
                        f"[{request_id}] {candidate} attempt {attempt + 1}/{self.max_attempts} failed "
                        f"(status={e.status}): {decision.value}"
                    )
                    if decision is RetryDecision.FAIL:
                        raise
                    if decision is RetryDecision.NEXT_CANDIDATE:
                        break

        logger.error(f"[{request_id}] All candidate models failed: {chain}")
        raise FallbackExhausted(last_error) from last_error

    async def _attempt(
        self,
        model: str,
        payload: ResponsesPayload,
        credential: PersistedCredential,
        request_id: str,
    ) -> str:
        try:
            return await asyncio.wait_for(
                self._call_model(model, payload, credential, request_id),
                timeout=self.request_timeout,
            )
        except asyncio.TimeoutError as e:
            raise UpstreamTransientError(f"Codex request timed out after {self.request_timeout}s") from e

    async def _call_model(
        self,
        model: str,
        payload: ResponsesPayload,
        credential: PersistedCredential,
        request_id: str,
    ) -> str:
        """Make one streamed request and decode it

        Raises:
            UpstreamHTTPError: Non-2xx status outside the transient class
            UpstreamTransientError: 429/500/503 or a transport failure
        """
        headers = build_headers(credential.access, credential.account_id, self.originator, self.user_agent)
        body = build_request_body(model, payload)

        tracer = self._open_tracer(model, request_id)

        logger.debug(f"[{request_id}] Streaming from Codex: {self.endpoint} model={model}")
        logger.debug(f"[{request_id}] Request payload: {json.dumps(body)[:2000]}")

        timeout = httpx.Timeout(READ_TIMEOUT, connect=CONNECT_TIMEOUT)
        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                async with client.stream("POST", self.endpoint, json=body, headers=headers) as response:
                    if tracer:
                        tracer.log_note(f"Codex responded with status={response.status_code}")

                    if not response.is_success:
                        text = (await response.aread()).decode("utf-8", "replace")
                        status = response.status_code
                        logger.error(f"[{request_id}] Codex error {status}: {text[:500]}")
                        if tracer:
                            tracer.log_error(f"status={status} body={text}")

                        message = f"{status} {text}" if text else f"{status}"
                        error_cls = UpstreamTransientError if is_retryable(status) else UpstreamHTTPError
                        raise error_cls(message, status=status)

                    output = await collect_output(self._traced_events(response, tracer))
                    logger.debug(f"[{request_id}] Codex stream complete ({len(output)} chars)")
                    return output

        except httpx.RequestError as e:
            # Transport and body decoding failures carry no status
            logger.warning(f"[{request_id}] Codex request error: {e}")
            if tracer:
                tracer.log_error(f"request error: {e}")
            raise UpstreamTransientError(f"Codex request failed: {e}") from e

        finally:
            if tracer:
                tracer.close()

    @staticmethod
    def _open_tracer(model: str, request_id: str) -> Optional[StreamTracer]:
        # Read at call time so CLI overrides of the settings module apply
        try:
            return maybe_create_stream_tracer(
                settings.STREAM_TRACE_ENABLED,
                request_id,
                model,
                settings.STREAM_TRACE_DIR,
                settings.STREAM_TRACE_MAX_BYTES,
            )
        except OSError as e:
            logger.warning(f"[{request_id}] Stream tracing disabled for this attempt: {e}")
            return None

    @staticmethod
    async def _traced_events(response: httpx.Response, tracer: Optional[StreamTracer]) -> AsyncIterator[dict]:
        async def raw_chunks() -> AsyncIterator[bytes]:
            async for chunk in response.aiter_bytes():
                if tracer:
                    tracer.log_raw_chunk(chunk)
                yield chunk

        async for event in iter_sse_events(raw_chunks()):
            if tracer:
                tracer.log_event(event.get("type"))
            yield event
