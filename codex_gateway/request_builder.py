"""
Codex Responses API request construction
"""
import json
import uuid
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Union

BASELINE_INSTRUCTION = "You are a helpful assistant."
JSON_DIRECTIVE = "Return valid JSON only."

INSTRUCTION_ROLES = ("system", "developer")

Message = Dict[str, Any]


class ResponsesPayload(NamedTuple):
    """Input items plus the separate instructions block"""
    input: List[Dict[str, Any]]
    instructions: str


def message_text(message: Message) -> str:
    """
    Flatten message content into plain text.

    String content is returned as is; list content concatenates the text of
    its parts; anything else is JSON-serialised.

    Args:
        message: Chat message with role and content

    Returns:
        str: Message text (untrimmed)
    """
    content = message.get("content")
    if content is None:
        return ""
    if isinstance(content, str):
        return content

    if isinstance(content, list):
        parts = [
            part["text"]
            for part in content
            if isinstance(part, dict) and isinstance(part.get("text"), str) and part["text"]
        ]
        if parts:
            return "".join(parts)

    return json.dumps(content)


def _input_text_item(text: str) -> Dict[str, Any]:
    return {
        "type": "message",
        "role": "user",
        "content": [{"type": "input_text", "text": text}],
    }


def normalize_messages(messages: Union[str, Sequence[Message]]) -> List[Message]:
    """Accept a bare prompt string as a single user message"""
    if isinstance(messages, str):
        return [{"role": "user", "content": messages}]
    return list(messages)


def build_response_input(messages: Union[str, Sequence[Message]], is_json: bool = False) -> ResponsesPayload:
    """
    Convert chat messages into Responses API input and instructions.

    System and developer messages become the instructions block, after a
    fixed baseline instruction. Assistant messages are replayed as user turns
    labelled ``assistant:``. Messages that are empty after trimming are
    dropped.

    Args:
        messages: Chat messages (or a bare prompt string)
        is_json: Append the JSON-only directive to the instructions

    Returns:
        ResponsesPayload
    """
    instructions = [BASELINE_INSTRUCTION]
    items: List[Dict[str, Any]] = []

    for message in normalize_messages(messages):
        text = message_text(message).strip()
        if not text:
            continue

        role = message.get("role")
        if role in INSTRUCTION_ROLES:
            instructions.append(text)
        elif role == "assistant":
            items.append(_input_text_item(f"assistant: {text}"))
        else:
            items.append(_input_text_item(text))

    if is_json:
        instructions.append(JSON_DIRECTIVE)

    return ResponsesPayload(input=items, instructions="\n\n".join(instructions))


def build_request_body(model: str, payload: ResponsesPayload) -> Dict[str, Any]:
    """Request body for one candidate model"""
    return {
        "model": model,
        "input": payload.input,
        "instructions": payload.instructions,
        "store": False,
        "stream": True,
    }


def build_headers(
    access_token: str,
    account_id: Optional[str],
    originator: str,
    user_agent: str,
    session_id: Optional[str] = None,
) -> Dict[str, str]:
    """
    Build request headers for the Responses API.

    Args:
        access_token: OAuth access token
        account_id: ChatGPT account ID, sent only when known
        originator: Originator header value
        user_agent: User-Agent header value
        session_id: Session ID (a fresh one is generated if None)

    Returns:
        Dictionary of HTTP headers
    """
    headers = {
        "Content-Type": "application/json",
        "Accept": "text/event-stream",
        "Authorization": f"Bearer {access_token}",
        "originator": originator,
        "User-Agent": user_agent,
        "session_id": session_id or str(uuid.uuid4()),
    }
    if account_id:
        headers["ChatGPT-Account-Id"] = account_id
    return headers
