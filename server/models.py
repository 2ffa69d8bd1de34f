"""
Pydantic models for the gateway HTTP surface.
"""
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, Field

import settings


class ChatMessage(BaseModel):
    """Chat message"""
    role: str
    content: Optional[Union[str, List[Dict[str, Any]]]] = None


class CompletionRequest(BaseModel):
    """Single completion request routed through the gateway"""
    model: str = Field(default_factory=lambda: settings.DEFAULT_MODEL)
    messages: Union[str, List[ChatMessage]]
    json_output: bool = Field(default=False, alias="json")

    model_config = {"populate_by_name": True}

    def message_dicts(self) -> Union[str, List[Dict[str, Any]]]:
        if isinstance(self.messages, str):
            return self.messages
        return [m.model_dump() for m in self.messages]


class CompletionResponse(BaseModel):
    """Accumulated output text"""
    output: str


class AuthorizationResponse(BaseModel):
    """Where to send the user to authorize"""
    url: str
    method: str
    instructions: str
