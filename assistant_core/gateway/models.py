"""Request and response models for the language model gateway."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from assistant_core.chat.models import ChatMessage
from assistant_core.constants import DEFAULT_MAX_OUTPUT_TOKENS, DEFAULT_MODEL


class ModelRequest(BaseModel):
    """A chat request in the provider's Messages API shape."""

    model: str = DEFAULT_MODEL
    max_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS
    messages: list[ChatMessage]
    system: str | None = None

    def last_user_message(self) -> str:
        """Content of the most recent user message, or an empty string."""
        for message in reversed(self.messages):
            if message.role == "user":
                return message.content
        return ""

    def to_provider_payload(self) -> dict[str, Any]:
        """Serialize for the provider.

        The Messages API only accepts user/assistant turns, so system-role
        messages (e.g. the conversation summary) are folded into `system`.
        """
        system_parts = [self.system] if self.system else []
        system_parts.extend(m.content for m in self.messages if m.role == "system")
        payload: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [m.model_dump() for m in self.messages if m.role != "system"],
        }
        if system_parts:
            payload["system"] = "\n\n".join(system_parts)
        return payload


class ProviderReply(BaseModel):
    """Assistant text returned by the provider plus optional usage numbers."""

    text: str
    usage: dict[str, Any] | None = None


class ProxyChatRequest(BaseModel):
    """Body accepted by the local proxy and the managed function."""

    messages: list[ChatMessage] = Field(..., min_length=1)
    model: str = DEFAULT_MODEL
    max_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS
    system: str | None = None
    conversation_id: str | None = Field(None, alias="conversationId")
