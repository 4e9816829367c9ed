"""Chat data models for conversations and messages."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

Role = Literal["user", "assistant", "system"]


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


class ChatMessage(BaseModel):
    """A message as sent to the language model."""

    role: Role
    content: str


class Message(BaseModel):
    """A stored chat message. Immutable once created."""

    id: str = Field(..., description="Unique UUID for this message")
    user_id: str
    conversation_id: str
    role: Role
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)

    def to_chat(self) -> ChatMessage:
        """Strip storage fields, keeping the wire shape."""
        return ChatMessage(role=self.role, content=self.content)


class Conversation(BaseModel):
    """A chat conversation owned by a user, optionally tied to a project."""

    id: str
    user_id: str
    project_id: str | None = None
    title: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    """Free-form map holding `summary`, `last_summarized_at` and `preview`."""
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def summary(self) -> str | None:
        """Summary written by the summarizer, if any."""
        return self.metadata.get("summary") or None

    @property
    def preview(self) -> str | None:
        """Short preview of the first user message, if any."""
        return self.metadata.get("preview") or None


class MessageImportance(BaseModel):
    """Heuristic relevance of a historical message."""

    score: int = 0
    matched_keywords: list[str] = Field(default_factory=list)
    is_key_decision: bool = False
    is_requirement: bool = False
    is_action_item: bool = False
    is_high_priority: bool = False
    is_technical_decision: bool = False


class ScoredMessage(BaseModel):
    """A history message plus its importance. Recomputed on every assembly."""

    role: Role
    content: str
    created_at: datetime | None = None
    importance: MessageImportance


class ChatSession(BaseModel):
    """Conversation listing row for the chat sessions screen."""

    id: str
    user_id: str
    project_id: str | None = None
    title: str
    preview: str
    message_count: int = 0
    last_message_at: datetime
    created_at: datetime
    updated_at: datetime


class ConversationDetails(BaseModel):
    """A conversation together with all of its messages."""

    conversation: Conversation
    messages: list[Message]


class SendResult(BaseModel):
    """Outcome of sending a chat message.

    When the model could not be reached, `persisted` is False and
    `assistant_message` is a synthesized error bubble.
    """

    user_message: Message
    assistant_message: Message
    persisted: bool = True
    error: str | None = None
