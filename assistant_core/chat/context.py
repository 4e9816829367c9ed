"""Context assembly: pick the prior messages to send under a token budget.

The most recent messages are always considered first, in chronological order.
Whatever budget remains is spent on the most important older messages.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from assistant_core.chat.models import ChatMessage, ScoredMessage
from assistant_core.chat.scoring import score_message
from assistant_core.chat.tokens import estimate_tokens
from assistant_core.constants import DEFAULT_CONTEXT_TOKENS, RECENT_MESSAGE_WINDOW
from assistant_core.errors import DataError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from assistant_core.store.base import DataStore

LOGGER = logging.getLogger(__name__)

SUMMARY_PREFIX = "Previous conversation summary: "


class HistoryMessage(Protocol):
    """Anything with a role and content, e.g. `Message` or `ChatMessage`."""

    role: str
    content: str


@dataclass
class ContextSelection:
    """Messages chosen for a request and the tokens they cost."""

    messages: list[ChatMessage] = field(default_factory=list)
    total_tokens: int = 0
    recent_count: int = 0
    important_count: int = 0


def score_history(history: Sequence[HistoryMessage]) -> list[ScoredMessage]:
    """Attach an importance record to every message."""
    return [
        ScoredMessage(
            role=message.role,
            content=message.content,
            created_at=getattr(message, "created_at", None),
            importance=score_message(message.content),
        )
        for message in history
    ]


def select_history(
    history: Sequence[HistoryMessage],
    summary: str | None = None,
    max_tokens: int = DEFAULT_CONTEXT_TOKENS,
    *,
    recent_window: int = RECENT_MESSAGE_WINDOW,
) -> ContextSelection:
    """Select history under `max_tokens`, counting the summary's cost.

    `history` must be ordered oldest first. The result keeps that order.
    """
    total = estimate_tokens(summary) if summary else 0
    split = max(len(history) - recent_window, 0)
    older, recent = history[:split], history[split:]

    recent_selected: list[HistoryMessage] = []
    for message in recent:
        tokens = estimate_tokens(message.content)
        if total + tokens > max_tokens:
            # A lone message bigger than the whole budget is sent whole
            if not recent_selected and tokens > max_tokens:
                recent_selected.append(message)
                total += tokens
            break
        recent_selected.append(message)
        total += tokens

    older_indices: list[int] = []
    if older and total < max_tokens:
        scored = score_history(older)
        # sorted() is stable, so equal scores keep chronological order
        ranked = sorted(range(len(scored)), key=lambda i: scored[i].importance.score, reverse=True)
        for index in ranked:
            tokens = estimate_tokens(scored[index].content)
            if total + tokens > max_tokens:
                break
            older_indices.append(index)
            total += tokens
        older_indices.sort()

    messages = [ChatMessage(role=older[i].role, content=older[i].content) for i in older_indices]
    messages.extend(ChatMessage(role=m.role, content=m.content) for m in recent_selected)
    return ContextSelection(
        messages=messages,
        total_tokens=total,
        recent_count=len(recent_selected),
        important_count=len(older_indices),
    )


def build_context(
    history: Sequence[HistoryMessage],
    summary: str | None,
    new_message: str,
    max_tokens: int = DEFAULT_CONTEXT_TOKENS,
    *,
    recent_window: int = RECENT_MESSAGE_WINDOW,
) -> list[ChatMessage]:
    """Build the message list for a model request.

    Layout: optional summary as a system message, selected history oldest
    first, then the new user message. The new message is not counted against
    the budget.
    """
    selection = select_history(history, summary, max_tokens, recent_window=recent_window)
    messages: list[ChatMessage] = []
    if summary:
        messages.append(ChatMessage(role="system", content=f"{SUMMARY_PREFIX}{summary}"))
    messages.extend(selection.messages)
    messages.append(ChatMessage(role="user", content=new_message))
    return messages


async def assemble_context(
    store: DataStore,
    conversation_id: str,
    new_message: str,
    max_tokens: int = DEFAULT_CONTEXT_TOKENS,
    *,
    recent_window: int = RECENT_MESSAGE_WINDOW,
    user_id: str | None = None,
) -> list[ChatMessage]:
    """Load a conversation's history and summary and build the request context.

    With `user_id`, a conversation owned by someone else raises `DataError`.
    """
    conversation = await store.get_conversation(conversation_id, user_id=user_id)
    if conversation is None and user_id is not None:
        msg = f"Conversation not found: {conversation_id}"
        raise DataError(msg)
    history = await store.list_messages(conversation_id)
    summary = conversation.summary if conversation else None

    messages = build_context(
        history,
        summary,
        new_message,
        max_tokens,
        recent_window=recent_window,
    )
    LOGGER.debug(
        "Assembled context for %s: %d of %d history messages (summary=%s)",
        conversation_id,
        len(messages) - 1 - (1 if summary else 0),
        len(history),
        bool(summary),
    )
    return messages
