"""Chat context management: token budgeting, importance scoring, summaries.

Example:
    from assistant_core.chat import build_context, score_message

    importance = score_message("We need to decide on the database architecture")
    messages = build_context(history, summary=None, new_message="What next?")

"""

from assistant_core.chat.context import assemble_context, build_context
from assistant_core.chat.models import (
    ChatMessage,
    ChatSession,
    Conversation,
    ConversationDetails,
    Message,
    MessageImportance,
    ScoredMessage,
    SendResult,
)
from assistant_core.chat.scoring import score_message
from assistant_core.chat.tokens import estimate_tokens

__all__ = [
    "ChatMessage",
    "ChatSession",
    "Conversation",
    "ConversationDetails",
    "Message",
    "MessageImportance",
    "ScoredMessage",
    "SendResult",
    "assemble_context",
    "build_context",
    "estimate_tokens",
    "score_message",
]
