"""Prompt templates and text builders for summaries, titles and previews."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from assistant_core.constants import FALLBACK_TITLE, MAX_TITLE_LENGTH, PREVIEW_WORDS

if TYPE_CHECKING:
    from collections.abc import Sequence

    from assistant_core.chat.context import HistoryMessage

SUMMARY_PROMPT = """Please provide a concise summary (3-4 sentences) of this conversation, focusing on key decisions, requirements, and action items:

{transcript}

Summary:""".strip()

TITLE_PROMPT = """Based on this conversation, create a short, descriptive title (max 6 words):

User: {user_message}
Assistant: {assistant_excerpt}...

Title:""".strip()

FALLBACK_REPLY = """I'd love to help you with "{question}"

🚨 **AI Proxy Server Not Running**

To enable full AI responses on web, please start the proxy server:

**Quick Fix:**
```bash
# In a new terminal window:
assistant-core proxy --port 3001
```

📱 **Alternative:** Use the mobile app for full AI functionality:
1. Install Expo Go
2. Scan QR code from terminal
3. Navigate to AI Assistant

Once the proxy server is running, refresh this page and try again!"""

_TITLE_PREFIX = re.compile(r"^(Title:|AI Chat|Conversation):?\s*", re.IGNORECASE)
_TITLE_EXCERPT_CHARS = 200
_FALLBACK_TITLE_CHARS = 30
_QUESTION_CHARS = 50


def truncate(text: str, limit: int) -> str:
    """Cut `text` to `limit` characters, adding an ellipsis when shortened."""
    return f"{text[:limit]}..." if len(text) > limit else text


def build_summary_prompt(messages: Sequence[HistoryMessage]) -> str:
    """Summary request over a transcript of `role: content` lines."""
    transcript = "\n\n".join(f"{m.role}: {m.content}" for m in messages)
    return SUMMARY_PROMPT.format(transcript=transcript)


def build_title_prompt(user_message: str, assistant_response: str) -> str:
    """Title request from the first exchange of a conversation."""
    return TITLE_PROMPT.format(
        user_message=user_message,
        assistant_excerpt=assistant_response[:_TITLE_EXCERPT_CHARS],
    )


def clean_title(raw: str) -> str:
    """Strip boilerplate prefixes from a model-generated title."""
    title = _TITLE_PREFIX.sub("", raw).strip()[:MAX_TITLE_LENGTH]
    return title or FALLBACK_TITLE


def fallback_title(user_message: str) -> str:
    """Title used when the model could not generate one."""
    return f"Chat: {truncate(user_message, _FALLBACK_TITLE_CHARS)}"


def build_preview(content: str) -> str:
    """First ten words of a message, with an ellipsis when shortened."""
    preview = " ".join(content.strip().split()[:PREVIEW_WORDS])
    return f"{preview}..." if len(preview) < len(content.strip()) else preview


def build_fallback_reply(question: str) -> str:
    """Instructional reply used when no model transport is reachable."""
    return FALLBACK_REPLY.format(question=truncate(question, _QUESTION_CHARS))
