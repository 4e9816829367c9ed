"""Periodic conversation summaries stored in conversation metadata."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from assistant_core.chat.models import ChatMessage, utc_now
from assistant_core.chat.prompts import build_summary_prompt
from assistant_core.constants import SUMMARY_INTERVAL

if TYPE_CHECKING:
    from assistant_core.gateway import ModelGateway
    from assistant_core.store.base import DataStore

LOGGER = logging.getLogger(__name__)


def should_summarize(message_count: int, interval: int = SUMMARY_INTERVAL) -> bool:
    """True at every `interval`-th message."""
    return message_count > 0 and message_count % interval == 0


class ConversationSummarizer:
    """Summarize conversations through the gateway at fixed checkpoints."""

    def __init__(
        self,
        store: DataStore,
        gateway: ModelGateway,
        interval: int = SUMMARY_INTERVAL,
    ) -> None:
        """Initialize the summarizer."""
        self.store = store
        self.gateway = gateway
        self.interval = interval

    async def maybe_summarize(self, conversation_id: str, message_count: int) -> bool:
        """Summarize if `message_count` is a checkpoint. Returns whether it ran."""
        if not should_summarize(message_count, self.interval):
            return False
        await self.summarize(conversation_id)
        return True

    async def summarize(self, conversation_id: str) -> str | None:
        """Summarize the whole conversation and merge it into its metadata.

        Failures are logged and `None` is returned.
        """
        try:
            messages = await self.store.list_messages(conversation_id)
            if not messages:
                return None

            prompt = build_summary_prompt(messages)
            summary = await self.gateway.send(
                [ChatMessage(role="user", content=prompt)],
                allow_fallback=False,
            )

            conversation = await self.store.get_conversation(conversation_id)
            metadata = dict(conversation.metadata) if conversation else {}
            metadata["summary"] = summary
            metadata["last_summarized_at"] = utc_now().isoformat()
            await self.store.update_conversation(conversation_id, metadata=metadata)
        except Exception:
            LOGGER.exception("Failed to summarize conversation %s", conversation_id)
            return None

        LOGGER.info("Summarized conversation %s (%d messages)", conversation_id, len(messages))
        return summary
