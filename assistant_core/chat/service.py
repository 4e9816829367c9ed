"""Chat flow: context assembly, model call, persistence and summaries."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from uuid import uuid4

from assistant_core.chat.context import assemble_context
from assistant_core.chat.models import ChatMessage, ConversationDetails, Message, SendResult
from assistant_core.chat.prompts import (
    build_preview,
    build_title_prompt,
    clean_title,
    fallback_title,
)
from assistant_core.constants import (
    DEFAULT_CONTEXT_TOKENS,
    DEFAULT_CONVERSATION_TITLE,
    ERROR_REPLY,
    RECENT_MESSAGE_WINDOW,
)
from assistant_core.errors import AssistantCoreError, DataError, NotAuthenticatedError

if TYPE_CHECKING:
    from assistant_core.cache.cached_data import CachedDataService, Operation
    from assistant_core.cache.service import EntityType
    from assistant_core.chat.models import ChatSession, Role
    from assistant_core.chat.summarizer import ConversationSummarizer
    from assistant_core.gateway import ModelGateway
    from assistant_core.store.base import AuthProvider, DataStore

LOGGER = logging.getLogger(__name__)

_FIRST_EXCHANGE_COUNT = 2


class ChatService:
    """Conversations for the signed-in user.

    Every operation raises `NotAuthenticatedError` when nobody is signed in.
    """

    def __init__(
        self,
        store: DataStore,
        auth: AuthProvider,
        gateway: ModelGateway,
        summarizer: ConversationSummarizer,
        *,
        data: CachedDataService | None = None,
        context_tokens: int = DEFAULT_CONTEXT_TOKENS,
        recent_window: int = RECENT_MESSAGE_WINDOW,
    ) -> None:
        """Initialize the service.

        `data` is optional; when given, cached conversation lists are
        invalidated after every change.
        """
        self.store = store
        self.auth = auth
        self.gateway = gateway
        self.summarizer = summarizer
        self.data = data
        self.context_tokens = context_tokens
        self.recent_window = recent_window

    async def _require_user(self) -> str:
        user_id = await self.auth.get_current_user_id()
        if not user_id:
            msg = "User not authenticated"
            raise NotAuthenticatedError(msg)
        return user_id

    async def _invalidate(
        self,
        operation: Operation,
        entity_type: EntityType,
        entity_id: str,
        user_id: str,
    ) -> None:
        if self.data is not None:
            await self.data.invalidate_after_mutation(operation, entity_type, entity_id, user_id)

    async def create_conversation(self, project_id: str | None = None) -> str:
        """Create an empty conversation and return its id."""
        user_id = await self._require_user()
        conversation = await self.store.insert_conversation(
            user_id=user_id,
            title=DEFAULT_CONVERSATION_TITLE,
            project_id=project_id,
        )
        LOGGER.info("Created conversation %s", conversation.id)
        await self._invalidate("create", "conversation", conversation.id, user_id)
        return conversation.id

    async def send_message(self, conversation_id: str, content: str) -> SendResult:
        """Send a user message and store the exchange.

        If the model cannot be reached, nothing is stored and the result holds
        an error bubble instead of a reply. Raises `DataError` when the
        conversation does not belong to the signed-in user.
        """
        user_id = await self._require_user()
        messages = await assemble_context(
            self.store,
            conversation_id,
            content,
            self.context_tokens,
            recent_window=self.recent_window,
            user_id=user_id,
        )

        try:
            reply = await self.gateway.send(messages)
        except AssistantCoreError as exc:
            LOGGER.warning("Model call for %s failed: %s", conversation_id, exc)
            return SendResult(
                user_message=self._unsaved(user_id, conversation_id, "user", content),
                assistant_message=self._unsaved(
                    user_id,
                    conversation_id,
                    "assistant",
                    ERROR_REPLY,
                    error=True,
                ),
                persisted=False,
                error=str(exc),
            )

        user_message = await self.store.insert_message(
            user_id=user_id,
            conversation_id=conversation_id,
            role="user",
            content=content,
        )
        assistant_message = await self.store.insert_message(
            user_id=user_id,
            conversation_id=conversation_id,
            role="assistant",
            content=reply,
        )

        count = await self.store.count_messages(conversation_id)
        await self.summarizer.maybe_summarize(conversation_id, count)

        if count == _FIRST_EXCHANGE_COUNT:
            await self._update_title_and_preview(conversation_id, content, reply)

        await self._invalidate("create", "message", conversation_id, user_id)
        return SendResult(user_message=user_message, assistant_message=assistant_message)

    @staticmethod
    def _unsaved(
        user_id: str,
        conversation_id: str,
        role: Role,
        content: str,
        *,
        error: bool = False,
    ) -> Message:
        return Message(
            id=str(uuid4()),
            user_id=user_id,
            conversation_id=conversation_id,
            role=role,
            content=content,
            metadata={"error": True} if error else {},
        )

    async def _update_title_and_preview(
        self,
        conversation_id: str,
        user_message: str,
        assistant_response: str,
    ) -> None:
        title = await self.generate_conversation_title(assistant_response, user_message)
        conversation = await self.store.get_conversation(conversation_id)
        metadata = dict(conversation.metadata) if conversation else {}
        metadata["preview"] = build_preview(user_message)
        await self.store.update_conversation(conversation_id, title=title, metadata=metadata)

    async def generate_conversation_title(self, assistant_response: str, user_message: str) -> str:
        """Ask the model for a short title; fall back to the user's words."""
        prompt = build_title_prompt(user_message, assistant_response)
        try:
            raw = await self.gateway.send(
                [ChatMessage(role="user", content=prompt)],
                allow_fallback=False,
            )
        except AssistantCoreError:
            LOGGER.info("Title generation failed, using the user message")
            return fallback_title(user_message)
        return clean_title(raw)

    async def get_chat_sessions(self) -> list[ChatSession]:
        """The user's conversations, most recent activity first."""
        user_id = await self._require_user()
        if self.data is not None:
            return await self.data.get_chat_conversations(user_id)
        return await self.store.list_conversation_sessions(user_id)

    async def get_conversation_details(self, conversation_id: str) -> ConversationDetails:
        """A conversation owned by the user with all of its messages."""
        user_id = await self._require_user()
        conversation = await self.store.get_conversation(conversation_id, user_id=user_id)
        if conversation is None:
            msg = f"Conversation not found: {conversation_id}"
            raise DataError(msg)
        messages = await self.store.list_messages(conversation_id)
        return ConversationDetails(conversation=conversation, messages=messages)

    async def delete_conversation(self, conversation_id: str) -> None:
        """Delete a conversation's messages, then the conversation."""
        user_id = await self._require_user()
        await self.store.delete_messages(conversation_id, user_id=user_id)
        await self.store.delete_conversation(conversation_id, user_id=user_id)
        LOGGER.info("Deleted conversation %s", conversation_id)
        await self._invalidate("delete", "conversation", conversation_id, user_id)
