"""In-memory data store and auth provider for tests and local development."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from assistant_core.chat.models import ChatSession, Conversation, Message, utc_now
from assistant_core.constants import NO_MESSAGES_PREVIEW, UNTITLED_CONVERSATION
from assistant_core.errors import DataError
from assistant_core.store.base import AuthProvider, DataStore
from assistant_core.store.models import DashboardStats, Profile, Project

if TYPE_CHECKING:
    from collections.abc import Callable

    from assistant_core.chat.models import Role

_COMPLETED = "completed"
_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


class StaticAuthProvider(AuthProvider):
    """Auth provider that always reports the same user."""

    def __init__(self, user_id: str | None) -> None:
        """Initialize with a fixed user id (None means signed out)."""
        self.user_id = user_id

    async def get_current_user_id(self) -> str | None:
        """Return the configured user id."""
        return self.user_id


class InMemoryStore(DataStore):
    """Dict-backed store. Creation timestamps are strictly increasing."""

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        """Initialize empty tables."""
        self._clock = clock
        self._last_timestamp: datetime | None = None
        self.conversations: dict[str, Conversation] = {}
        self.messages: dict[str, list[Message]] = {}
        self.projects: dict[str, Project] = {}
        self.profiles: dict[str, Profile] = {}

    def _now(self) -> datetime:
        now = self._clock()
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now

    def _require_conversation(self, conversation_id: str) -> Conversation:
        conversation = self.conversations.get(conversation_id)
        if conversation is None:
            msg = f"Conversation not found: {conversation_id}"
            raise DataError(msg)
        return conversation

    # --- Seeding helpers ---

    def add_project(self, project: Project) -> Project:
        """Insert or replace a project row."""
        self.projects[project.id] = project
        return project

    def add_profile(self, profile: Profile) -> Profile:
        """Insert or replace a profile row."""
        self.profiles[profile.id] = profile
        return profile

    # --- Conversations ---

    async def insert_conversation(
        self,
        *,
        user_id: str,
        title: str,
        project_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Conversation:
        """Create a conversation and return the stored row."""
        now = self._now()
        conversation = Conversation(
            id=str(uuid4()),
            user_id=user_id,
            project_id=project_id,
            title=title,
            metadata=dict(metadata or {}),
            created_at=now,
            updated_at=now,
        )
        self.conversations[conversation.id] = conversation
        self.messages[conversation.id] = []
        return conversation.model_copy(deep=True)

    async def get_conversation(
        self,
        conversation_id: str,
        *,
        user_id: str | None = None,
    ) -> Conversation | None:
        """Fetch one conversation, optionally scoped to its owner."""
        conversation = self.conversations.get(conversation_id)
        if conversation is None or (user_id is not None and conversation.user_id != user_id):
            return None
        return conversation.model_copy(deep=True)

    async def update_conversation(
        self,
        conversation_id: str,
        *,
        title: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Conversation:
        """Update title and/or replace the metadata map."""
        conversation = self._require_conversation(conversation_id)
        if title is not None:
            conversation.title = title
        if metadata is not None:
            conversation.metadata = dict(metadata)
        conversation.updated_at = self._now()
        return conversation.model_copy(deep=True)

    async def delete_conversation(self, conversation_id: str, *, user_id: str) -> None:
        """Delete a conversation row owned by `user_id`."""
        conversation = self.conversations.get(conversation_id)
        if conversation is None or conversation.user_id != user_id:
            return
        del self.conversations[conversation_id]
        self.messages.pop(conversation_id, None)

    async def list_conversation_sessions(self, user_id: str) -> list[ChatSession]:
        """List a user's conversations with message counts, newest activity first."""
        sessions = []
        for conversation in self.conversations.values():
            if conversation.user_id != user_id:
                continue
            messages = self.messages.get(conversation.id, [])
            last_message_at = messages[-1].created_at if messages else conversation.created_at
            sessions.append(
                ChatSession(
                    id=conversation.id,
                    user_id=user_id,
                    project_id=conversation.project_id,
                    title=conversation.title or UNTITLED_CONVERSATION,
                    preview=conversation.preview or NO_MESSAGES_PREVIEW,
                    message_count=len(messages),
                    last_message_at=last_message_at,
                    created_at=conversation.created_at,
                    updated_at=conversation.updated_at,
                ),
            )
        sessions.sort(key=lambda s: s.last_message_at, reverse=True)
        return sessions

    # --- Messages ---

    async def insert_message(
        self,
        *,
        user_id: str,
        conversation_id: str,
        role: Role,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> Message:
        """Insert a message and return the stored row."""
        self._require_conversation(conversation_id)
        message = Message(
            id=str(uuid4()),
            user_id=user_id,
            conversation_id=conversation_id,
            role=role,
            content=content,
            metadata=dict(metadata or {}),
            created_at=self._now(),
        )
        self.messages[conversation_id].append(message)
        return message.model_copy(deep=True)

    async def list_messages(self, conversation_id: str) -> list[Message]:
        """All messages of a conversation ordered by creation time ascending."""
        messages = self.messages.get(conversation_id, [])
        return [m.model_copy(deep=True) for m in sorted(messages, key=lambda m: m.created_at)]

    async def count_messages(self, conversation_id: str) -> int:
        """Exact number of stored messages in a conversation."""
        return len(self.messages.get(conversation_id, []))

    async def delete_messages(self, conversation_id: str, *, user_id: str) -> None:
        """Bulk-delete a conversation's messages owned by `user_id`."""
        if conversation_id not in self.messages:
            return
        self.messages[conversation_id] = [
            m for m in self.messages[conversation_id] if m.user_id != user_id
        ]

    # --- Projects and profiles ---

    async def list_projects(self, user_id: str) -> list[Project]:
        """A user's projects, most recently updated first."""
        projects = [p for p in self.projects.values() if p.user_id == user_id]
        projects.sort(key=lambda p: p.updated_at or p.created_at or _EPOCH, reverse=True)
        return projects

    async def get_project(self, project_id: str) -> Project | None:
        """Fetch one project."""
        return self.projects.get(project_id)

    async def search_projects(self, user_id: str, query: str) -> list[Project]:
        """Case-insensitive search over project name and description."""
        needle = query.lower()
        return [
            p
            for p in await self.list_projects(user_id)
            if needle in p.name.lower() or needle in (p.description or "").lower()
        ]

    async def get_profile(self, user_id: str) -> Profile | None:
        """Fetch a user's profile."""
        return self.profiles.get(user_id)

    async def get_dashboard_stats(self, user_id: str) -> DashboardStats:
        """Dashboard counters computed from the stored rows."""
        projects = [p for p in self.projects.values() if p.user_id == user_id]
        completed = sum(1 for p in projects if p.status == _COMPLETED)
        conversations = [c for c in self.conversations.values() if c.user_id == user_id]
        return DashboardStats(
            user_id=user_id,
            total_projects=len(projects),
            active_projects=len(projects) - completed,
            completed_projects=completed,
            total_conversations=len(conversations),
            total_messages=sum(len(self.messages.get(c.id, [])) for c in conversations),
        )
