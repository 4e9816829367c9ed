"""Abstract base classes for the backend data store and auth provider."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from assistant_core.chat.models import ChatSession, Conversation, Message, Role
    from assistant_core.store.models import DashboardStats, Profile, Project


class AuthProvider(ABC):
    """Supplies the signed-in user. Authentication itself happens elsewhere."""

    @abstractmethod
    async def get_current_user_id(self) -> str | None:
        """Return the current user's id, or None when nobody is signed in."""
        ...


class DataStore(ABC):
    """Relational backend used by the chat core and the cache producers.

    Implementations raise `DataError` when a query fails.
    """

    # --- Conversations ---

    @abstractmethod
    async def insert_conversation(
        self,
        *,
        user_id: str,
        title: str,
        project_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Conversation:
        """Create a conversation and return the stored row."""
        ...

    @abstractmethod
    async def get_conversation(
        self,
        conversation_id: str,
        *,
        user_id: str | None = None,
    ) -> Conversation | None:
        """Fetch one conversation, optionally scoped to its owner."""
        ...

    @abstractmethod
    async def update_conversation(
        self,
        conversation_id: str,
        *,
        title: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Conversation:
        """Update title and/or replace the metadata map."""
        ...

    @abstractmethod
    async def delete_conversation(self, conversation_id: str, *, user_id: str) -> None:
        """Delete a conversation row (messages must be deleted first)."""
        ...

    @abstractmethod
    async def list_conversation_sessions(self, user_id: str) -> list[ChatSession]:
        """List a user's conversations with message counts, newest activity first."""
        ...

    # --- Messages ---

    @abstractmethod
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
        ...

    @abstractmethod
    async def list_messages(self, conversation_id: str) -> list[Message]:
        """All messages of a conversation ordered by creation time ascending."""
        ...

    @abstractmethod
    async def count_messages(self, conversation_id: str) -> int:
        """Exact number of stored messages in a conversation."""
        ...

    @abstractmethod
    async def delete_messages(self, conversation_id: str, *, user_id: str) -> None:
        """Bulk-delete a conversation's messages."""
        ...

    # --- Projects and profiles ---

    @abstractmethod
    async def list_projects(self, user_id: str) -> list[Project]:
        """A user's projects, most recently updated first."""
        ...

    @abstractmethod
    async def get_project(self, project_id: str) -> Project | None:
        """Fetch one project."""
        ...

    @abstractmethod
    async def search_projects(self, user_id: str, query: str) -> list[Project]:
        """Case-insensitive search over project name and description."""
        ...

    @abstractmethod
    async def get_profile(self, user_id: str) -> Profile | None:
        """Fetch a user's profile."""
        ...

    @abstractmethod
    async def get_dashboard_stats(self, user_id: str) -> DashboardStats:
        """Dashboard counters for a user."""
        ...
