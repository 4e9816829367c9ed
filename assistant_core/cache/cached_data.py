"""Cached backend reads keyed by entity type and id."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from assistant_core.cache.service import CacheService, EntityType
    from assistant_core.chat.models import ChatSession
    from assistant_core.store.base import DataStore
    from assistant_core.store.models import DashboardStats, Profile, Project

LOGGER = logging.getLogger(__name__)

Operation = Literal["create", "update", "delete"]


class CachedDataService:
    """Read-through accessors over a `DataStore`.

    Every accessor takes `force_refresh` to bypass a live entry.
    """

    def __init__(self, cache: CacheService, store: DataStore) -> None:
        """Initialize with a cache and the store that fills it."""
        self.cache = cache
        self.store = store

    async def get_user_profile(self, user_id: str, *, force_refresh: bool = False) -> Profile | None:
        """A user's profile, or None when there is none."""
        return await self.cache.get(
            f"user_profile:{user_id}",
            lambda: self.store.get_profile(user_id),
            force_refresh=force_refresh,
        )

    async def get_user_projects(
        self,
        user_id: str,
        *,
        force_refresh: bool = False,
    ) -> list[Project]:
        """A user's projects, most recently updated first."""
        return await self.cache.get(
            f"user_projects:{user_id}",
            lambda: self.store.list_projects(user_id),
            force_refresh=force_refresh,
        )

    async def get_project_details(
        self,
        project_id: str,
        *,
        force_refresh: bool = False,
    ) -> Project | None:
        """One project by id."""
        return await self.cache.get(
            f"project_details:{project_id}",
            lambda: self.store.get_project(project_id),
            force_refresh=force_refresh,
        )

    async def get_chat_conversations(
        self,
        user_id: str,
        *,
        force_refresh: bool = False,
    ) -> list[ChatSession]:
        """A user's conversation list with message counts."""
        return await self.cache.get(
            f"chat_conversations:{user_id}",
            lambda: self.store.list_conversation_sessions(user_id),
            force_refresh=force_refresh,
        )

    async def get_dashboard_stats(
        self,
        user_id: str,
        *,
        force_refresh: bool = False,
    ) -> DashboardStats:
        """Dashboard counters for a user."""
        return await self.cache.get(
            f"dashboard_stats:{user_id}",
            lambda: self.store.get_dashboard_stats(user_id),
            force_refresh=force_refresh,
        )

    async def search_projects(
        self,
        user_id: str,
        query: str,
        *,
        force_refresh: bool = False,
    ) -> list[Project]:
        """Projects whose name or description matches `query`."""
        return await self.cache.get(
            f"search_projects:{user_id}:{query}",
            lambda: self.store.search_projects(user_id, query),
            force_refresh=force_refresh,
        )

    async def invalidate_after_mutation(
        self,
        operation: Operation,
        entity_type: EntityType,
        entity_id: str,
        user_id: str,
    ) -> None:
        """Drop keys related to a changed entity.

        After a create or update, the dashboard and the affected list are
        fetched again so the next read is warm.
        """
        self.cache.invalidate_related(entity_type, entity_id)
        if operation not in ("create", "update"):
            return

        refreshes = [self.get_dashboard_stats(user_id, force_refresh=True)]
        if entity_type in ("project", "task"):
            refreshes.append(self.get_user_projects(user_id, force_refresh=True))
        elif entity_type in ("conversation", "message"):
            refreshes.append(self.get_chat_conversations(user_id, force_refresh=True))

        results = await asyncio.gather(*refreshes, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                LOGGER.warning("Cache refresh after %s %s failed: %s", operation, entity_type, result)
