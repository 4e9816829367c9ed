"""Usage-driven cache warming.

Each navigation is recorded in a per-user `UsageTrace`; the route then decides
which reads are likely next and those are fetched through the cache ahead of
time. Preload failures are logged and never reach the caller.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from assistant_core.constants import (
    BACKGROUND_SYNC_INTERVAL,
    DEFAULT_PEAK_HOURS,
    MAX_COMMON_ROUTES,
    MAX_FREQUENT_PROJECTS,
    PRELOAD_FREQUENT_PROJECTS,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from assistant_core.cache.cached_data import CachedDataService
    from assistant_core.cache.service import CacheStats

LOGGER = logging.getLogger(__name__)


def _move_to_front(items: list[str], item: str, limit: int) -> list[str]:
    return [item, *(i for i in items if i != item)][:limit]


@dataclass
class UsageTrace:
    """What a user visits, newest first, and at which hours."""

    user_id: str
    common_routes: list[str] = field(default_factory=list)
    frequent_projects: list[str] = field(default_factory=list)
    peak_usage_hours: set[int] = field(default_factory=set)
    last_active_at: datetime | None = None


class PredictivePreloader:
    """Warm the cache for reads a user is likely to make next."""

    def __init__(
        self,
        data: CachedDataService,
        *,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize with the cached accessors to warm."""
        self.data = data
        self._now = now
        self.traces: dict[str, UsageTrace] = {}
        self._initializing: set[str] = set()
        self._sync_tasks: dict[str, asyncio.Task[None]] = {}

    async def _gather(self, label: str, *reads: Awaitable[object]) -> None:
        results = await asyncio.gather(*reads, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                LOGGER.warning("Preload (%s) failed: %s", label, result)

    def _frequent_project_reads(
        self,
        trace: UsageTrace | None,
        *,
        force_refresh: bool = False,
    ) -> list[Awaitable[object]]:
        projects = trace.frequent_projects[:PRELOAD_FREQUENT_PROJECTS] if trace else []
        return [
            self.data.get_project_details(project_id, force_refresh=force_refresh)
            for project_id in projects
        ]

    async def track_user_behavior(
        self,
        user_id: str,
        route: str,
        project_id: str | None = None,
    ) -> UsageTrace:
        """Record a navigation and preload for the likely next screen."""
        now = self._now()
        trace = self.traces.setdefault(user_id, UsageTrace(user_id=user_id))
        trace.common_routes = _move_to_front(trace.common_routes, route, MAX_COMMON_ROUTES)
        if project_id:
            trace.frequent_projects = _move_to_front(
                trace.frequent_projects,
                project_id,
                MAX_FREQUENT_PROJECTS,
            )
        trace.peak_usage_hours.add(now.hour)
        trace.last_active_at = now

        await self.trigger_predictive_preload(user_id, route, project_id)
        return trace

    async def trigger_predictive_preload(
        self,
        user_id: str,
        route: str,
        project_id: str | None = None,
    ) -> None:
        """Warm the reads that usually follow `route`. Unknown routes do nothing."""
        reads: list[Awaitable[object]] = []
        if route == "home":
            reads = [self.data.get_user_projects(user_id), self.data.get_user_profile(user_id)]
        elif route == "projects" and project_id:
            reads = [self.data.get_project_details(project_id)]
        elif (route == "project-details" and project_id) or route == "chat":
            reads = [self.data.get_chat_conversations(user_id)]
        if reads:
            await self._gather(route, *reads)

    async def initialize_predictive_cache(self, user_id: str) -> None:
        """Warm the common reads for a user who just signed in.

        A call made while one is already running for the same user is ignored.
        """
        if not user_id or user_id in self._initializing:
            return
        self._initializing.add(user_id)
        try:
            await self._gather(
                "initialize",
                self.data.get_dashboard_stats(user_id),
                *self._frequent_project_reads(self.traces.get(user_id)),
                self.data.get_chat_conversations(user_id),
                self.data.get_user_profile(user_id),
            )
            LOGGER.info("Predictive cache initialized for %s", user_id)
        finally:
            self._initializing.discard(user_id)

    async def warm_cache_during_idle(self, user_id: str) -> None:
        """Refresh the user's main reads. Users without a trace are skipped."""
        trace = self.traces.get(user_id)
        if trace is None:
            return
        await self._gather(
            "idle",
            self.data.get_dashboard_stats(user_id, force_refresh=True),
            self.data.get_user_projects(user_id, force_refresh=True),
            self.data.get_chat_conversations(user_id, force_refresh=True),
            *self._frequent_project_reads(trace, force_refresh=True),
        )
        LOGGER.debug("Idle cache warming finished for %s", user_id)

    def _peak_hours(self, user_id: str) -> set[int]:
        trace = self.traces.get(user_id)
        return trace.peak_usage_hours if trace else set(DEFAULT_PEAK_HOURS)

    async def _sync_loop(self, user_id: str, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                if self._now().hour in self._peak_hours(user_id):
                    await self.warm_cache_during_idle(user_id)
            except Exception:
                LOGGER.exception("Background sync failed for %s", user_id)

    def start_background_sync(
        self,
        user_id: str,
        interval: float = BACKGROUND_SYNC_INTERVAL,
    ) -> asyncio.Task[None]:
        """Warm the cache every `interval` seconds during the user's peak hours."""
        task = self._sync_tasks.get(user_id)
        if task is None or task.done():
            task = asyncio.create_task(self._sync_loop(user_id, interval))
            self._sync_tasks[user_id] = task
            LOGGER.info("Started background sync for %s (interval=%.0fs)", user_id, interval)
        return task

    async def stop_background_sync(self, user_id: str) -> None:
        """Cancel the user's background sync, if running."""
        task = self._sync_tasks.pop(user_id, None)
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def aclose(self) -> None:
        """Cancel every background sync."""
        for user_id in list(self._sync_tasks):
            await self.stop_background_sync(user_id)

    def get_cache_metrics(self) -> CacheStats:
        """Stats of the underlying cache."""
        return self.data.cache.get_stats()
