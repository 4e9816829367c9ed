"""Container that builds and owns every service for one client session."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from assistant_core.cache import CachedDataService, CacheService, PredictivePreloader
from assistant_core.chat.service import ChatService
from assistant_core.chat.summarizer import ConversationSummarizer
from assistant_core.config import Settings
from assistant_core.gateway import create_gateway
from assistant_core.store import (
    InMemoryStore,
    StaticAuthProvider,
    SupabaseAuthProvider,
    SupabaseStore,
)

if TYPE_CHECKING:
    import httpx

    from assistant_core.config import Platform
    from assistant_core.gateway import ModelGateway
    from assistant_core.store import AuthProvider, DataStore

LOGGER = logging.getLogger(__name__)


class AssistantCore:
    """Explicitly constructed service graph.

    Without a configured backend, an `InMemoryStore` with a fixed local user
    is used.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        platform: Platform | None = None,
        store: DataStore | None = None,
        auth: AuthProvider | None = None,
        gateway: ModelGateway | None = None,
        access_token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Build the services, using any explicitly passed parts as-is."""
        self.settings = settings or Settings()
        backend = self.settings.backend

        if store is None:
            if backend.configured:
                assert backend.url is not None
                assert backend.anon_key is not None
                store = SupabaseStore(backend.url, backend.anon_key, access_token, transport=transport)
            else:
                store = InMemoryStore()
        if auth is None:
            if backend.configured:
                assert backend.url is not None
                assert backend.anon_key is not None
                auth = SupabaseAuthProvider(
                    backend.url,
                    backend.anon_key,
                    access_token,
                    transport=transport,
                )
            else:
                auth = StaticAuthProvider("local-user")

        self.store = store
        self.auth = auth
        self.gateway = gateway or create_gateway(self.settings, platform, transport=transport)
        self.cache = CacheService(
            default_ttl=self.settings.cache.default_ttl,
            max_entries=self.settings.cache.max_entries,
        )
        self.data = CachedDataService(self.cache, self.store)
        self.preloader = PredictivePreloader(self.data)
        self.summarizer = ConversationSummarizer(
            self.store,
            self.gateway,
            self.settings.context.summary_interval,
        )
        self.chat = ChatService(
            self.store,
            self.auth,
            self.gateway,
            self.summarizer,
            data=self.data,
            context_tokens=self.settings.context.max_tokens,
            recent_window=self.settings.context.recent_window,
        )
        LOGGER.debug("AssistantCore ready (store=%s)", type(self.store).__name__)

    async def aclose(self) -> None:
        """Stop background syncs and drop cached data."""
        await self.preloader.aclose()
        self.cache.clear()

    async def __aenter__(self) -> AssistantCore:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
