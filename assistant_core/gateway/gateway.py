"""Ordered strategy chain that reaches the language model."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from assistant_core.chat.prompts import build_fallback_reply
from assistant_core.constants import (
    DEFAULT_MAX_OUTPUT_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_SYSTEM_PROMPT,
)
from assistant_core.errors import ConfigurationError, NetworkError
from assistant_core.gateway.models import ModelRequest
from assistant_core.gateway.strategies import (
    DirectProviderStrategy,
    LocalProxyStrategy,
    ManagedFunctionStrategy,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    import httpx

    from assistant_core.chat.models import ChatMessage
    from assistant_core.config import Platform, Settings
    from assistant_core.gateway.base import TransportStrategy

LOGGER = logging.getLogger(__name__)


class ModelGateway:
    """Send chat messages through the first transport that works."""

    def __init__(
        self,
        strategies: Sequence[TransportStrategy],
        *,
        model: str = DEFAULT_MODEL,
        max_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS,
        system_prompt: str | None = DEFAULT_SYSTEM_PROMPT,
        fallback_enabled: bool = False,
    ) -> None:
        """Initialize with strategies in priority order."""
        self.strategies = list(strategies)
        self.model = model
        self.max_tokens = max_tokens
        self.system_prompt = system_prompt
        self.fallback_enabled = fallback_enabled

    async def send(
        self,
        messages: list[ChatMessage],
        *,
        allow_fallback: bool = True,
    ) -> str:
        """Return the assistant's reply to `messages`.

        Unavailable strategies are skipped and network failures fall through
        to the next one. When all are exhausted, an instructional fallback
        reply is returned if enabled and `allow_fallback` is set, otherwise
        `NetworkError` is raised. Internal requests such as summaries and
        titles pass `allow_fallback=False`.
        """
        request = ModelRequest(
            model=self.model,
            max_tokens=self.max_tokens,
            messages=messages,
            system=self.system_prompt,
        )
        last_error: Exception | None = None
        for strategy in self.strategies:
            if not await strategy.is_available():
                LOGGER.debug("Transport %s unavailable, skipping", strategy.name)
                continue
            LOGGER.info("Sending request via %s", strategy.name)
            try:
                return await strategy.send(request)
            except ConfigurationError:
                raise
            except NetworkError as exc:
                LOGGER.warning("Transport %s failed: %s", strategy.name, exc)
                last_error = exc

        if self.fallback_enabled and allow_fallback:
            LOGGER.warning("All transports exhausted, returning setup instructions")
            return build_fallback_reply(request.last_user_message())

        msg = "No transport could reach the language model"
        raise NetworkError(msg) from last_error


def create_gateway(
    settings: Settings,
    platform: Platform | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ModelGateway:
    """Build the strategy chain for a platform.

    Web: local proxy, managed function, direct (blocked), with a fallback
    reply. Native: direct only, failures raise.
    """
    platform = platform or settings.gateway.platform
    provider = settings.provider
    direct = DirectProviderStrategy(
        provider.api_key,
        api_url=provider.api_url,
        cross_origin_restricted=platform == "web",
        transport=transport,
    )
    if platform == "web":
        strategies: list[TransportStrategy] = [
            LocalProxyStrategy(
                settings.gateway.proxy_url,
                health_timeout=settings.gateway.health_timeout,
                transport=transport,
            ),
            ManagedFunctionStrategy(
                settings.function_url,
                settings.backend.anon_key,
                transport=transport,
            ),
            direct,
        ]
    else:
        strategies = [direct]
    return ModelGateway(
        strategies,
        model=provider.model,
        max_tokens=provider.max_tokens,
        system_prompt=provider.system_prompt,
        fallback_enabled=platform == "web",
    )
