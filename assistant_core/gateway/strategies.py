"""Concrete transports: local proxy, managed backend function, direct provider."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from assistant_core.constants import (
    ANTHROPIC_API_URL,
    PROVIDER_TIMEOUT,
    PROXY_CHAT_PATH,
    PROXY_HEALTH_PATH,
    PROXY_HEALTH_TIMEOUT,
)
from assistant_core.errors import NetworkError
from assistant_core.gateway.base import TransportStrategy
from assistant_core.gateway.provider import call_provider

if TYPE_CHECKING:
    from assistant_core.gateway.models import ModelRequest

LOGGER = logging.getLogger(__name__)


async def _post_json(
    url: str,
    payload: dict[str, Any],
    *,
    headers: dict[str, str] | None = None,
    timeout: float = PROVIDER_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any]:
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.post(url, json=payload, headers=headers)
            response.raise_for_status()
            return response.json()
    except httpx.HTTPError as exc:
        msg = f"Request to {url} failed: {exc}"
        raise NetworkError(msg) from exc
    except ValueError as exc:
        msg = f"Invalid JSON from {url}"
        raise NetworkError(msg) from exc


def _chat_payload(request: ModelRequest, *, include_system: bool) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "messages": [m.model_dump() for m in request.messages],
        "model": request.model,
        "max_tokens": request.max_tokens,
    }
    if include_system and request.system:
        payload["system"] = request.system
    return payload


class LocalProxyStrategy(TransportStrategy):
    """Forward through a locally running `assistant-core proxy` server."""

    name = "local-proxy"

    def __init__(
        self,
        base_url: str,
        *,
        health_timeout: float = PROXY_HEALTH_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize with the proxy's base URL."""
        self.base_url = base_url.rstrip("/")
        self.health_timeout = health_timeout
        self.transport = transport

    async def is_available(self) -> bool:
        """True when the proxy answers its health check in time."""
        try:
            async with httpx.AsyncClient(
                timeout=self.health_timeout,
                transport=self.transport,
            ) as client:
                response = await client.get(f"{self.base_url}{PROXY_HEALTH_PATH}")
        except httpx.HTTPError as exc:
            LOGGER.debug("Proxy health check failed: %s", exc)
            return False
        return response.status_code == 200  # noqa: PLR2004

    async def send(self, request: ModelRequest) -> str:
        """POST the chat request to the proxy and return its `message`."""
        data = await _post_json(
            f"{self.base_url}{PROXY_CHAT_PATH}",
            _chat_payload(request, include_system=False),
            transport=self.transport,
        )
        message = data.get("message")
        if not isinstance(message, str):
            msg = "Proxy response did not contain a message"
            raise NetworkError(msg)
        return message


class ManagedFunctionStrategy(TransportStrategy):
    """Call the backend's hosted chat function."""

    name = "managed-function"

    def __init__(
        self,
        function_url: str | None,
        anon_key: str | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize with the function URL and the backend's public key."""
        self.function_url = function_url
        self.anon_key = anon_key
        self.transport = transport

    async def is_available(self) -> bool:
        """True when a function URL is configured."""
        return bool(self.function_url)

    async def send(self, request: ModelRequest) -> str:
        """Invoke the function; only `success: true` bodies are accepted."""
        assert self.function_url is not None
        headers = {}
        if self.anon_key:
            headers = {"apikey": self.anon_key, "Authorization": f"Bearer {self.anon_key}"}
        data = await _post_json(
            self.function_url,
            _chat_payload(request, include_system=True),
            headers=headers,
            transport=self.transport,
        )
        if not data.get("success") or not isinstance(data.get("message"), str):
            msg = f"Managed function failed: {data.get('error', 'unknown error')}"
            raise NetworkError(msg)
        return data["message"]


class DirectProviderStrategy(TransportStrategy):
    """Call the provider's Messages API directly with the local API key."""

    name = "direct"

    def __init__(
        self,
        api_key: str | None,
        *,
        api_url: str = ANTHROPIC_API_URL,
        cross_origin_restricted: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the direct transport.

        `cross_origin_restricted` marks platforms (browsers) where the
        provider cannot be reached directly.
        """
        self.api_key = api_key
        self.api_url = api_url
        self.cross_origin_restricted = cross_origin_restricted
        self.transport = transport

    async def is_available(self) -> bool:
        """False on platforms that block cross-origin provider calls."""
        return not self.cross_origin_restricted

    async def send(self, request: ModelRequest) -> str:
        """Call the provider and return the first text block."""
        reply = await call_provider(
            request,
            self.api_key,
            api_url=self.api_url,
            transport=self.transport,
        )
        return reply.text
