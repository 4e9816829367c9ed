"""Direct calls to the language model provider's Messages API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from assistant_core.constants import (
    ANTHROPIC_API_URL,
    ANTHROPIC_VERSION,
    EMPTY_REPLY,
    PROVIDER_TIMEOUT,
)
from assistant_core.errors import AuthenticationError, NetworkError
from assistant_core.gateway.models import ProviderReply

if TYPE_CHECKING:
    from assistant_core.gateway.models import ModelRequest

LOGGER = logging.getLogger(__name__)


def extract_reply_text(data: dict) -> str:
    """First text block of a Messages API response."""
    content = data.get("content") or []
    if content and isinstance(content[0], dict) and content[0].get("text"):
        return content[0]["text"]
    return EMPTY_REPLY


async def call_provider(
    request: ModelRequest,
    api_key: str | None,
    *,
    api_url: str = ANTHROPIC_API_URL,
    timeout: float = PROVIDER_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ProviderReply:
    """POST a request to the provider and return its reply."""
    if not api_key:
        msg = "Language model API key is not set. Add CLAUDE_API_KEY to your environment."
        raise AuthenticationError(msg)

    headers = {
        "Content-Type": "application/json",
        "x-api-key": api_key,
        "anthropic-version": ANTHROPIC_VERSION,
    }
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.post(
                api_url,
                json=request.to_provider_payload(),
                headers=headers,
            )
    except httpx.HTTPError as exc:
        msg = f"Provider request failed: {exc}"
        raise NetworkError(msg) from exc

    if response.status_code != 200:  # noqa: PLR2004
        LOGGER.error("Provider error %s: %s", response.status_code, response.text)
        msg = f"Provider returned HTTP {response.status_code}"
        raise NetworkError(msg)

    data = response.json()
    return ProviderReply(text=extract_reply_text(data), usage=data.get("usage"))
