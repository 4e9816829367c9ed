"""FastAPI application factory for the local model proxy.

Browsers cannot call the provider directly, so the web client posts to this
server instead. It exposes the local proxy route and a route shaped like the
hosted chat function, both backed by the same provider call.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from assistant_core import __version__
from assistant_core.constants import MANAGED_FUNCTION_NAME, PROXY_CHAT_PATH, PROXY_HEALTH_PATH
from assistant_core.errors import ConfigurationError, NetworkError
from assistant_core.gateway.models import ModelRequest, ProxyChatRequest
from assistant_core.gateway.provider import call_provider

if TYPE_CHECKING:
    import httpx

    from assistant_core.config import Settings
    from assistant_core.gateway.models import ProviderReply

LOGGER = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str
    version: str


class ProxyChatResponse(BaseModel):
    """Reply text and provider usage."""

    message: str
    usage: dict[str, Any] | None = None


def create_app(
    settings: Settings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create the proxy app for the provider configured in `settings`."""
    app = FastAPI(title="Assistant Core Proxy", version=__version__)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    provider = settings.provider

    async def _forward(request: ProxyChatRequest) -> ProviderReply:
        model_request = ModelRequest(
            model=request.model,
            max_tokens=request.max_tokens,
            messages=request.messages,
            system=request.system or provider.system_prompt,
        )
        LOGGER.info(
            "Forwarding %d messages to %s (conversation=%s)",
            len(request.messages),
            request.model,
            request.conversation_id,
        )
        return await call_provider(
            model_request,
            provider.api_key,
            api_url=provider.api_url,
            transport=transport,
        )

    @app.get(PROXY_HEALTH_PATH, response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        return HealthResponse(status="healthy", version=__version__)

    @app.post(PROXY_CHAT_PATH, response_model=ProxyChatResponse)
    async def claude_proxy(request: ProxyChatRequest) -> ProxyChatResponse:
        try:
            reply = await _forward(request)
        except ConfigurationError as exc:
            LOGGER.error("Proxy misconfigured: %s", exc)
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        except NetworkError as exc:
            LOGGER.warning("Provider call failed: %s", exc)
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return ProxyChatResponse(message=reply.text, usage=reply.usage)

    @app.post(f"/functions/v1/{MANAGED_FUNCTION_NAME}")
    async def managed_function(request: ProxyChatRequest) -> JSONResponse:
        try:
            reply = await _forward(request)
        except ConfigurationError as exc:
            return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})
        except NetworkError as exc:
            return JSONResponse(status_code=502, content={"success": False, "error": str(exc)})
        return JSONResponse(content={"success": True, "message": reply.text, "usage": reply.usage})

    return app
