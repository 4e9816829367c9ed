"""Language model gateway: transport strategies with ordered fallback."""

from __future__ import annotations

from assistant_core.gateway.base import TransportStrategy
from assistant_core.gateway.gateway import ModelGateway, create_gateway
from assistant_core.gateway.models import ModelRequest, ProviderReply
from assistant_core.gateway.strategies import (
    DirectProviderStrategy,
    LocalProxyStrategy,
    ManagedFunctionStrategy,
)

__all__ = [
    "DirectProviderStrategy",
    "LocalProxyStrategy",
    "ManagedFunctionStrategy",
    "ModelGateway",
    "ModelRequest",
    "ProviderReply",
    "TransportStrategy",
    "create_gateway",
]
