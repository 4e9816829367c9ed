"""Abstract base class for model transport strategies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from assistant_core.gateway.models import ModelRequest


class TransportStrategy(ABC):
    """One way of reaching the language model (proxy, function, direct)."""

    name: str = "transport"

    @abstractmethod
    async def is_available(self) -> bool:
        """Cheap check whether this transport can be used right now."""
        ...

    @abstractmethod
    async def send(self, request: ModelRequest) -> str:
        """Send the request and return the assistant reply text.

        Raises `NetworkError` on transport failures and `ConfigurationError`
        when required settings are missing.
        """
        ...
