"""Shared test fixtures and configuration."""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING

import pytest

from assistant_core.chat.summarizer import ConversationSummarizer
from assistant_core.errors import NetworkError
from assistant_core.store.memory import InMemoryStore, StaticAuthProvider

if TYPE_CHECKING:
    from assistant_core.chat.models import ChatMessage


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Set default timeout for all tests."""
    for item in items:
        with contextlib.suppress(AttributeError):
            item.add_marker(pytest.mark.timeout(3))


class FakeGateway:
    """Gateway double that records requests and replays canned replies."""

    def __init__(
        self,
        replies: list[str | Exception] | None = None,
        *,
        fail: bool = False,
    ) -> None:
        self.replies = list(replies or [])
        self.fail = fail
        self.calls: list[list[ChatMessage]] = []

    async def send(self, messages: list[ChatMessage], *, allow_fallback: bool = True) -> str:
        self.calls.append(list(messages))
        if self.fail:
            msg = "offline"
            raise NetworkError(msg)
        reply = self.replies.pop(0) if self.replies else "ok"
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def store() -> InMemoryStore:
    """Empty in-memory store."""
    return InMemoryStore()


@pytest.fixture
def auth() -> StaticAuthProvider:
    """Auth provider with a signed-in user."""
    return StaticAuthProvider("user-1")


@pytest.fixture
def gateway() -> FakeGateway:
    """Gateway that answers every request with "ok"."""
    return FakeGateway()


@pytest.fixture
def summarizer(store: InMemoryStore, gateway: FakeGateway) -> ConversationSummarizer:
    """Summarizer bound to the test store and gateway."""
    return ConversationSummarizer(store, gateway)  # type: ignore[arg-type]


@pytest.fixture
def make_gateway() -> type[FakeGateway]:
    """Factory for gateways with canned replies or forced failures."""
    return FakeGateway
