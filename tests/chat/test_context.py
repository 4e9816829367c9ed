"""Tests for context selection under a token budget."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from assistant_core.chat.context import assemble_context, build_context, select_history
from assistant_core.chat.models import ChatMessage
from assistant_core.chat.tokens import estimate_tokens
from assistant_core.errors import DataError

if TYPE_CHECKING:
    from assistant_core.store.memory import InMemoryStore


def _msg(content: str, role: str = "user", width: int = 40) -> ChatMessage:
    """A message padded to `width` characters, i.e. width / 4 tokens."""
    return ChatMessage(role=role, content=content.ljust(width, "."))  # type: ignore[arg-type]


def _contents(messages: list[ChatMessage]) -> list[str]:
    return [m.content.rstrip(".") for m in messages]


def test_empty_history_yields_only_new_message() -> None:
    messages = build_context([], None, "Hello")
    assert messages == [ChatMessage(role="user", content="Hello")]


def test_summary_is_prepended_as_system_message() -> None:
    messages = build_context([], "We chose Postgres.", "Next?")
    assert messages[0] == ChatMessage(
        role="system",
        content="Previous conversation summary: We chose Postgres.",
    )
    assert messages[-1].content == "Next?"


def test_budget_is_never_exceeded() -> None:
    history = [_msg(f"message {i}") for i in range(20)]
    for budget in (10, 35, 95, 200):
        selection = select_history(history, None, budget, recent_window=5)
        assert selection.total_tokens <= budget
        assert sum(estimate_tokens(m.content) for m in selection.messages) == selection.total_tokens


def test_summary_cost_counts_against_budget() -> None:
    history = [_msg(f"m{i}") for i in range(3)]
    summary = "s" * 40  # 10 tokens
    selection = select_history(history, summary, 30)
    assert selection.total_tokens == 30
    assert _contents(selection.messages) == ["m0", "m1"]


def test_recent_messages_take_priority() -> None:
    """Only the latest window fits; older important messages are left out."""
    history = [
        _msg("We must decide the database architecture"),
        _msg("urgent deadline task"),
        _msg("plain one"),
        _msg("plain two"),
        _msg("plain three"),
    ]
    selection = select_history(history, None, 30, recent_window=3)
    assert _contents(selection.messages) == ["plain one", "plain two", "plain three"]
    assert selection.important_count == 0


def test_recent_pass_stops_at_first_overflow() -> None:
    history = [_msg("a"), _msg("b", width=80), _msg("c")]
    selection = select_history(history, None, 25)
    assert _contents(selection.messages) == ["a"]


def test_oversized_lone_message_is_sent_whole() -> None:
    big = _msg("huge", width=400)  # 100 tokens
    selection = select_history([_msg("older"), big], None, 50, recent_window=1)
    assert selection.messages == [big]
    assert selection.total_tokens == 100


def test_oversized_message_after_others_is_dropped() -> None:
    big = _msg("huge", width=400)
    selection = select_history([_msg("first"), big], None, 50)
    assert _contents(selection.messages) == ["first"]


def test_older_messages_ranked_by_importance() -> None:
    history = [
        _msg("decide the database architecture"),
        _msg("hello there friend"),
        _msg("please note the deadline"),
        _msg("latest"),
    ]
    selection = select_history(history, None, 20, recent_window=1)
    assert _contents(selection.messages) == ["decide the database architecture", "latest"]
    assert selection.important_count == 1
    assert selection.recent_count == 1


def test_output_is_chronological() -> None:
    history = [
        _msg("please note the deadline"),
        _msg("hello there friend"),
        _msg("decide the database architecture"),
        _msg("latest"),
    ]
    selection = select_history(history, None, 30, recent_window=1)
    # The decision message ranks first but still comes after the deadline one
    assert _contents(selection.messages) == [
        "please note the deadline",
        "decide the database architecture",
        "latest",
    ]


def test_equal_scores_keep_chronological_preference() -> None:
    history = [_msg("first plain"), _msg("second plain"), _msg("latest")]
    selection = select_history(history, None, 20, recent_window=1)
    assert _contents(selection.messages) == ["first plain", "latest"]


def test_importance_pass_stops_at_first_overflow() -> None:
    history = [
        _msg("decide the database architecture", width=120),  # 30 tokens
        _msg("small"),  # 10 tokens
        _msg("latest"),
    ]
    selection = select_history(history, None, 30, recent_window=1)
    assert _contents(selection.messages) == ["latest"]


def test_new_message_not_counted_against_budget() -> None:
    messages = build_context([_msg("a")], None, "x" * 400, max_tokens=10)
    assert _contents(messages[:-1]) == ["a"]
    assert messages[-1].content == "x" * 400


@pytest.mark.asyncio
async def test_first_message_of_conversation(store: InMemoryStore) -> None:
    conversation = await store.insert_conversation(user_id="user-1", title="New Chat")
    messages = await assemble_context(store, conversation.id, "Hi there")
    assert messages == [ChatMessage(role="user", content="Hi there")]


@pytest.mark.asyncio
async def test_assemble_uses_stored_history_and_summary(store: InMemoryStore) -> None:
    conversation = await store.insert_conversation(user_id="user-1", title="New Chat")
    for role, content in [("user", "question"), ("assistant", "answer")]:
        await store.insert_message(
            user_id="user-1",
            conversation_id=conversation.id,
            role=role,  # type: ignore[arg-type]
            content=content,
        )
    await store.update_conversation(conversation.id, metadata={"summary": "Earlier talk"})

    messages = await assemble_context(store, conversation.id, "follow-up")

    assert [m.role for m in messages] == ["system", "user", "assistant", "user"]
    assert messages[0].content.endswith("Earlier talk")
    assert [m.content for m in messages[1:]] == ["question", "answer", "follow-up"]


@pytest.mark.asyncio
async def test_assemble_rejects_other_users_conversation(store: InMemoryStore) -> None:
    conversation = await store.insert_conversation(user_id="user-1", title="New Chat")
    await store.update_conversation(conversation.id, metadata={"summary": "private"})

    with pytest.raises(DataError):
        await assemble_context(store, conversation.id, "hi", user_id="user-2")

    messages = await assemble_context(store, conversation.id, "hi", user_id="user-1")
    assert messages[0].content.endswith("private")
