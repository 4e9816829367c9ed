"""Tests for the Supabase store against a mocked PostgREST API."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from assistant_core.errors import DataError
from assistant_core.store.supabase import SupabaseAuthProvider, SupabaseStore, _parse_count

URL = "https://demo.supabase.co"
NOW = "2024-05-06T10:00:00+00:00"


def _conversation(**overrides: Any) -> dict[str, Any]:
    return {
        "id": "c1",
        "user_id": "u1",
        "project_id": None,
        "title": "New Chat",
        "metadata": {},
        "created_at": NOW,
        "updated_at": NOW,
    } | overrides


class Recorder:
    """MockTransport handler that records requests and serves canned responses."""

    def __init__(self, *responses: httpx.Response) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)


def _store(recorder: Recorder, token: str | None = "jwt") -> SupabaseStore:
    return SupabaseStore(URL, "anon", token, transport=httpx.MockTransport(recorder))


@pytest.mark.asyncio
async def test_insert_conversation_returns_row() -> None:
    recorder = Recorder(httpx.Response(201, json=[_conversation()]))
    conversation = await _store(recorder).insert_conversation(user_id="u1", title="New Chat")

    assert conversation.id == "c1"
    request = recorder.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/rest/v1/chat_conversations"
    assert request.headers["apikey"] == "anon"
    assert request.headers["authorization"] == "Bearer jwt"
    assert request.headers["prefer"] == "return=representation"
    assert json.loads(request.content)["title"] == "New Chat"


@pytest.mark.asyncio
async def test_anon_key_used_without_token() -> None:
    recorder = Recorder(httpx.Response(200, json=[]))
    await _store(recorder, token=None).list_projects("u1")
    assert recorder.requests[0].headers["authorization"] == "Bearer anon"


@pytest.mark.asyncio
async def test_list_messages_filters_and_orders() -> None:
    row = {
        "id": "m1",
        "user_id": "u1",
        "conversation_id": "c1",
        "role": "user",
        "content": "hi",
        "metadata": {},
        "created_at": NOW,
    }
    recorder = Recorder(httpx.Response(200, json=[row]))
    messages = await _store(recorder).list_messages("c1")

    assert [m.content for m in messages] == ["hi"]
    params = recorder.requests[0].url.params
    assert params["conversation_id"] == "eq.c1"
    assert params["order"] == "created_at.asc"


@pytest.mark.asyncio
async def test_count_messages_reads_content_range() -> None:
    recorder = Recorder(httpx.Response(200, headers={"Content-Range": "0-19/20"}))
    assert await _store(recorder).count_messages("c1") == 20
    request = recorder.requests[0]
    assert request.method == "HEAD"
    assert request.headers["prefer"] == "count=exact"


@pytest.mark.parametrize(("header", "expected"), [("0-9/42", 42), ("*/0", 0)])
def test_parse_count(header: str, expected: int) -> None:
    assert _parse_count(header) == expected


def test_parse_count_without_total() -> None:
    with pytest.raises(DataError):
        _parse_count("0-9/*")


@pytest.mark.asyncio
async def test_get_conversation_missing_returns_none() -> None:
    recorder = Recorder(httpx.Response(200, json=[]))
    assert await _store(recorder).get_conversation("c1", user_id="u1") is None
    assert recorder.requests[0].url.params["user_id"] == "eq.u1"


@pytest.mark.asyncio
async def test_update_conversation_patches_row() -> None:
    recorder = Recorder(httpx.Response(200, json=[_conversation(title="Launch")]))
    conversation = await _store(recorder).update_conversation("c1", title="Launch")

    assert conversation.title == "Launch"
    request = recorder.requests[0]
    assert request.method == "PATCH"
    body = json.loads(request.content)
    assert body["title"] == "Launch"
    assert "metadata" not in body


@pytest.mark.asyncio
async def test_http_error_raises_data_error() -> None:
    recorder = Recorder(httpx.Response(500, json={"message": "boom"}))
    with pytest.raises(DataError, match="HTTP 500"):
        await _store(recorder).list_projects("u1")


@pytest.mark.asyncio
async def test_connection_error_raises_data_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    store = SupabaseStore(URL, "anon", transport=httpx.MockTransport(handler))
    with pytest.raises(DataError):
        await store.get_profile("u1")


@pytest.mark.asyncio
async def test_search_projects_uses_ilike_filter() -> None:
    recorder = Recorder(httpx.Response(200, json=[{"id": "p1", "user_id": "u1", "name": "Web"}]))
    projects = await _store(recorder).search_projects("u1", "web")

    assert [p.id for p in projects] == ["p1"]
    assert recorder.requests[0].url.params["or"] == "(name.ilike.*web*,description.ilike.*web*)"


@pytest.mark.asyncio
async def test_dashboard_stats_default_to_zero() -> None:
    recorder = Recorder(httpx.Response(200, json=[]))
    stats = await _store(recorder).get_dashboard_stats("u1")
    assert stats.user_id == "u1"
    assert stats.total_projects == 0


@pytest.mark.asyncio
async def test_sessions_include_counts() -> None:
    message = {
        "id": "m2",
        "user_id": "u1",
        "conversation_id": "c1",
        "role": "assistant",
        "content": "latest",
        "created_at": "2024-05-06T11:00:00+00:00",
    }

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("chat_conversations"):
            return httpx.Response(200, json=[_conversation(metadata={"preview": "hello"})])
        if request.method == "HEAD":
            return httpx.Response(200, headers={"Content-Range": "0-1/2"})
        return httpx.Response(200, json=[message])

    store = SupabaseStore(URL, "anon", "jwt", transport=httpx.MockTransport(handler))
    (session,) = await store.list_conversation_sessions("u1")

    assert session.message_count == 2
    assert session.preview == "hello"
    assert session.last_message_at.hour == 11


class TestSupabaseAuthProvider:
    """Tests for resolving the signed-in user."""

    @pytest.mark.asyncio
    async def test_returns_user_id(self) -> None:
        recorder = Recorder(httpx.Response(200, json={"id": "u1", "email": "a@b.c"}))
        auth = SupabaseAuthProvider(URL, "anon", "jwt", transport=httpx.MockTransport(recorder))

        assert await auth.get_current_user_id() == "u1"
        assert recorder.requests[0].url.path == "/auth/v1/user"

    @pytest.mark.asyncio
    async def test_signed_out_without_token(self) -> None:
        assert await SupabaseAuthProvider(URL, "anon").get_current_user_id() is None

    @pytest.mark.asyncio
    async def test_rejected_token(self) -> None:
        recorder = Recorder(httpx.Response(401, json={"msg": "expired"}))
        auth = SupabaseAuthProvider(URL, "anon", "jwt", transport=httpx.MockTransport(recorder))
        assert await auth.get_current_user_id() is None
