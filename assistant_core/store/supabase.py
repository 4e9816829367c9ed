"""Supabase-backed store and auth provider over the PostgREST HTTP API."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

import httpx

from assistant_core.chat.models import ChatSession, Conversation, Message, utc_now
from assistant_core.constants import NO_MESSAGES_PREVIEW, UNTITLED_CONVERSATION
from assistant_core.errors import DataError
from assistant_core.store.base import AuthProvider, DataStore
from assistant_core.store.models import DashboardStats, Profile, Project

if TYPE_CHECKING:
    from assistant_core.chat.models import Role

LOGGER = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30.0


def _headers(anon_key: str, access_token: str | None) -> dict[str, str]:
    return {
        "apikey": anon_key,
        "Authorization": f"Bearer {access_token or anon_key}",
    }


def _parse_count(content_range: str | None) -> int:
    """Total from a `Content-Range` header such as `0-9/42` or `*/0`."""
    if not content_range or "/" not in content_range:
        msg = f"Missing row count in Content-Range: {content_range!r}"
        raise DataError(msg)
    total = content_range.rsplit("/", 1)[1]
    if not total.isdigit():
        msg = f"Unknown row count in Content-Range: {content_range!r}"
        raise DataError(msg)
    return int(total)


class SupabaseAuthProvider(AuthProvider):
    """Resolve the signed-in user from an access token."""

    def __init__(
        self,
        url: str,
        anon_key: str,
        access_token: str | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize with the project URL, public key and the user's JWT."""
        self.url = url.rstrip("/")
        self.anon_key = anon_key
        self.access_token = access_token
        self.transport = transport

    async def get_current_user_id(self) -> str | None:
        """Return the token's user id, or None when signed out or the token is rejected."""
        if not self.access_token:
            return None
        try:
            async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT, transport=self.transport) as client:
                response = await client.get(
                    f"{self.url}/auth/v1/user",
                    headers=_headers(self.anon_key, self.access_token),
                )
        except httpx.HTTPError as exc:
            msg = f"Auth request failed: {exc}"
            raise DataError(msg) from exc
        if response.status_code in (401, 403):
            return None
        if response.is_error:
            msg = f"Auth request returned HTTP {response.status_code}"
            raise DataError(msg)
        return response.json().get("id")


class SupabaseStore(DataStore):
    """`DataStore` on the `chat_conversations`, `chat_messages`, `projects`,
    `profiles` and `user_dashboard_stats` relations.
    """

    def __init__(
        self,
        url: str,
        anon_key: str,
        access_token: str | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the store.

        Requests run with the user's `access_token` so row-level security
        applies; without it the anon key is used.
        """
        self.rest_url = f"{url.rstrip('/')}/rest/v1"
        self.headers = _headers(anon_key, access_token)
        self.transport = transport

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> httpx.Response:
        headers = dict(self.headers)
        if prefer:
            headers["Prefer"] = prefer
        try:
            async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT, transport=self.transport) as client:
                response = await client.request(
                    method,
                    f"{self.rest_url}/{table}",
                    params=params,
                    json=json,
                    headers=headers,
                )
        except httpx.HTTPError as exc:
            msg = f"{method} {table} failed: {exc}"
            raise DataError(msg) from exc
        if response.is_error:
            LOGGER.error("%s %s returned %s: %s", method, table, response.status_code, response.text)
            msg = f"{method} {table} returned HTTP {response.status_code}"
            raise DataError(msg)
        return response

    async def _select(self, table: str, **params: str) -> list[dict[str, Any]]:
        response = await self._request("GET", table, params={"select": "*", **params})
        return response.json()

    async def _insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        response = await self._request("POST", table, json=row, prefer="return=representation")
        return response.json()[0]

    # --- Conversations ---

    async def insert_conversation(
        self,
        *,
        user_id: str,
        title: str,
        project_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Conversation:
        row = await self._insert(
            "chat_conversations",
            {
                "user_id": user_id,
                "project_id": project_id,
                "title": title,
                "metadata": metadata or {},
            },
        )
        return Conversation.model_validate(row)

    async def get_conversation(
        self,
        conversation_id: str,
        *,
        user_id: str | None = None,
    ) -> Conversation | None:
        params = {"id": f"eq.{conversation_id}"}
        if user_id is not None:
            params["user_id"] = f"eq.{user_id}"
        rows = await self._select("chat_conversations", **params)
        return Conversation.model_validate(rows[0]) if rows else None

    async def update_conversation(
        self,
        conversation_id: str,
        *,
        title: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Conversation:
        changes: dict[str, Any] = {"updated_at": utc_now().isoformat()}
        if title is not None:
            changes["title"] = title
        if metadata is not None:
            changes["metadata"] = metadata
        response = await self._request(
            "PATCH",
            "chat_conversations",
            params={"id": f"eq.{conversation_id}"},
            json=changes,
            prefer="return=representation",
        )
        rows = response.json()
        if not rows:
            msg = f"Conversation not found: {conversation_id}"
            raise DataError(msg)
        return Conversation.model_validate(rows[0])

    async def delete_conversation(self, conversation_id: str, *, user_id: str) -> None:
        await self._request(
            "DELETE",
            "chat_conversations",
            params={"id": f"eq.{conversation_id}", "user_id": f"eq.{user_id}"},
        )

    async def _session(self, conversation: Conversation) -> ChatSession:
        last, count = await asyncio.gather(
            self._select(
                "chat_messages",
                conversation_id=f"eq.{conversation.id}",
                order="created_at.desc",
                limit="1",
            ),
            self.count_messages(conversation.id),
        )
        last_message_at = Message.model_validate(last[0]).created_at if last else conversation.created_at
        return ChatSession(
            id=conversation.id,
            user_id=conversation.user_id,
            project_id=conversation.project_id,
            title=conversation.title or UNTITLED_CONVERSATION,
            preview=conversation.preview or NO_MESSAGES_PREVIEW,
            message_count=count,
            last_message_at=last_message_at,
            created_at=conversation.created_at,
            updated_at=conversation.updated_at,
        )

    async def list_conversation_sessions(self, user_id: str) -> list[ChatSession]:
        rows = await self._select(
            "chat_conversations",
            user_id=f"eq.{user_id}",
            order="updated_at.desc",
        )
        conversations = [Conversation.model_validate(row) for row in rows]
        return list(await asyncio.gather(*(self._session(c) for c in conversations)))

    # --- Messages ---

    async def insert_message(
        self,
        *,
        user_id: str,
        conversation_id: str,
        role: Role,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> Message:
        row = await self._insert(
            "chat_messages",
            {
                "user_id": user_id,
                "conversation_id": conversation_id,
                "role": role,
                "content": content,
                "metadata": metadata or {},
            },
        )
        return Message.model_validate(row)

    async def list_messages(self, conversation_id: str) -> list[Message]:
        rows = await self._select(
            "chat_messages",
            conversation_id=f"eq.{conversation_id}",
            order="created_at.asc",
        )
        return [Message.model_validate(row) for row in rows]

    async def count_messages(self, conversation_id: str) -> int:
        response = await self._request(
            "HEAD",
            "chat_messages",
            params={"select": "id", "conversation_id": f"eq.{conversation_id}"},
            prefer="count=exact",
        )
        return _parse_count(response.headers.get("content-range"))

    async def delete_messages(self, conversation_id: str, *, user_id: str) -> None:
        await self._request(
            "DELETE",
            "chat_messages",
            params={"conversation_id": f"eq.{conversation_id}", "user_id": f"eq.{user_id}"},
        )

    # --- Projects and profiles ---

    async def list_projects(self, user_id: str) -> list[Project]:
        rows = await self._select("projects", user_id=f"eq.{user_id}", order="updated_at.desc")
        return [Project.model_validate(row) for row in rows]

    async def get_project(self, project_id: str) -> Project | None:
        rows = await self._select("projects", id=f"eq.{project_id}")
        return Project.model_validate(rows[0]) if rows else None

    async def search_projects(self, user_id: str, query: str) -> list[Project]:
        rows = await self._select(
            "projects",
            user_id=f"eq.{user_id}",
            order="updated_at.desc",
            **{"or": f"(name.ilike.*{query}*,description.ilike.*{query}*)"},
        )
        return [Project.model_validate(row) for row in rows]

    async def get_profile(self, user_id: str) -> Profile | None:
        rows = await self._select("profiles", id=f"eq.{user_id}")
        return Profile.model_validate(rows[0]) if rows else None

    async def get_dashboard_stats(self, user_id: str) -> DashboardStats:
        """Row from the stats view; zeros for a user with no row yet."""
        rows = await self._select("user_dashboard_stats", user_id=f"eq.{user_id}")
        if not rows:
            return DashboardStats(user_id=user_id)
        return DashboardStats.model_validate(rows[0])
