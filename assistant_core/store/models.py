"""Backend records consumed by the cache producers."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003

from pydantic import BaseModel, ConfigDict


class Project(BaseModel):
    """A user's project row."""

    model_config = ConfigDict(extra="allow")

    id: str
    user_id: str
    name: str
    description: str | None = None
    status: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Profile(BaseModel):
    """A user's profile row."""

    model_config = ConfigDict(extra="allow")

    id: str
    full_name: str | None = None
    email: str | None = None
    avatar_url: str | None = None


class DashboardStats(BaseModel):
    """Aggregated counters shown on the dashboard."""

    model_config = ConfigDict(extra="allow")

    user_id: str
    total_projects: int = 0
    active_projects: int = 0
    completed_projects: int = 0
    total_tasks: int = 0
    completed_tasks: int = 0
    pending_tasks: int = 0
    overdue_tasks: int = 0
    total_conversations: int = 0
    total_messages: int = 0
