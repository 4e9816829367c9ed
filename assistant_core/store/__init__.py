"""Backend data stores and auth providers."""

from __future__ import annotations

from assistant_core.store.base import AuthProvider, DataStore
from assistant_core.store.memory import InMemoryStore, StaticAuthProvider
from assistant_core.store.models import DashboardStats, Profile, Project
from assistant_core.store.supabase import SupabaseAuthProvider, SupabaseStore

__all__ = [
    "AuthProvider",
    "DashboardStats",
    "DataStore",
    "InMemoryStore",
    "Profile",
    "Project",
    "StaticAuthProvider",
    "SupabaseAuthProvider",
    "SupabaseStore",
]
