"""Conversation context, model gateway and caching core for the productivity assistant."""

from __future__ import annotations

__version__ = "0.1.0"
