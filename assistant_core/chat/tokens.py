"""Cheap token estimation used by every budgeting decision."""

from __future__ import annotations

import math

from assistant_core.constants import CHARS_PER_TOKEN


def estimate_tokens(text: str) -> int:
    """Estimate token count using the ~4 chars per token heuristic."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)
