"""Keyword heuristics that rank historical messages by importance."""

from __future__ import annotations

from assistant_core.chat.models import MessageImportance

IMPORTANCE_KEYWORDS = (
    # Decisions
    "decision", "decide", "choose", "select", "option", "alternative",
    # Requirements
    "require", "must", "should", "need", "necessary", "essential",
    # Action items
    "task", "todo", "action", "next step", "deadline", "due date",
    # Priority
    "important", "critical", "urgent", "priority", "high priority",
    # Implementation
    "implement", "develop", "build", "create", "design", "architecture",
    # Problems
    "issue", "problem", "bug", "error", "fix", "solution",
    # Features
    "feature", "functionality", "capability", "component", "module",
    # Technical
    "api", "database", "server", "client", "frontend", "backend",
    # Business
    "business", "requirement", "stakeholder", "user", "customer",
    # Project management
    "milestone", "sprint", "iteration", "phase", "stage", "timeline",
)  # fmt: skip

KEY_DECISION_TERMS = ("decision", "decide", "choose", "select", "option")
REQUIREMENT_TERMS = ("require", "must", "should", "need", "necessary")
ACTION_ITEM_TERMS = ("task", "todo", "action", "next step", "deadline")
HIGH_PRIORITY_TERMS = ("important", "critical", "urgent", "priority")
TECHNICAL_DECISION_TERMS = ("implement", "architecture", "design", "api", "database")

KEYWORD_POINTS = 2
KEY_DECISION_BONUS = 5
REQUIREMENT_BONUS = 4
ACTION_ITEM_BONUS = 3
HIGH_PRIORITY_BONUS = 4
TECHNICAL_DECISION_BONUS = 3

LONG_MESSAGE_CHARS = 500
VERY_LONG_MESSAGE_CHARS = 1000
LONG_MESSAGE_BONUS = 2
VERY_LONG_MESSAGE_BONUS = 3
MIN_SIGNALS_FOR_BONUS = 2


def _mentions(content: str, terms: tuple[str, ...]) -> bool:
    return any(term in content for term in terms)


def score_message(content: str) -> MessageImportance:
    """Score a message by keyword, category, length and multi-signal heuristics.

    Matching is case-insensitive substring matching, so "urgently" counts as
    "urgent". A message with no keywords scores 0.
    """
    text = content.lower()

    matched = [keyword for keyword in IMPORTANCE_KEYWORDS if keyword in text]
    score = KEYWORD_POINTS * len(matched)

    is_key_decision = _mentions(text, KEY_DECISION_TERMS)
    is_requirement = _mentions(text, REQUIREMENT_TERMS)
    is_action_item = _mentions(text, ACTION_ITEM_TERMS)
    is_high_priority = _mentions(text, HIGH_PRIORITY_TERMS)
    is_technical_decision = _mentions(text, TECHNICAL_DECISION_TERMS)

    if is_key_decision:
        score += KEY_DECISION_BONUS
    if is_requirement:
        score += REQUIREMENT_BONUS
    if is_action_item:
        score += ACTION_ITEM_BONUS
    if is_high_priority:
        score += HIGH_PRIORITY_BONUS
    if is_technical_decision:
        score += TECHNICAL_DECISION_BONUS

    if len(text) > LONG_MESSAGE_CHARS:
        score += LONG_MESSAGE_BONUS
    if len(text) > VERY_LONG_MESSAGE_CHARS:
        score += VERY_LONG_MESSAGE_BONUS

    signals = sum(
        (is_key_decision, is_requirement, is_action_item, is_high_priority, is_technical_decision),
    )
    if signals >= MIN_SIGNALS_FOR_BONUS:
        score += signals

    return MessageImportance(
        score=score,
        matched_keywords=matched,
        is_key_decision=is_key_decision,
        is_requirement=is_requirement,
        is_action_item=is_action_item,
        is_high_priority=is_high_priority,
        is_technical_decision=is_technical_decision,
    )
