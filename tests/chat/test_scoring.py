"""Tests for message importance scoring and token estimation."""

from __future__ import annotations

import pytest

from assistant_core.chat.scoring import IMPORTANCE_KEYWORDS, score_message
from assistant_core.chat.tokens import estimate_tokens


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("", 0),
        ("abcd", 1),
        ("abcde", 2),
        ("x" * 400, 100),
    ],
)
def test_estimate_tokens(text: str, expected: int) -> None:
    """Tokens are a quarter of the characters, rounded up."""
    assert estimate_tokens(text) == expected


def test_keyword_list_has_all_terms() -> None:
    assert len(IMPORTANCE_KEYWORDS) == 57
    assert len(set(IMPORTANCE_KEYWORDS)) == 57


def test_score_decision_message() -> None:
    """Keywords, four categories and the multi-signal bonus all add up."""
    importance = score_message("We need to decide on the database architecture urgently")

    assert importance.matched_keywords == ["decide", "need", "urgent", "architecture", "database"]
    assert importance.is_key_decision
    assert importance.is_requirement
    assert not importance.is_action_item
    assert importance.is_high_priority
    assert importance.is_technical_decision
    # 5 keywords * 2 + 5 + 4 + 4 + 3 + 4 signals
    assert importance.score == 30


def test_score_is_deterministic() -> None:
    text = "We need to decide on the database architecture urgently"
    assert score_message(text) == score_message(text)


def test_plain_message_scores_zero() -> None:
    importance = score_message("Hello there, nice weather today")
    assert importance.score == 0
    assert importance.matched_keywords == []


def test_single_signal_gets_no_multi_bonus() -> None:
    importance = score_message("This is critical")
    assert importance.matched_keywords == ["critical"]
    assert importance.score == 2 + 4


def test_matching_is_case_insensitive() -> None:
    assert score_message("URGENT").score == score_message("urgent").score > 0


@pytest.mark.parametrize(
    ("length", "expected"),
    [(500, 0), (501, 2), (1000, 2), (1001, 5)],
)
def test_length_bonus(length: int, expected: int) -> None:
    assert score_message("a" * length).score == expected
