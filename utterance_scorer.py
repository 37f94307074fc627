# utterance_scorer.py
from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, List, Optional

from jiwer import wer


class FeedbackTier(Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    NO_MATCH = "no_match"


FEEDBACK_MESSAGES = {
    FeedbackTier.EXCELLENT: "Excellent! That sounded very clear.",
    FeedbackTier.GOOD: "Very good, just polish the pronunciation a little.",
    FeedbackTier.FAIR: "Pretty close. Listen again and focus on the stressed syllables.",
    FeedbackTier.POOR: "Not quite. Try repeating more slowly and clearly.",
}


@dataclass(frozen=True)
class ScoreResult:
    percent: int
    tier: FeedbackTier
    expected_words: FrozenSet[str]
    matched_words: FrozenSet[str]
    # diagnostic only, never used for percent
    word_error_rate: Optional[float] = None

    @property
    def missed_words(self) -> FrozenSet[str]:
        return self.expected_words - self.matched_words


def _is_word_char(ch: str) -> bool:
    # letters, combining marks and digits in any script
    return unicodedata.category(ch)[0] in ("L", "M", "N")


def normalize(text: str) -> List[str]:
    """
    Lower-case and split on every character that is not a letter, mark or
    digit. Order and duplicates are kept.
    """
    tokens: List[str] = []
    current: List[str] = []
    for ch in (text or "").lower():
        if _is_word_char(ch):
            current.append(ch)
        elif current:
            tokens.append("".join(current))
            current = []
    if current:
        tokens.append("".join(current))
    return tokens


def _round_half_up(numerator: int, denominator: int) -> int:
    return (200 * numerator + denominator) // (2 * denominator)


def similarity_score(expected: str, actual: str) -> int:
    """Percentage of expected words that appear anywhere in the utterance."""
    exp_words = normalize(expected)
    act_words = normalize(actual)
    if not exp_words or not act_words:
        return 0
    heard = set(act_words)
    matches = sum(1 for w in exp_words if w in heard)
    return max(0, min(100, _round_half_up(matches, len(exp_words))))


def feedback_tier(score: int) -> FeedbackTier:
    if score >= 90:
        return FeedbackTier.EXCELLENT
    if score >= 75:
        return FeedbackTier.GOOD
    if score >= 50:
        return FeedbackTier.FAIR
    if score >= 1:
        return FeedbackTier.POOR
    return FeedbackTier.NO_MATCH


def feedback_message(tier: FeedbackTier, expected: str = "") -> str:
    if tier is FeedbackTier.NO_MATCH:
        return f"I couldn't really match that to “{expected}”. Let's try again."
    return FEEDBACK_MESSAGES[tier]


def word_error_rate(expected: str, actual: str) -> Optional[float]:
    exp_words = normalize(expected)
    act_words = normalize(actual)
    if not exp_words or not act_words:
        return None
    return float(wer(reference=" ".join(exp_words), hypothesis=" ".join(act_words)))


def score_utterance(expected: str, actual: str) -> ScoreResult:
    exp_words = normalize(expected)
    heard = set(normalize(actual))
    percent = similarity_score(expected, actual)
    return ScoreResult(
        percent=percent,
        tier=feedback_tier(percent),
        expected_words=frozenset(exp_words),
        matched_words=frozenset(w for w in exp_words if w in heard),
        word_error_rate=word_error_rate(expected, actual),
    )


def breakdown_words(phrase: str) -> List[str]:
    """Words of a phrase for the word-by-word review."""
    return normalize(phrase)
