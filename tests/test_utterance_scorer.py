import pytest

from utterance_scorer import (
    FeedbackTier,
    breakdown_words,
    feedback_message,
    feedback_tier,
    normalize,
    score_utterance,
    similarity_score,
    word_error_rate,
)


def test_normalize_strips_punctuation_and_case():
    assert normalize("Hello, how are you?") == ["hello", "how", "are", "you"]
    assert normalize("?!  ...") == []


def test_normalize_keeps_combining_marks_together():
    # Devanagari vowel signs are combining marks
    assert normalize("नमस्ते आप कैसे हैं") == ["नमस्ते", "आप", "कैसे", "हैं"]


def test_exact_repeat_scores_100():
    assert similarity_score("Hello, how are you?", "hello how are you") == 100
    assert similarity_score("नमस्ते आप कैसे हैं", "नमस्ते आप कैसे हैं") == 100


@pytest.mark.parametrize("expected, actual", [
    ("", "hola"),
    ("hola", ""),
    ("¿?", "hola"),
])
def test_empty_side_scores_zero(expected, actual):
    assert similarity_score(expected, actual) == 0


def test_partial_match_rounds_half_up():
    assert similarity_score("one two three", "one two") == 67
    assert similarity_score("one two", "one") == 50
    assert similarity_score("a b c d e f g h", "a") == 13


def test_word_match_ignores_order_and_counts_repeats():
    assert similarity_score("very very good", "good very") == 100
    assert similarity_score("where is the bathroom", "bathroom the is where") == 100


@pytest.mark.parametrize("score, tier", [
    (100, FeedbackTier.EXCELLENT),
    (90, FeedbackTier.EXCELLENT),
    (89, FeedbackTier.GOOD),
    (75, FeedbackTier.GOOD),
    (74, FeedbackTier.FAIR),
    (50, FeedbackTier.FAIR),
    (49, FeedbackTier.POOR),
    (1, FeedbackTier.POOR),
    (0, FeedbackTier.NO_MATCH),
])
def test_tier_boundaries(score, tier):
    assert feedback_tier(score) is tier


def test_no_match_message_quotes_expected_phrase():
    msg = feedback_message(FeedbackTier.NO_MATCH, "Buenos días")
    assert "Buenos días" in msg
    assert feedback_message(FeedbackTier.EXCELLENT).startswith("Excellent")


def test_score_result_lists_missed_words():
    result = score_utterance("Where is the bathroom?", "where bathroom")
    assert result.percent == 50
    assert result.tier is FeedbackTier.FAIR
    assert result.missed_words == frozenset({"is", "the"})


def test_word_error_rate_is_diagnostic():
    assert word_error_rate("hola amigo", "hola amigo") == 0.0
    assert word_error_rate("hola amigo", "hola amiga") == pytest.approx(0.5)
    assert word_error_rate("", "hola") is None
    assert score_utterance("hola", "").word_error_rate is None


def test_breakdown_words():
    assert breakdown_words("¿Dónde está el baño?") == ["dónde", "está", "el", "baño"]


@pytest.mark.parametrize("expected, actual, score", [
    ("hello world", "hello world", 100),
    ("hello world", "goodbye", 0),
    ("a b c d", "a b", 50),
])
def test_reference_scores(expected, actual, score):
    assert similarity_score(expected, actual) == score
