# word_breakdown.py
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from utterance_scorer import _is_word_char


Token = Tuple[str, int, int]  # (text, start_char, end_char)
Op = Tuple[str, Optional[int], Optional[int]]  # (op, expected_idx, heard_idx)


@dataclass(frozen=True)
class BreakdownWord:
    text: str
    start: int
    end: int
    heard: bool
    heard_as: Optional[str] = None  # recognized word aligned to a substitution


@dataclass(frozen=True)
class Breakdown:
    words: List[BreakdownWord]
    extra_words: List[str]

    @property
    def missed(self) -> List[str]:
        return [w.text for w in self.words if not w.heard]


def tokenize_with_spans(text: str) -> List[Token]:
    """
    Word tokens and their character spans in the display text.
    Word characters are letters, marks and digits of any script.
    """
    tokens: List[Token] = []
    start = -1
    for i, ch in enumerate(text):
        if _is_word_char(ch):
            if start < 0:
                start = i
        elif start >= 0:
            tokens.append((text[start:i], start, i))
            start = -1
    if start >= 0:
        tokens.append((text[start:], start, len(text)))
    return tokens


def _align_tokens(ref: List[str], hyp: List[str]) -> List[Op]:
    """
    Edit-distance alignment of two word lists.
    op in {"equal", "sub", "del", "ins"}; comparison is case-insensitive.
    """
    n, m = len(ref), len(hyp)
    dp = [[0] * (m + 1) for _ in range(n + 1)]
    for i in range(1, n + 1):
        dp[i][0] = i
    for j in range(1, m + 1):
        dp[0][j] = j

    for i in range(1, n + 1):
        ri = ref[i - 1].lower()
        for j in range(1, m + 1):
            cost = 0 if ri == hyp[j - 1].lower() else 1
            dp[i][j] = min(
                dp[i - 1][j] + 1,  # del
                dp[i][j - 1] + 1,  # ins
                dp[i - 1][j - 1] + cost,  # equal / sub
            )

    # walk back from the corner, preferring diagonal moves
    ops: List[Op] = []
    i, j = n, m
    while i > 0 or j > 0:
        if i > 0 and j > 0:
            cost = 0 if ref[i - 1].lower() == hyp[j - 1].lower() else 1
            if dp[i][j] == dp[i - 1][j - 1] + cost:
                ops.append(("equal" if cost == 0 else "sub", i - 1, j - 1))
                i, j = i - 1, j - 1
                continue
        if i > 0 and dp[i][j] == dp[i - 1][j] + 1:
            ops.append(("del", i - 1, None))
            i -= 1
        else:
            ops.append(("ins", None, j - 1))
            j -= 1
    ops.reverse()
    return ops


def build_breakdown(expected: str, heard: str = "") -> Breakdown:
    """
    Word-by-word review of the expected phrase against what was heard.
    Missing and substituted words are marked not heard.
    """
    exp_tokens = tokenize_with_spans(expected)
    hyp_tokens = tokenize_with_spans(heard or "")
    ops = _align_tokens([t[0] for t in exp_tokens], [t[0] for t in hyp_tokens])

    words: List[BreakdownWord] = []
    extra: List[str] = []
    for op, ei, hj in ops:
        if op == "ins" and hj is not None:
            extra.append(hyp_tokens[hj][0])
            continue
        if ei is None:
            continue
        text, start, end = exp_tokens[ei]
        if op == "equal":
            words.append(BreakdownWord(text, start, end, heard=True))
        elif op == "sub" and hj is not None:
            words.append(BreakdownWord(text, start, end, heard=False, heard_as=hyp_tokens[hj][0]))
        else:
            words.append(BreakdownWord(text, start, end, heard=False))
    return Breakdown(words=words, extra_words=extra)
