import os
from dataclasses import dataclass
from typing import Dict, List, Optional

from languages import Language


PHRASES_BY_CATEGORY: Dict[str, List[str]] = {
    "basic": [
        "Hello, how are you?",
        "Nice to meet you.",
        "What is your name?",
        "Can you say that again?",
        "Can you speak more slowly, please?",
        "I'm learning your language.",
        "Thank you very much.",
        "Excuse me, can you help me?",
        "I don't understand.",
    ],
    "salon": [
        "I would like a haircut, please.",
        "Just a little shorter, please.",
        "Not too short on top.",
        "Please trim the sides.",
        "Can you wash my hair, please?",
        "Can you shave the neck?",
        "It looks great, thank you!",
    ],
    "conversation": [
        "What do you think?",
        "Can we talk for a moment?",
        "That's interesting!",
        "I really appreciate your help.",
    ],
    "taxi": [
        "Where can I find a taxi?",
        "I need a taxi, please.",
        "Can you call a taxi for me?",
        "How long will the taxi take to arrive?",
        "How much is the fare?",
        "Please take me here.",
        "Can you wait for me?",
    ],
}


@dataclass(frozen=True)
class Phrase:
    source_text: str
    target_text: Optional[str]
    source_language: Language
    target_language: Language
    custom: bool = False

    @property
    def is_resolved(self) -> bool:
        return bool(self.target_text and self.target_text.strip())

    @property
    def display_target(self) -> str:
        """Target text, or the source text while the translation is missing."""
        return self.target_text if self.is_resolved else self.source_text


def preset_phrases(*categories: str) -> List[str]:
    """Phrases of the given categories in order; all categories when none given."""
    names = categories or tuple(PHRASES_BY_CATEGORY)
    out: List[str] = []
    for name in names:
        out += PHRASES_BY_CATEGORY.get(name, [])
    return out


def load_phrases(directory: str) -> List[str]:
    """
    One phrase per non-blank line from every *.txt file in a directory,
    files read in name order.
    """
    files = sorted(
        f for f in os.listdir(directory)
        if f.lower().endswith(".txt")
    )
    out: List[str] = []
    for name in files:
        path = os.path.join(directory, name)
        with open(path, "r", encoding="utf-8") as fh:
            out += [line.strip() for line in fh if line.strip()]
    return out


def next_index(current: int, count: int) -> int:
    if count <= 0:
        return 0
    return (current + 1) % count
