from __future__ import annotations

import re
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from PyQt5 import QtCore

from collaborators import TranslationReply
from errors import DailyLimitReached, TranslationFailed
from languages import Language
from settings import NORMAL, SLOW, default_settings, languages, playback_rate
from transcript_segmenter import PhraseEvent
from utterance_scorer import ScoreResult, breakdown_words, feedback_message, score_utterance

logger = logging.getLogger(__name__)


HOW_DO_YOU_SAY = "how do you say"
QUOTE_CHARS = "\"“”'‘’"

# "… in Spanish?" at the end of a request; first word of each language name
_TRAILING_LANGUAGE = re.compile(
    r"(?:^|\s+)in\s+(?:"
    + "|".join(re.escape(lang.display_name.split(" (")[0]) for lang in Language)
    + r")(?!\w).*$",
    re.IGNORECASE | re.DOTALL,
)

STATUS_START = "Tap the mic and start speaking."
STATUS_NOTHING_HEARD = "I didn’t catch anything. Try again."
STATUS_LIMIT = "Daily translation limit reached for this device."
STATUS_ASK_EXAMPLE = (
    "Tell me the phrase you want to learn, for example: "
    "“How do you say ‘Where is the bathroom?’ in Spanish?”"
)
STATUS_TRANSLATING = "Translating your phrase…"
STATUS_REPEAT = "Listen carefully and then repeat."
STATUS_REPEAT_OPTIONAL = "Repeat the phrase if you like."


class Speaker(Enum):
    YOU = "you"
    PARTNER = "partner"


@dataclass(frozen=True)
class Message:
    speaker: Speaker
    text: str
    created_at: datetime = field(default_factory=datetime.now)


def extract_requested_phrase(text: str) -> Optional[str]:
    """
    The phrase asked for in a "how do you say …" question, without a
    trailing "in <language>" or surrounding quotes.
    None when the text is not such a question; "" when it names no phrase.
    """
    lower = text.lower()
    pos = lower.find(HOW_DO_YOU_SAY)
    if pos < 0:
        return None
    phrase = text[pos + len(HOW_DO_YOU_SAY):].strip()
    phrase = _TRAILING_LANGUAGE.sub("", phrase)
    return phrase.strip().strip(QUOTE_CHARS).strip()


class ConversationPractice(QtCore.QObject):
    """
    Chat-style partner: ask "How do you say …?" or just talk, hear the
    translation, then repeat it and get scored.

    Emits:
      message_added(message: Message)
      status_changed(text: str)
      scored(result: ScoreResult)
      breakdown_required(words: list)
      error_occurred(error: PracticeError)
    """

    message_added = QtCore.pyqtSignal(object)
    status_changed = QtCore.pyqtSignal(str)
    scored = QtCore.pyqtSignal(object)
    breakdown_required = QtCore.pyqtSignal(list)
    error_occurred = QtCore.pyqtSignal(object)

    def __init__(self, translator, synthesizer, quota=None, settings: Optional[Dict] = None,
                 source_language: Optional[Language] = None,
                 practice_language: Optional[Language] = None, parent=None):
        super().__init__(parent)
        self.settings = default_settings()
        self.settings.update(settings or {})
        src, tgt = languages(self.settings)
        self.source_language = source_language or src
        self.practice_language = practice_language or tgt
        self._translator = translator
        self._synth = synthesizer
        self._quota = quota

        self.messages: List[Message] = []
        self.status = STATUS_START
        self.expected_phrase: Optional[str] = None
        self.attempts = 0
        self.last_score: Optional[ScoreResult] = None
        self.last_feedback = ""
        self.show_breakdown = False
        self.speed = NORMAL
        self._reply: Optional[TranslationReply] = None

    @property
    def rate(self) -> float:
        return playback_rate(self.settings, self.speed, partner=True)

    def set_speed(self, speed: str) -> None:
        self.speed = SLOW if speed == SLOW else NORMAL

    def on_phrase(self, event: PhraseEvent) -> None:
        self.handle_utterance(event.text)

    def handle_utterance(self, text: str) -> None:
        raw = (text or "").strip()
        if not raw:
            self._set_status(STATUS_NOTHING_HEARD)
            return
        self._add(Speaker.YOU, raw)

        requested = extract_requested_phrase(raw)
        if requested is not None:
            self._ask_how_to_say(requested)
        elif self.expected_phrase is not None:
            self._score(self.expected_phrase, raw)
        else:
            self._suggest_reply(raw)

    def repeat_expected(self) -> None:
        """Speak the expected phrase again at the current partner speed."""
        if self.expected_phrase:
            self._speak(self.expected_phrase)

    # ─────────────────────────── handlers ───────────────────────────

    def _ask_how_to_say(self, phrase: str) -> None:
        if not phrase:
            self._set_status(STATUS_ASK_EXAMPLE)
            return
        if not self._admit():
            return
        self._set_status(STATUS_TRANSLATING)
        self._translate(
            phrase,
            intro=f"In {self.practice_language.display_name}, you can say:",
            outro="Try repeating it now.",
            status=STATUS_REPEAT,
            error_prefix="I had trouble translating that",
            error_status="Translation error.",
        )

    def _suggest_reply(self, text: str) -> None:
        if not self._admit():
            return
        self._set_status(f"Thinking in {self.practice_language.display_name}…")
        self._translate(
            text,
            intro="I might say:",
            outro="Try saying that back to me.",
            status=STATUS_REPEAT_OPTIONAL,
            error_prefix="I couldn’t quite handle that",
            error_status="Error.",
        )

    def _score(self, expected: str, actual: str) -> ScoreResult:
        self.attempts += 1
        result = score_utterance(expected, actual)
        self.last_score = result
        self.last_feedback = feedback_message(result.tier, expected)
        summary = f"Score: {result.percent}% – {self.last_feedback}"
        self._set_status(summary)
        self._add(Speaker.PARTNER, f"I heard: “{actual}”\n{summary}")
        self.scored.emit(result)

        attempts_needed = int(self.settings["remediation_attempts"])
        threshold = int(self.settings["remediation_threshold"])
        if not self.show_breakdown and self.attempts >= attempts_needed and result.percent < threshold:
            self.show_breakdown = True
            self.breakdown_required.emit(breakdown_words(expected))
        return result

    # ─────────────────────────── helpers ────────────────────────────

    def _admit(self) -> bool:
        if self._quota is None or self._quota.admit():
            return True
        self._set_status(STATUS_LIMIT)
        self._add(
            Speaker.PARTNER,
            "Sorry, you've reached today's translation limit on this device.",
        )
        self.error_occurred.emit(DailyLimitReached(self._quota.max_per_day))
        return False

    def _translate(self, text: str, intro: str, outro: str, status: str,
                   error_prefix: str, error_status: str) -> None:
        reply = self._translator.translate(
            text,
            self.source_language.translation_code,
            self.practice_language.translation_code,
        )
        self._reply = reply

        def finished(translated: str) -> None:
            if reply is not self._reply:
                logger.debug("Ignoring superseded translation of %r", text)
                return
            if not translated.strip():
                failed("Empty translation.")
                return
            self._reply = None
            self._set_expected(translated)
            self._add(Speaker.PARTNER, f"{intro}\n“{translated}”\n\n{outro}")
            self._set_status(status)
            self._speak(translated)

        def failed(message: str) -> None:
            if reply is not self._reply:
                logger.debug("Ignoring superseded failure for %r", text)
                return
            self._reply = None
            error = TranslationFailed(message)
            logger.warning("Conversation translation failed: %s", error)
            self._add(Speaker.PARTNER, f"{error_prefix}: {error}")
            self._set_status(error_status)
            self.error_occurred.emit(error)

        reply.subscribe(finished, failed)

    def _set_expected(self, phrase: str) -> None:
        self.expected_phrase = phrase
        self.attempts = 0
        self.show_breakdown = False
        self.last_score = None
        self.last_feedback = ""

    def _speak(self, text: str) -> None:
        self._synth.speak(
            text,
            self.practice_language.tts_code,
            self.rate,
            bool(self.settings["use_speaker"]),
        )

    def _add(self, speaker: Speaker, text: str) -> None:
        msg = Message(speaker, text)
        self.messages.append(msg)
        self.message_added.emit(msg)

    def _set_status(self, text: str) -> None:
        self.status = text
        self.status_changed.emit(text)
