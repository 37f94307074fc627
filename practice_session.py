from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from PyQt5 import QtCore
from sqlalchemy.exc import SQLAlchemyError

from collaborators import TranslationReply
from errors import (
    DailyLimitReached,
    EmptyUtterance,
    RecognitionUnavailable,
    TranslationFailed,
)
from languages import Language
from phrases import Phrase, next_index
from playback_segmenter import PlaybackQueue
from settings import NORMAL, SLOW, default_settings, languages, playback_rate
from transcript_segmenter import PhraseEvent, TranscriptSegmenter, TranscriptSnapshot
from utterance_scorer import (
    ScoreResult,
    breakdown_words,
    feedback_message,
    score_utterance,
)
from word_breakdown import Breakdown, build_breakdown

logger = logging.getLogger(__name__)


STATUS_READY = "Tap Listen to hear the phrase."
STATUS_NEXT = "Tap Listen to hear the next phrase."
STATUS_SPEAK = "Speak the phrase now…"
STATUS_NOTHING_HEARD = "I didn't catch anything. Try again."
STATUS_TRANSLATING_CUSTOM = "Translating custom phrase…"
STATUS_CUSTOM_READY = "Custom phrase ready. Tap Listen to hear it."


class PracticeState(Enum):
    IDLE = "idle"
    LISTENING = "listening"
    SCORED = "scored"


@dataclass(frozen=True)
class SessionSnapshot:
    version: int = 0
    state: PracticeState = PracticeState.IDLE
    phrase_index: int = 0
    phrase: Optional[Phrase] = None
    attempts: int = 0
    live_transcript: str = ""
    heard_phrases: Tuple[str, ...] = ()
    recognized_text: str = ""
    score: Optional[ScoreResult] = None
    feedback: str = ""
    remediation_pending: bool = False
    translating: bool = False
    status: str = STATUS_READY


def needs_remediation(attempts: int, percent: int, settings: Dict) -> bool:
    """Word breakdown is due after repeated attempts that still score low."""
    return (
        attempts >= int(settings.get("remediation_attempts", 3))
        and percent < int(settings.get("remediation_threshold", 80))
    )


class PracticeSession(QtCore.QObject):
    """
    Listen & repeat practice over a list of preset phrases, with an optional
    custom phrase. All state lives in an immutable SessionSnapshot; every
    event handler replaces it through _commit(), which bumps the version.

    Emits:
      changed(snapshot: SessionSnapshot)
      phrase_heard(event: PhraseEvent)
      scored(result: ScoreResult)
      remediation_required(words: list)
      error_occurred(error: PracticeError)
    """

    changed = QtCore.pyqtSignal(object)
    phrase_heard = QtCore.pyqtSignal(object)
    scored = QtCore.pyqtSignal(object)
    remediation_required = QtCore.pyqtSignal(list)
    error_occurred = QtCore.pyqtSignal(object)

    def __init__(
        self,
        preset_phrases: Sequence[str],
        recognizer,
        translator,
        synthesizer,
        scheduler,
        quota=None,
        history=None,
        settings: Optional[Dict] = None,
        source_language: Optional[Language] = None,
        practice_language: Optional[Language] = None,
        parent=None,
    ):
        super().__init__(parent)
        if not preset_phrases:
            raise ValueError("PracticeSession needs at least one preset phrase")
        self.settings = default_settings()
        self.settings.update(settings or {})
        src, tgt = languages(self.settings)
        self.source_language: Language = source_language or src
        self.practice_language: Language = practice_language or tgt

        self._presets: List[str] = list(preset_phrases)
        self._recognizer = recognizer
        self._translator = translator
        self._quota = quota
        self._history = history

        self.segmenter = TranscriptSegmenter(
            scheduler,
            pause_interval=float(self.settings["pause_interval_s"]),
            parent=self,
        )
        self.segmenter.phrase_detected.connect(self._on_phrase)
        self.playback = PlaybackQueue(
            synthesizer,
            rate=playback_rate(self.settings, NORMAL),
            word_rate=float(self.settings["word_rate"]),
            use_speaker=bool(self.settings["use_speaker"]),
            parent=self,
        )
        self.speed = NORMAL

        # preset translations keyed by (phrase index, target language code)
        self._translations: Dict[Tuple[int, str], str] = {}
        self._in_flight: Dict[Tuple[int, str], TranslationReply] = {}
        self._custom_source: Optional[str] = None
        self._custom_target: Optional[str] = None
        self._custom_reply: Optional[TranslationReply] = None
        self._ending = False

        self._snapshot = SessionSnapshot()
        recognizer.transcript_updated.connect(self.on_transcript)
        self._commit()
        self._translate_preset_if_needed()
        self._rebuild_playback()

    # ───────────────────────────── state ─────────────────────────────

    @property
    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    @property
    def state(self) -> PracticeState:
        return self._snapshot.state

    @property
    def attempts(self) -> int:
        return self._snapshot.attempts

    @property
    def score(self) -> Optional[ScoreResult]:
        return self._snapshot.score

    @property
    def remediation_pending(self) -> bool:
        return self._snapshot.remediation_pending

    @property
    def current_phrase(self) -> Phrase:
        return self._snapshot.phrase

    @property
    def using_custom_phrase(self) -> bool:
        return self._custom_source is not None

    @property
    def word_tokens(self) -> List[str]:
        """Whitespace-separated words of the target text, for tap-to-hear."""
        return self.current_phrase.display_target.split()

    def breakdown(self) -> Breakdown:
        return build_breakdown(self.current_phrase.display_target, self._snapshot.recognized_text)

    def _commit(self, **changes) -> SessionSnapshot:
        index = changes.get("phrase_index", self._snapshot.phrase_index)
        changes["phrase"] = self._phrase_for(index)
        self._snapshot = replace(self._snapshot, version=self._snapshot.version + 1, **changes)
        self.changed.emit(self._snapshot)
        return self._snapshot

    def _phrase_for(self, index: int) -> Phrase:
        if self._custom_source is not None:
            return Phrase(
                source_text=self._custom_source,
                target_text=self._custom_target,
                source_language=self.source_language,
                target_language=self.practice_language,
                custom=True,
            )
        return Phrase(
            source_text=self._presets[index],
            target_text=self._translations.get(self._cache_key(index)),
            source_language=self.source_language,
            target_language=self.practice_language,
        )

    def _cache_key(self, index: int) -> Tuple[int, str]:
        return index, self.practice_language.translation_code

    # ──────────────────────────── attempts ────────────────────────────

    def toggle_listening(self) -> None:
        if self.state is PracticeState.LISTENING:
            self.end_attempt()
        else:
            self.begin_attempt()

    def begin_attempt(self) -> bool:
        if self.state not in (PracticeState.IDLE, PracticeState.SCORED):
            logger.warning("begin_attempt ignored in state %s", self.state.value)
            return False
        # a boundary from the previous attempt must not leak into this one
        self._recognizer.stop()
        self.segmenter.reset()
        self._commit(
            state=PracticeState.LISTENING,
            attempts=self._snapshot.attempts + 1,
            live_transcript="",
            heard_phrases=(),
            recognized_text="",
            score=None,
            feedback="",
            status=STATUS_SPEAK,
        )
        try:
            self._recognizer.start(self.practice_language.locale_id)
        except RecognitionUnavailable as e:
            logger.warning("Recognition unavailable: %s", e)
            self._commit(state=PracticeState.IDLE, status=str(e))
            self.error_occurred.emit(e)
            return False
        return True

    def on_transcript(self, snapshot) -> None:
        if isinstance(snapshot, str):
            snapshot = TranscriptSnapshot(snapshot)
        if self.state is not PracticeState.LISTENING or self._ending:
            logger.debug("Dropping transcript outside an attempt: %r", snapshot.text)
            return
        self.segmenter.feed(snapshot)
        self._commit(live_transcript=snapshot.text)

    def _on_phrase(self, event: PhraseEvent) -> None:
        if self.state is not PracticeState.LISTENING:
            return
        self._commit(heard_phrases=self._snapshot.heard_phrases + (event.text,))
        self.phrase_heard.emit(event)
        if self.settings.get("auto_score_on_pause") and not self._ending:
            self.end_attempt()

    def end_attempt(self, raw_text: Optional[str] = None) -> Optional[ScoreResult]:
        if self.state is not PracticeState.LISTENING:
            logger.warning("end_attempt ignored in state %s", self.state.value)
            return None
        self._ending = True
        try:
            self._recognizer.stop()
            self.segmenter.flush()
        finally:
            self._ending = False
        self.segmenter.reset()

        source = self._snapshot.live_transcript if raw_text is None else raw_text
        text = (source or "").strip()
        if not text:
            self._commit(
                state=PracticeState.IDLE,
                recognized_text="",
                score=None,
                feedback="",
                status=STATUS_NOTHING_HEARD,
            )
            self.error_occurred.emit(EmptyUtterance())
            return None

        phrase = self.current_phrase
        expected = phrase.display_target
        result = score_utterance(expected, text)
        feedback = feedback_message(result.tier, expected)
        attempts = self._snapshot.attempts
        newly_pending = (
            not self._snapshot.remediation_pending
            and needs_remediation(attempts, result.percent, self.settings)
        )
        self._commit(
            state=PracticeState.SCORED,
            recognized_text=text,
            score=result,
            feedback=feedback,
            remediation_pending=self._snapshot.remediation_pending or newly_pending,
            status=f"Score: {result.percent}% – {feedback}",
        )
        self._record(phrase, text, result, attempts)
        self.scored.emit(result)
        if newly_pending:
            self.remediation_required.emit(breakdown_words(expected))
        return result

    def _record(self, phrase: Phrase, text: str, result: ScoreResult, attempts: int) -> None:
        if self._history is None:
            return
        try:
            self._history.record(phrase, text, result, attempts)
        except SQLAlchemyError as e:
            logger.warning("Could not record attempt: %s", e)

    # ──────────────────────────── phrases ─────────────────────────────

    def advance_phrase(self) -> None:
        self._drop_custom()
        index = next_index(self._snapshot.phrase_index, len(self._presets))
        self._reset_for_new_phrase(STATUS_NEXT, phrase_index=index)
        self._translate_preset_if_needed()
        self._rebuild_playback()

    def apply_custom_phrase(self, text: str) -> bool:
        trimmed = (text or "").strip()
        if not trimmed:
            return False
        if self._quota is not None and not self._quota.admit():
            self._commit(status=self._quota.limit_message)
            self.error_occurred.emit(DailyLimitReached(self._quota.max_per_day))
            return False

        self._custom_source = trimmed
        self._custom_target = None
        self._reset_for_new_phrase(STATUS_TRANSLATING_CUSTOM, translating=True)
        self._rebuild_playback()

        reply = self._translator.translate(
            trimmed,
            self.source_language.translation_code,
            self.practice_language.translation_code,
        )
        self._custom_reply = reply
        reply.subscribe(
            lambda translated, r=reply: self._on_custom_translated(r, translated),
            lambda message, r=reply: self._on_custom_failed(r, message),
        )
        return True

    def clear_custom_phrase(self) -> None:
        self._drop_custom()
        self._reset_for_new_phrase(STATUS_READY)
        self._translate_preset_if_needed()
        self._rebuild_playback()

    def set_practice_language(self, language: Language) -> None:
        if language is self.practice_language:
            return
        self.practice_language = language
        self._drop_custom()
        self._reset_for_new_phrase(STATUS_READY)
        self._translate_preset_if_needed()
        self._rebuild_playback()

    def _drop_custom(self) -> None:
        # a reply for a dropped custom phrase is ignored when it arrives
        self._custom_source = None
        self._custom_target = None
        self._custom_reply = None

    def _reset_for_new_phrase(self, status: str, **changes) -> None:
        self._recognizer.stop()
        self.segmenter.reset()
        self.playback.stop()
        changes.setdefault("translating", False)
        self._commit(
            state=PracticeState.IDLE,
            attempts=0,
            live_transcript="",
            heard_phrases=(),
            recognized_text="",
            score=None,
            feedback="",
            remediation_pending=False,
            status=status,
            **changes,
        )

    # ────────────────────────── translation ───────────────────────────

    def _translate_preset_if_needed(self) -> None:
        if self._custom_source is not None:
            return
        index = self._snapshot.phrase_index
        key = self._cache_key(index)
        if (self._translations.get(key) or "").strip():
            return
        if key in self._in_flight:
            return
        reply = self._translator.translate(
            self._presets[index],
            self.source_language.translation_code,
            self.practice_language.translation_code,
        )
        self._in_flight[key] = reply
        reply.subscribe(
            lambda translated, k=key: self._on_preset_translated(k, translated),
            lambda message, k=key: self._on_preset_failed(k, message),
        )

    def _is_current_preset(self, key: Tuple[int, str]) -> bool:
        return self._custom_source is None and key == self._cache_key(self._snapshot.phrase_index)

    def _on_preset_translated(self, key: Tuple[int, str], translated: str) -> None:
        self._in_flight.pop(key, None)
        if not translated.strip():
            self._on_preset_failed(key, "Empty translation.")
            return
        self._translations[key] = translated
        if self._is_current_preset(key):
            self._commit()
            self._rebuild_playback()

    def _on_preset_failed(self, key: Tuple[int, str], message: str) -> None:
        self._in_flight.pop(key, None)
        error = TranslationFailed(message)
        logger.warning("Translation of phrase %s failed: %s", key, error)
        if self._is_current_preset(key):
            self._commit(status=f"Error: {error}")
            self.error_occurred.emit(error)

    def _on_custom_translated(self, reply: TranslationReply, translated: str) -> None:
        if reply is not self._custom_reply:
            logger.debug("Ignoring reply for a superseded custom phrase")
            return
        if not translated.strip():
            self._on_custom_failed(reply, "Empty translation.")
            return
        self._custom_reply = None
        self._custom_target = translated
        self._commit(translating=False, status=STATUS_CUSTOM_READY)
        self._rebuild_playback()

    def _on_custom_failed(self, reply: TranslationReply, message: str) -> None:
        if reply is not self._custom_reply:
            logger.debug("Ignoring failure for a superseded custom phrase")
            return
        self._custom_reply = None
        error = TranslationFailed(message)
        logger.warning("Custom phrase translation failed: %s", error)
        self._commit(translating=False, status=f"Error: {error}")
        self.error_occurred.emit(error)

    # ─────────────────────────── transport ────────────────────────────

    def _rebuild_playback(self) -> None:
        phrase = self.current_phrase
        text = phrase.target_text if phrase.is_resolved else ""
        self.playback.rebuild(text, self.practice_language.tts_code)

    def set_playback_speed(self, speed: str) -> None:
        self.speed = SLOW if speed == SLOW else NORMAL
        self.playback.rate = playback_rate(self.settings, self.speed)

    def play(self) -> None:
        self.playback.play()

    def pause(self) -> None:
        self.playback.pause()

    def stop(self) -> None:
        self.playback.stop()
        self.segmenter.cancel_pending()

    def back(self) -> None:
        self.playback.back()

    def forward(self) -> None:
        self.playback.forward()

    def speak_word(self, word: str) -> None:
        self.playback.speak_word(word)

    def close(self) -> None:
        """Leave the practice view. Safe to call repeatedly."""
        self._recognizer.stop()
        self.segmenter.reset()
        self.playback.stop()
        if self.state is PracticeState.LISTENING:
            self._commit(state=PracticeState.IDLE, status=STATUS_READY)
