from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from PyQt5 import QtCore

from collaborators import TranslationReply
from errors import DailyLimitReached, EmptyUtterance, RecognitionUnavailable, TranslationFailed
from languages import Language
from settings import NORMAL, default_settings, playback_rate
from transcript_segmenter import PhraseEvent, TranscriptSegmenter, TranscriptSnapshot

logger = logging.getLogger(__name__)


STATUS_IDLE = "Idle"
STATUS_LISTENING = "Listening…"
STATUS_TRANSLATING = "Translating…"
STATUS_TRANSLATING_PHRASE = "Translating phrase…"
STATUS_TRANSLATED = "Translated."
STATUS_PHRASE_TRANSLATED = "Phrase translated."
STATUS_NO_SPEECH = "No speech detected"
STATUS_LIMIT = "Daily limit reached"
STATUS_ERROR = "Error."


class TalkDirection(Enum):
    YOU_TO_THEM = "you_to_them"
    THEM_TO_YOU = "them_to_you"


@dataclass(frozen=True)
class Route:
    """Where speech is recognized and where its translation goes."""
    locale_id: str
    from_code: Optional[str]  # None lets the translator detect the language
    to_code: str
    tts_code: str


class LiveTranslator(QtCore.QObject):
    """
    Two-way interpreter between "you" and "them".

    Hold-to-talk: start_listening() on press, stop_listening() on release.
    Auto response: tap_auto_response() listens until a pause ends the
    phrase, translates and speaks it, then listens again until the session
    is ended.

    Emits:
      status_changed(text: str)
      heard_changed(text: str)
      translated(text: str)
      listening_changed(listening: bool)
      error_occurred(error: PracticeError)
    """

    status_changed = QtCore.pyqtSignal(str)
    heard_changed = QtCore.pyqtSignal(str)
    translated = QtCore.pyqtSignal(str)
    listening_changed = QtCore.pyqtSignal(bool)
    error_occurred = QtCore.pyqtSignal(object)

    def __init__(self, recognizer, translator, synthesizer, scheduler, quota=None,
                 settings: Optional[Dict] = None,
                 you_language: Language = Language.ENGLISH,
                 they_language: Language = Language.SPANISH,
                 parent=None):
        super().__init__(parent)
        self.settings = default_settings()
        self.settings.update(settings or {})
        self._recognizer = recognizer
        self._translator = translator
        self._synth = synthesizer
        self._quota = quota

        self.you_language = you_language
        self.they_language = they_language
        self.direction = TalkDirection.YOU_TO_THEM
        self.auto_detect = bool(self.settings["auto_detect_language"])
        self.auto_response = bool(self.settings["auto_response_mode"])
        self.auto_session_active = False

        self.is_listening = False
        self.heard_phrase = ""
        self.translated_text = ""
        self.status = STATUS_IDLE
        self._reply: Optional[TranslationReply] = None

        # in auto response mode a pause in the transcript ends the turn
        self.segmenter = TranscriptSegmenter(
            scheduler,
            pause_interval=float(self.settings["auto_response_pause_s"]),
            parent=self,
        )
        self.segmenter.phrase_detected.connect(self._on_phrase)
        recognizer.transcript_updated.connect(self.on_transcript)

    # ──────────────────────────── routing ─────────────────────────────

    def route(self) -> Route:
        if self.direction is TalkDirection.YOU_TO_THEM:
            speaker, listener = self.you_language, self.they_language
        else:
            speaker, listener = self.they_language, self.you_language
        return Route(
            locale_id=speaker.locale_id,
            from_code=None if self.auto_detect else speaker.translation_code,
            to_code=listener.translation_code,
            tts_code=listener.tts_code,
        )

    def set_direction(self, direction: TalkDirection) -> None:
        self.direction = direction

    def set_auto_detect(self, enabled: bool) -> None:
        self.auto_detect = bool(enabled)

    def set_auto_response(self, enabled: bool) -> None:
        self.auto_response = bool(enabled)
        if not enabled:
            self.end_auto_session()

    def set_they_language(self, language: Language) -> None:
        if language is self.they_language:
            return
        self.they_language = language
        self.retranslate()

    def set_you_language(self, language: Language) -> None:
        self.you_language = language

    def swap_languages(self) -> None:
        self.you_language, self.they_language = self.they_language, self.you_language
        self.retranslate()

    # ─────────────────────────── listening ────────────────────────────

    def start_listening(self) -> None:
        self.segmenter.reset()
        self._set_heard("")
        self.translated_text = ""
        self._set_listening(True)
        self._set_status(STATUS_LISTENING)
        try:
            self._recognizer.start(self.route().locale_id)
        except RecognitionUnavailable as e:
            logger.warning("Recognition unavailable: %s", e)
            self._set_listening(False)
            self._set_status(str(e))
            self.error_occurred.emit(e)

    def stop_listening(self, auto_speak: bool = True, restart: bool = False) -> None:
        if not self.is_listening:
            return
        self._set_listening(False)
        self._set_status(STATUS_TRANSLATING)
        self.segmenter.reset()
        self._recognizer.stop()

        transcript = self.heard_phrase.strip()
        if not transcript:
            self.translated_text = ""
            self._set_status(STATUS_NO_SPEECH)
            self.error_occurred.emit(EmptyUtterance())
            return
        self._translate(transcript, auto_speak=auto_speak, restart=restart)

    def tap_auto_response(self) -> None:
        """Start an auto response session; while listening, the pause decides."""
        if self.is_listening:
            return
        self.auto_session_active = True
        self.start_listening()

    def end_auto_session(self) -> None:
        self.auto_session_active = False
        if self.is_listening:
            self._set_listening(False)
            self.segmenter.reset()
            self._recognizer.stop()
            self._set_status(STATUS_IDLE)

    def on_transcript(self, snapshot) -> None:
        if isinstance(snapshot, str):
            snapshot = TranscriptSnapshot(snapshot)
        if not self.is_listening:
            return
        self._set_heard(snapshot.text.strip())
        if self.auto_response:
            self.segmenter.feed(snapshot)

    def _on_phrase(self, event: PhraseEvent) -> None:
        if self.is_listening and self.auto_response:
            self.stop_listening(auto_speak=True, restart=True)

    # ─────────────────────────── text input ───────────────────────────

    def translate_text(self, text: str) -> bool:
        """Translate pasted text along the current route and speak it."""
        trimmed = (text or "").strip()
        if not trimmed:
            return False
        self._set_heard(trimmed)
        self.translated_text = ""
        self._set_status(STATUS_TRANSLATING)
        return self._translate(trimmed, auto_speak=True)

    def play_quick_phrase(self, phrase: str) -> bool:
        """Translate an English quick phrase into their language and speak it."""
        trimmed = (phrase or "").strip()
        if not trimmed:
            return False
        self._set_heard(trimmed)
        self.translated_text = ""
        self._set_status(STATUS_TRANSLATING_PHRASE)
        route = Route(
            locale_id=Language.ENGLISH.locale_id,
            from_code=Language.ENGLISH.translation_code,
            to_code=self.they_language.translation_code,
            tts_code=self.they_language.tts_code,
        )
        return self._translate(trimmed, auto_speak=True, route=route,
                               done_status=STATUS_PHRASE_TRANSLATED)

    def retranslate(self) -> None:
        """Translate the heard phrase again after a language change, without speaking."""
        transcript = self.heard_phrase.strip()
        if not transcript:
            return
        self._set_status(STATUS_TRANSLATING)
        self._request(transcript, self.route(), auto_speak=False, restart=False,
                      done_status=STATUS_TRANSLATED)

    # ──────────────────────────── helpers ─────────────────────────────

    def _translate(self, text: str, auto_speak: bool, restart: bool = False,
                   route: Optional[Route] = None,
                   done_status: str = STATUS_TRANSLATED) -> bool:
        if self._quota is not None and not self._quota.admit():
            self._set_status(STATUS_LIMIT)
            self.error_occurred.emit(DailyLimitReached(self._quota.max_per_day))
            return False
        self._request(text, route or self.route(), auto_speak, restart, done_status)
        return True

    def _request(self, text: str, route: Route, auto_speak: bool, restart: bool,
                 done_status: str) -> None:
        reply = self._translator.translate(text, route.from_code, route.to_code)
        self._reply = reply

        def finished(translated: str) -> None:
            if reply is not self._reply:
                logger.debug("Ignoring superseded translation of %r", text)
                return
            self._reply = None
            self.translated_text = translated
            self._set_status(done_status)
            self.translated.emit(translated)
            if auto_speak:
                self._synth.speak(
                    translated,
                    route.tts_code,
                    playback_rate(self.settings, NORMAL),
                    bool(self.settings["use_speaker"]),
                )
            if restart and self.auto_session_active and self.auto_response:
                self.start_listening()

        def failed(message: str) -> None:
            if reply is not self._reply:
                logger.debug("Ignoring superseded failure for %r", text)
                return
            self._reply = None
            error = TranslationFailed(message)
            logger.warning("Live translation failed: %s", error)
            self.translated_text = f"Error: {error}"
            self._set_status(STATUS_ERROR)
            self.error_occurred.emit(error)

        reply.subscribe(finished, failed)

    def _set_heard(self, text: str) -> None:
        self.heard_phrase = text
        self.heard_changed.emit(text)

    def _set_listening(self, listening: bool) -> None:
        if listening == self.is_listening:
            return
        self.is_listening = listening
        self.listening_changed.emit(listening)

    def _set_status(self, text: str) -> None:
        self.status = text
        self.status_changed.emit(text)
