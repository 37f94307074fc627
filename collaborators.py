from __future__ import annotations

import logging
from typing import Callable, Optional

from PyQt5 import QtCore

from errors import NoVoiceForLanguage

logger = logging.getLogger(__name__)


class TranslationReply(QtCore.QObject):
    """
    Single-resolution handle for an in-flight translation.
    Emits:
      finished(translated: str)
      failed(message: str)
    Only the first resolve()/reject() counts; later calls are ignored.
    """

    finished = QtCore.pyqtSignal(str)
    failed = QtCore.pyqtSignal(str)

    def __init__(self, text: str = "", parent=None):
        super().__init__(parent)
        self.text = text
        self.result: Optional[str] = None
        self.error: Optional[str] = None
        self._done = False

    @property
    def is_finished(self) -> bool:
        return self._done

    def resolve(self, translated: str) -> None:
        if self._done:
            logger.debug("Ignoring second resolution of translation for %r", self.text)
            return
        self._done = True
        self.result = str(translated)
        self.finished.emit(self.result)

    def reject(self, message: str) -> None:
        if self._done:
            logger.debug("Ignoring second resolution of translation for %r", self.text)
            return
        self._done = True
        self.error = str(message)
        self.failed.emit(self.error)

    def subscribe(
        self,
        on_finished: Callable[[str], None],
        on_failed: Callable[[str], None],
    ) -> None:
        """
        Connect both outcomes. A reply that already resolved before anyone
        connected is delivered immediately.
        """
        if self._done:
            if self.error is None:
                on_finished(self.result or "")
            else:
                on_failed(self.error)
            return
        self.finished.connect(on_finished)
        self.failed.connect(on_failed)


class SpeechRecognizer(QtCore.QObject):
    """
    Streaming recognizer contract.
    Emits:
      transcript_updated(snapshot: TranscriptSnapshot)   cumulative partial text
    start() raises errors.RecognitionUnavailable when the locale is unsupported.
    stop() is idempotent and guarantees no further snapshots for that run.
    """

    transcript_updated = QtCore.pyqtSignal(object)

    def start(self, locale_id: str) -> None:
        raise NotImplementedError

    def stop(self) -> None:
        raise NotImplementedError


class Translator:
    """translate(text, from_code or None for auto-detect, to_code) -> TranslationReply"""

    def translate(self, text: str, from_code: Optional[str], to_code: str) -> TranslationReply:
        raise NotImplementedError


class SpeechSynthesizer:
    """
    Speech output contract. Implementations fall back to a default voice
    when no voice is installed for language_code.
    """

    def speak(self, text: str, language_code: str, rate: float, use_speaker: bool) -> None:
        raise NotImplementedError

    def pause(self) -> None:
        raise NotImplementedError

    def resume(self) -> None:
        raise NotImplementedError

    def stop(self) -> None:
        raise NotImplementedError


class FallbackVoiceSynthesizer(SpeechSynthesizer):
    """
    Wraps a synthesizer that raises NoVoiceForLanguage and retries once
    with a default voice, so callers never see the missing voice.
    """

    def __init__(self, inner: SpeechSynthesizer, fallback_code: str = "en-US"):
        self._inner = inner
        self.fallback_code = fallback_code

    def speak(self, text: str, language_code: str, rate: float, use_speaker: bool) -> None:
        try:
            self._inner.speak(text, language_code, rate, use_speaker)
        except NoVoiceForLanguage as e:
            if language_code == self.fallback_code:
                raise
            logger.warning("%s; using %s", e, self.fallback_code)
            self._inner.speak(text, self.fallback_code, rate, use_speaker)

    def pause(self) -> None:
        self._inner.pause()

    def resume(self) -> None:
        self._inner.resume()

    def stop(self) -> None:
        self._inner.stop()
