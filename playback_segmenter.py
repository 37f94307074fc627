from __future__ import annotations

import re
import logging
from enum import Enum
from typing import List

from PyQt5 import QtCore

logger = logging.getLogger(__name__)


TERMINAL_MARKS = ".!?。！？"

# A terminal mark splits where another sentence follows it, including a
# letter right after the mark ("Hi!Bye"). Full-width marks split directly.
# Digits do not start a sentence, so "3.14" stays whole. A mark ending the
# text stays with its sentence.
_SENTENCE_BREAK = re.compile(r"[.!?。！？]+\s+|[.!?]+(?=[^\W\d_])|[。！？]+(?=\S)")


def segment(text: str) -> List[str]:
    """
    Split a phrase into speakable sentences.
    segment("Hello. How are you?") == ["Hello", "How are you?"]
    """
    trimmed = (text or "").replace("\n", " ").strip()
    if not trimmed:
        return []
    parts = [p.strip() for p in _SENTENCE_BREAK.split(trimmed)]
    parts = [p for p in parts if p]
    return parts or [trimmed]


class PlaybackStatus(Enum):
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"


class PlaybackQueue(QtCore.QObject):
    """
    Back / play / pause / stop / forward over the sentences of a phrase.
    Load text with rebuild(); the index survives rebuilds, clamped into range.
    Emits:
      status_changed(status: PlaybackStatus)
      segment_started(index: int, text: str)
    """

    status_changed = QtCore.pyqtSignal(object)
    segment_started = QtCore.pyqtSignal(int, str)

    def __init__(self, synthesizer, rate: float = 0.50, word_rate: float = 0.25,
                 use_speaker: bool = False, parent=None):
        super().__init__(parent)
        self._synth = synthesizer
        self.rate = float(rate)
        self.word_rate = float(word_rate)
        self.use_speaker = bool(use_speaker)
        self.language_code = ""
        self.segments: List[str] = []
        self.index = 0
        self.status = PlaybackStatus.STOPPED

    @property
    def is_paused(self) -> bool:
        return self.status is PlaybackStatus.PAUSED

    @property
    def current_segment(self) -> str:
        if not self.segments:
            return ""
        return self.segments[self.index]

    def rebuild(self, text: str, language_code: str) -> None:
        self.language_code = language_code
        self.segments = segment(text)
        if not self.segments:
            self.index = 0
            self._set_status(PlaybackStatus.STOPPED)
            return
        self.index = min(self.index, max(0, len(self.segments) - 1))

    # ─────────────── transport ─────────────────
    def play(self) -> None:
        """Resume when paused, otherwise speak the current segment from its start."""
        if self.is_paused:
            self._synth.resume()
            self._set_status(PlaybackStatus.PLAYING)
            return
        self._speak_current()

    def pause(self) -> None:
        if self.status is not PlaybackStatus.PLAYING:
            return
        self._synth.pause()
        self._set_status(PlaybackStatus.PAUSED)

    def stop(self) -> None:
        self._synth.stop()
        self._set_status(PlaybackStatus.STOPPED)

    def back(self) -> None:
        if not self.segments:
            return
        self.index = max(0, self.index - 1)
        self._speak_current()

    def forward(self) -> None:
        if not self.segments:
            return
        self.index = min(len(self.segments) - 1, self.index + 1)
        self._speak_current()

    def speak_word(self, word: str) -> None:
        """Speak a single word slowly, independent of the sentence position."""
        word = (word or "").strip()
        if not word:
            return
        self._synth.speak(word, self.language_code, self.word_rate, self.use_speaker)

    # ─────────────── helpers ─────────────────
    def _speak_current(self) -> None:
        if not self.segments:
            return
        text = self.segments[self.index]
        self._synth.speak(text, self.language_code, self.rate, self.use_speaker)
        self._set_status(PlaybackStatus.PLAYING)
        self.segment_started.emit(self.index, text)

    def _set_status(self, status: PlaybackStatus) -> None:
        if status is self.status:
            return
        self.status = status
        self.status_changed.emit(status)
