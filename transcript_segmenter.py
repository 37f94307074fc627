from __future__ import annotations

import time
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from PyQt5 import QtCore

from timers import TimerHandle

logger = logging.getLogger(__name__)


DEFAULT_PAUSE_INTERVAL_S = 1.2


@dataclass(frozen=True)
class TranscriptSnapshot:
    text: str
    timestamp: float = field(default_factory=time.monotonic)


@dataclass(frozen=True)
class PhraseEvent:
    text: str
    emitted_at: float


class TranscriptSegmenter(QtCore.QObject):
    """
    Turns a growing transcript into discrete phrases.
    Every snapshot restarts a pause deadline; when the deadline elapses
    without new text, the part of the transcript not yet emitted becomes
    one PhraseEvent.
    Emits:
      phrase_detected(event: PhraseEvent)
    """

    phrase_detected = QtCore.pyqtSignal(object)

    def __init__(
        self,
        scheduler,
        pause_interval: float = DEFAULT_PAUSE_INTERVAL_S,
        clock: Callable[[], float] = time.monotonic,
        parent=None,
    ):
        super().__init__(parent)
        self._scheduler = scheduler
        self.pause_interval = float(pause_interval)
        self._clock = clock
        self.full_text: str = ""
        self.last_emitted_length: int = 0
        self._pending: Optional[TimerHandle] = None

    @property
    def has_pending_deadline(self) -> bool:
        return self._pending is not None and self._pending.active

    def feed(self, snapshot: TranscriptSnapshot) -> None:
        self.full_text = snapshot.text or ""
        self.cancel_pending()
        handle: Optional[TimerHandle] = None

        def _elapsed() -> None:
            # a deadline that was superseded after being queued must not emit
            if self._pending is handle:
                self._pending = None
                self.on_pause_elapsed()

        handle = self._scheduler.schedule(self.pause_interval, _elapsed)
        self._pending = handle

    def on_pause_elapsed(self) -> None:
        self._emit_new_phrase()

    def flush(self) -> None:
        self.cancel_pending()
        self._emit_new_phrase()

    def reset(self) -> None:
        self.cancel_pending()
        self.full_text = ""
        self.last_emitted_length = 0

    def cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    # ───────────────────────────── helpers ─────────────────────────────

    def _emit_new_phrase(self) -> None:
        full = self.full_text.strip()
        if len(full) <= self.last_emitted_length:
            # no growth, or the recognizer revised the text to something shorter
            return
        chunk = full[self.last_emitted_length:].strip()
        if not chunk:
            return
        self.last_emitted_length = len(full)
        event = PhraseEvent(text=chunk, emitted_at=self._clock())
        logger.debug("Phrase boundary: %r", chunk)
        self.phrase_detected.emit(event)
