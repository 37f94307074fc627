# File: tests/conftest.py

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import pytest
from PyQt5 import QtCore

from collaborators import SpeechRecognizer, SpeechSynthesizer, TranslationReply, Translator
from errors import RecognitionUnavailable
from quota_gate import DailyLimit
from timers import TimerHandle
from transcript_segmenter import TranscriptSnapshot


@pytest.fixture(scope="session", autouse=True)
def qapp():
    """One QCoreApplication for the whole run; QTimer needs it."""
    app = QtCore.QCoreApplication.instance() or QtCore.QCoreApplication([])
    yield app


# --- Scheduler with a manual clock ---

class FakeScheduler:
    def __init__(self):
        self.now = 0.0
        self._timers: List[Tuple[float, int, TimerHandle]] = []
        self._seq = 0

    def clock(self) -> float:
        return self.now

    def schedule(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(callback)
        self._seq += 1
        self._timers.append((self.now + delay_s, self._seq, handle))
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for _, _, h in self._timers if h.active)

    def advance(self, dt: float) -> None:
        """Move the clock forward, firing every live timer that comes due."""
        target = self.now + dt
        while True:
            due = sorted(
                (t for t in self._timers if t[0] <= target and t[2].active),
                key=lambda t: (t[0], t[1]),
            )
            if not due:
                break
            when, _, handle = due[0]
            self._timers = [t for t in self._timers if t[2] is not handle]
            self.now = max(self.now, when)
            handle.fire()
        self.now = target


# --- Collaborators ---

class FakeRecognizer(SpeechRecognizer):
    def __init__(self):
        super().__init__()
        self.running = False
        self.started_with: List[str] = []
        self.stop_calls = 0
        self.unavailable = False

    def start(self, locale_id: str) -> None:
        self.started_with.append(locale_id)
        if self.unavailable:
            raise RecognitionUnavailable(locale_id)
        self.running = True

    def stop(self) -> None:
        self.stop_calls += 1
        self.running = False

    def push(self, text: str) -> None:
        self.transcript_updated.emit(TranscriptSnapshot(text))


@dataclass
class TranslationCall:
    text: str
    from_code: Optional[str]
    to_code: str
    reply: TranslationReply


class FakeTranslator(Translator):
    def __init__(self):
        self.calls: List[TranslationCall] = []

    def translate(self, text, from_code, to_code) -> TranslationReply:
        reply = TranslationReply(text)
        self.calls.append(TranslationCall(text, from_code, to_code, reply))
        return reply

    @property
    def last(self) -> TranslationCall:
        return self.calls[-1]


class FakeSynthesizer(SpeechSynthesizer):
    def __init__(self):
        self.calls: List[tuple] = []

    def speak(self, text, language_code, rate, use_speaker) -> None:
        self.calls.append(("speak", text, language_code, rate, use_speaker))

    def pause(self) -> None:
        self.calls.append(("pause",))

    def resume(self) -> None:
        self.calls.append(("resume",))

    def stop(self) -> None:
        self.calls.append(("stop",))

    @property
    def spoken(self) -> List[tuple]:
        return [c for c in self.calls if c[0] == "speak"]


class FakeLimit(DailyLimit):
    def __init__(self, allowance: int, max_per_day: int = 150):
        self.allowance = allowance
        self.max_per_day = max_per_day

    def consume_one_if_available(self) -> bool:
        if self.allowance <= 0:
            return False
        self.allowance -= 1
        return True

    def remaining_today(self) -> int:
        return self.allowance


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def recognizer():
    return FakeRecognizer()


@pytest.fixture
def translator():
    return FakeTranslator()


@pytest.fixture
def synth():
    return FakeSynthesizer()
