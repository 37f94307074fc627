from __future__ import annotations


class PracticeError(Exception):
    """Base class for every recoverable failure raised by the practice core."""


class RecognitionUnavailable(PracticeError):
    def __init__(self, locale_id: str):
        super().__init__(f"Speech recognizer not available for {locale_id}")
        self.locale_id = locale_id


class EmptyUtterance(PracticeError):
    def __init__(self):
        super().__init__("Nothing was heard")


class TranslationFailed(PracticeError):
    def __init__(self, message: str):
        super().__init__(message or "Translation temporarily unavailable.")
        self.message = str(self)


class NoVoiceForLanguage(PracticeError):
    """Raised (or logged) by synthesizers that fall back to a default voice."""

    def __init__(self, language_code: str):
        super().__init__(f"No TTS voice for {language_code}")
        self.language_code = language_code


class DailyLimitReached(PracticeError):
    def __init__(self, max_per_day: int):
        super().__init__(
            f"Daily translation limit of {max_per_day} reached for this device."
        )
        self.max_per_day = max_per_day
