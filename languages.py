from __future__ import annotations

from enum import Enum


class Language(Enum):
    """
    Supported practice languages.
    Each value is (display name, translation code, TTS code, recognizer locale).
    Some TTS codes (Farsi, Punjabi, Urdu) usually have no installed voice;
    the synthesizer falls back to its default voice for those.
    """

    ENGLISH = ("English", "en", "en-US", "en_US")
    SPANISH = ("Spanish", "es", "es-ES", "es_ES")
    FRENCH = ("French", "fr", "fr-FR", "fr_FR")
    GERMAN = ("German", "de", "de-DE", "de_DE")
    PORTUGUESE = ("Portuguese", "pt", "pt-BR", "pt_BR")
    ITALIAN = ("Italian", "it", "it-IT", "it_IT")
    JAPANESE = ("Japanese", "ja", "ja-JP", "ja_JP")
    KOREAN = ("Korean", "ko", "ko-KR", "ko_KR")
    CHINESE_SIMPLIFIED = ("Chinese (Simplified)", "zh-Hans", "zh-CN", "zh_CN")
    VIETNAMESE = ("Vietnamese", "vi", "vi-VN", "vi_VN")
    RUSSIAN = ("Russian", "ru", "ru-RU", "ru_RU")
    ARABIC = ("Arabic", "ar", "ar-001", "ar_SA")
    HEBREW = ("Hebrew", "he", "he-IL", "he_IL")
    HINDI = ("Hindi", "hi", "hi-IN", "hi_IN")
    FARSI = ("Farsi (Persian)", "fa", "fa-IR", "fa_IR")
    PUNJABI = ("Punjabi", "pa", "pa-IN", "pa_IN")
    TURKISH = ("Turkish", "tr", "tr-TR", "tr_TR")
    URDU = ("Urdu", "ur", "ur-IN", "ur_PK")

    @property
    def display_name(self) -> str:
        return self.value[0]

    @property
    def translation_code(self) -> str:
        return self.value[1]

    @property
    def tts_code(self) -> str:
        return self.value[2]

    @property
    def locale_id(self) -> str:
        return self.value[3]

    @classmethod
    def from_key(cls, key: str) -> "Language":
        """
        Look up a language by enum name ("spanish"), translation code ("es")
        or display name ("Spanish"). Raises ValueError when nothing matches.
        """
        k = (key or "").strip()
        for lang in cls:
            if k.lower() in (
                lang.name.lower(),
                lang.translation_code.lower(),
                lang.display_name.lower(),
            ):
                return lang
        raise ValueError(f"Unknown language: {key!r}")
