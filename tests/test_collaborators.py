import pytest

from collaborators import FallbackVoiceSynthesizer
from conftest import FakeSynthesizer
from errors import NoVoiceForLanguage


class PartialVoiceSynthesizer(FakeSynthesizer):
    """Only has voices for some languages."""

    def __init__(self, voices):
        super().__init__()
        self.voices = set(voices)

    def speak(self, text, language_code, rate, use_speaker) -> None:
        if language_code not in self.voices:
            raise NoVoiceForLanguage(language_code)
        super().speak(text, language_code, rate, use_speaker)


def test_missing_voice_falls_back_to_default():
    inner = PartialVoiceSynthesizer({"en-US"})
    synth = FallbackVoiceSynthesizer(inner, fallback_code="en-US")
    synth.speak("ਸਤ ਸ੍ਰੀ ਅਕਾਲ", "pa-IN", 0.5, False)
    assert inner.spoken == [("speak", "ਸਤ ਸ੍ਰੀ ਅਕਾਲ", "en-US", 0.5, False)]


def test_installed_voice_is_used():
    inner = PartialVoiceSynthesizer({"es-ES", "en-US"})
    FallbackVoiceSynthesizer(inner).speak("Hola", "es-ES", 0.25, True)
    assert inner.spoken == [("speak", "Hola", "es-ES", 0.25, True)]


def test_missing_default_voice_is_raised():
    synth = FallbackVoiceSynthesizer(PartialVoiceSynthesizer(set()), fallback_code="en-US")
    with pytest.raises(NoVoiceForLanguage):
        synth.speak("Hello", "en-US", 0.5, False)


def test_transport_is_forwarded():
    inner = FakeSynthesizer()
    synth = FallbackVoiceSynthesizer(inner)
    synth.pause()
    synth.resume()
    synth.stop()
    assert inner.calls == [("pause",), ("resume",), ("stop",)]
