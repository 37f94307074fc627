import pytest

from playback_segmenter import PlaybackQueue, PlaybackStatus, segment


@pytest.mark.parametrize("text, expected", [
    ("Hello. How are you?", ["Hello", "How are you?"]),
    ("Hello", ["Hello"]),
    ("Wait!!! Really?", ["Wait", "Really?"]),
    ("Hi!Bye", ["Hi", "Bye"]),
    ("3.14 es pi.", ["3.14 es pi."]),
    ("Hola.", ["Hola."]),
    ("one\ntwo", ["one two"]),
    ("你好。你好吗？", ["你好", "你好吗？"]),
    ("...", ["..."]),
    ("", []),
    ("   \n ", []),
])
def test_segment(text, expected):
    assert segment(text) == expected


@pytest.fixture
def queue(synth):
    q = PlaybackQueue(synth, rate=0.5, word_rate=0.25)
    statuses = []
    q.status_changed.connect(statuses.append)
    q.statuses = statuses
    return q


def test_forward_and_back_clamp_without_wrapping(queue, synth):
    queue.rebuild("One. Two. Three.", "es-ES")
    queue.back()
    assert queue.index == 0

    queue.forward()
    queue.forward()
    queue.forward()
    assert queue.index == 2
    assert [c[1] for c in synth.spoken] == ["One", "Two", "Three.", "Three."]
    assert synth.spoken[0][2:] == ("es-ES", 0.5, False)


def test_rebuild_clamps_index(queue):
    queue.rebuild("One. Two. Three.", "es-ES")
    queue.index = 2
    queue.rebuild("Uno.", "es-ES")
    assert queue.index == 0
    assert queue.current_segment == "Uno."


def test_rebuild_with_empty_text_stops(queue):
    queue.rebuild("Hola.", "es-ES")
    queue.play()
    queue.rebuild("", "es-ES")
    assert queue.segments == []
    assert queue.status is PlaybackStatus.STOPPED
    queue.play()
    queue.forward()


def test_pause_resume_and_stop(queue, synth):
    queue.rebuild("Hola. Adiós.", "es-ES")
    queue.pause()
    assert synth.calls == []

    queue.play()
    queue.pause()
    assert queue.is_paused
    queue.play()
    assert synth.calls[-1] == ("resume",)

    queue.stop()
    queue.play()
    assert synth.calls[-1][0:2] == ("speak", "Hola")
    assert queue.statuses == [
        PlaybackStatus.PLAYING,
        PlaybackStatus.PAUSED,
        PlaybackStatus.PLAYING,
        PlaybackStatus.STOPPED,
        PlaybackStatus.PLAYING,
    ]


def test_speak_word_uses_word_rate(queue, synth):
    queue.rebuild("Buenos días.", "es-ES")
    queue.speak_word(" días ")
    queue.speak_word("  ")
    assert synth.spoken == [("speak", "días", "es-ES", 0.25, False)]


def test_shorter_phrase_after_index_three(queue):
    queue.rebuild("Uno. Dos. Tres. Cuatro. Cinco.", "es-ES")
    for _ in range(3):
        queue.forward()
    assert queue.index == 3
    queue.rebuild("No punctuation here", "es-ES")
    assert queue.segments == ["No punctuation here"]
    assert queue.index == 0
