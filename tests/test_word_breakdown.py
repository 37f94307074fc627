from word_breakdown import build_breakdown, tokenize_with_spans


def test_spans_point_into_display_text():
    text = "¿Dónde está?"
    tokens = tokenize_with_spans(text)
    assert [t[0] for t in tokens] == ["Dónde", "está"]
    for word, start, end in tokens:
        assert text[start:end] == word


def test_missing_word_is_marked_not_heard():
    bd = build_breakdown("Where is the bathroom?", "where is bathroom")
    assert [w.heard for w in bd.words] == [True, True, False, True]
    assert bd.missed == ["the"]
    assert bd.extra_words == []
    assert (bd.words[0].start, bd.words[0].end) == (0, 5)


def test_substitution_records_what_was_heard():
    bd = build_breakdown("the cat sat", "the bat sat")
    cat = bd.words[1]
    assert cat.text == "cat"
    assert not cat.heard
    assert cat.heard_as == "bat"


def test_extra_words_are_collected():
    bd = build_breakdown("hello", "hello there")
    assert bd.missed == []
    assert bd.extra_words == ["there"]


def test_nothing_heard_misses_every_word():
    bd = build_breakdown("buenos días")
    assert bd.missed == ["buenos", "días"]
