from datetime import datetime, timedelta

import pytest

from attempt_history import (
    Attempt,
    AttemptHistory,
    add_attempt,
    delete_attempt,
    get_recent_attempts,
    get_session,
    summarize,
)
from languages import Language
from phrases import Phrase
from utterance_scorer import score_utterance


@pytest.fixture
def db():
    session = get_session(":memory:")
    yield session
    session.close()


def _add(db, percent, language="es", when=None):
    return add_attempt(
        db,
        language=language,
        source_text="Thank you.",
        target_text="Gracias.",
        recognized="gracias",
        percent=percent,
        tier="excellent",
        when=when,
    )


def test_recent_attempts_newest_first(db):
    now = datetime(2024, 5, 1, 12, 0, 0)
    _add(db, 40, when=now - timedelta(minutes=2))
    _add(db, 90, when=now)
    _add(db, 70, when=now - timedelta(minutes=1))

    rows = get_recent_attempts(db)
    assert [r.percent for r in rows] == [90, 70, 40]
    assert len(get_recent_attempts(db, limit=1)) == 1


def test_filter_by_language(db):
    _add(db, 50, language="es")
    _add(db, 80, language="fr")
    assert [r.language for r in get_recent_attempts(db, language="fr")] == ["fr"]


def test_summary(db):
    now = datetime.now()
    _add(db, 50, when=now)
    _add(db, 75, when=now)
    _add(db, 100, when=now - timedelta(days=60))

    recent = summarize(db)
    assert (recent.count, recent.average, recent.best) == (2, 62.5, 75)

    all_time = summarize(db, days=None)
    assert all_time.count == 3
    assert all_time.best == 100


def test_empty_summary(db):
    summary = summarize(db)
    assert summary.count == 0
    assert summary.average is None
    assert summary.best is None


def test_delete_attempt(db):
    row = _add(db, 60)
    assert delete_attempt(db, row.id)
    assert not delete_attempt(db, row.id)
    assert db.query(Attempt).count() == 0


def test_recorder_stores_phrase_and_score():
    history = AttemptHistory.open(":memory:")
    phrase = Phrase("Good night", "Buenas noches", Language.ENGLISH, Language.SPANISH, custom=True)
    result = score_utterance("Buenas noches", "buenas noches")

    row = history.record(phrase, "buenas noches", result, attempt_number=2)
    assert row.custom
    assert row.tier == "excellent"
    assert row.wer == 0.0
    assert row.attempt_number == 2
    history.close()


def test_history_opened_from_settings(tmp_path):
    path = tmp_path / "history.db"
    history = AttemptHistory.from_settings({"history_db": str(path)})
    _add(history.db, 80)
    history.close()
    assert path.exists()
