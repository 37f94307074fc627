import os
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import (
    create_engine, Column, Integer, String, Float, Boolean, func
)
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"


class Attempt(Base):
    __tablename__ = "attempts"
    id             = Column(Integer, primary_key=True)
    timestamp      = Column(String,  nullable=False)
    language       = Column(String,  nullable=False)
    source_text    = Column(String,  nullable=False)
    target_text    = Column(String,  nullable=False)
    recognized     = Column(String,  nullable=False)
    percent        = Column(Integer, nullable=False)
    tier           = Column(String,  nullable=False)
    # jiwer word error rate; empty when either side had no words
    wer            = Column(Float,   nullable=True)
    attempt_number = Column(Integer, nullable=False, default=1)
    custom         = Column(Boolean, nullable=False, default=False)


@dataclass(frozen=True)
class ProgressSummary:
    count: int
    average: Optional[float]
    best: Optional[int]


def get_engine(db_path: str = "practice_history.db"):
    if db_path == ":memory:":
        return create_engine("sqlite://", echo=False)
    full = os.path.abspath(db_path)
    return create_engine(f"sqlite:///{full}", echo=False)


def init_db(engine=None):
    if engine is None:
        engine = get_engine()
    Base.metadata.create_all(engine)


def get_session(db_path: str = "practice_history.db"):
    engine = get_engine(db_path)
    init_db(engine)
    return sessionmaker(bind=engine)()


def add_attempt(
    db,
    language: str,
    source_text: str,
    target_text: str,
    recognized: str,
    percent: int,
    tier: str,
    wer: float | None = None,
    attempt_number: int = 1,
    custom: bool = False,
    when: datetime | None = None,
):
    ts = (when or datetime.now()).strftime(TIMESTAMP_FORMAT)
    row = Attempt(
        timestamp=ts,
        language=language,
        source_text=source_text,
        target_text=target_text,
        recognized=recognized,
        percent=int(percent),
        tier=tier,
        wer=wer,
        attempt_number=int(attempt_number),
        custom=bool(custom),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def get_recent_attempts(db, limit: int = 50, language: str | None = None):
    q = db.query(Attempt)
    if language:
        q = q.filter(Attempt.language == language)
    return q.order_by(Attempt.timestamp.desc(), Attempt.id.desc()).limit(limit).all()


def delete_attempt(db, attempt_id: int) -> bool:
    row = db.get(Attempt, attempt_id)
    if not row:
        return False
    db.delete(row)
    db.commit()
    return True


def summarize(db, since: datetime | None = None, days: int | None = 30,
              language: str | None = None) -> ProgressSummary:
    """
    Count, average and best percent of attempts since a point in time.
    With since=None the window is the last `days` days; days=None means all time.
    """
    if since is None and days is not None:
        since = datetime.now() - timedelta(days=days)
    q = db.query(func.count(Attempt.id), func.avg(Attempt.percent), func.max(Attempt.percent))
    if since is not None:
        # ISO timestamps sort lexically
        q = q.filter(Attempt.timestamp >= since.strftime(TIMESTAMP_FORMAT))
    if language:
        q = q.filter(Attempt.language == language)
    count, avg, best = q.one()
    return ProgressSummary(
        count=int(count or 0),
        average=None if avg is None else round(float(avg), 1),
        best=None if best is None else int(best),
    )


class AttemptHistory:
    """Records scored attempts for a practice session."""

    def __init__(self, db):
        self.db = db

    @classmethod
    def open(cls, db_path: str = "practice_history.db") -> "AttemptHistory":
        return cls(get_session(db_path))

    @classmethod
    def from_settings(cls, settings: dict) -> "AttemptHistory":
        return cls.open(settings.get("history_db", "practice_history.db"))

    def record(self, phrase, recognized: str, result, attempt_number: int):
        return add_attempt(
            self.db,
            language=phrase.target_language.translation_code,
            source_text=phrase.source_text,
            target_text=phrase.display_target,
            recognized=recognized,
            percent=result.percent,
            tier=result.tier.value,
            wer=result.word_error_rate,
            attempt_number=attempt_number,
            custom=phrase.custom,
        )

    def close(self) -> None:
        self.db.close()
