from __future__ import annotations

import logging
from datetime import date
from typing import Callable

logger = logging.getLogger(__name__)


DEFAULT_MAX_PER_DAY = 150


class DailyLimit:
    """Daily translation allowance. Storage and rollover belong to the implementation."""

    max_per_day: int = DEFAULT_MAX_PER_DAY

    def consume_one_if_available(self) -> bool:
        raise NotImplementedError

    def remaining_today(self) -> int:
        raise NotImplementedError


class InMemoryDailyLimit(DailyLimit):
    """
    Counter that resets when today() returns a different day.
    Nothing is persisted; a restart starts a fresh allowance.
    """

    def __init__(self, max_per_day: int = DEFAULT_MAX_PER_DAY,
                 today: Callable[[], date] = date.today):
        self.max_per_day = int(max_per_day)
        self._today = today
        self._day = None
        self._count = 0

    def _reset_if_new_day(self) -> None:
        today = self._today().isoformat()
        if self._day == today:
            return
        self._day = today
        self._count = 0

    def consume_one_if_available(self) -> bool:
        self._reset_if_new_day()
        if self._count >= self.max_per_day:
            return False
        self._count += 1
        return True

    def remaining_today(self) -> int:
        self._reset_if_new_day()
        return max(0, self.max_per_day - self._count)


class QuotaGate:
    """Admission control in front of every user-initiated translation."""

    def __init__(self, limit: DailyLimit):
        self._limit = limit

    def admit(self) -> bool:
        allowed = bool(self._limit.consume_one_if_available())
        if not allowed:
            logger.info("Daily translation limit of %s reached", self.max_per_day)
        return allowed

    @property
    def remaining(self) -> int:
        return int(self._limit.remaining_today())

    @property
    def max_per_day(self) -> int:
        return int(getattr(self._limit, "max_per_day", DEFAULT_MAX_PER_DAY))

    @property
    def limit_message(self) -> str:
        return (
            f"You've reached today's free limit of {self.max_per_day} translations "
            "on this device. Please try again tomorrow."
        )


def gate_from_settings(settings: dict, today: Callable[[], date] = date.today) -> QuotaGate:
    """In-memory gate sized by the `daily_translation_limit` setting."""
    limit = int(settings.get("daily_translation_limit", DEFAULT_MAX_PER_DAY))
    return QuotaGate(InMemoryDailyLimit(max_per_day=limit, today=today))
