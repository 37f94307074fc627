from __future__ import annotations

import logging
from typing import Callable, Optional, Set

from PyQt5 import QtCore

logger = logging.getLogger(__name__)


class TimerHandle:
    """
    Cancellation token returned by a scheduler.
    A handle fires at most once; cancel() is idempotent and a cancelled
    handle never runs its callback.
    """

    def __init__(self, callback: Callable[[], None]):
        self._callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        self._active = False

    def fire(self) -> None:
        if not self._active:
            return
        self._active = False
        self._callback()


class QtTimerHandle(TimerHandle):
    def __init__(self, callback: Callable[[], None], timer: QtCore.QTimer, owner: "QtScheduler"):
        super().__init__(callback)
        self._timer = timer
        self._owner = owner

    def cancel(self) -> None:
        super().cancel()
        self._release()

    def fire(self) -> None:
        self._release()
        super().fire()

    def _release(self) -> None:
        if self._timer is None:
            return
        self._timer.stop()
        self._timer.deleteLater()
        self._timer = None
        self._owner._live.discard(self)


class QtScheduler:
    """
    Schedules single-shot callbacks on the Qt event loop.
    Live handles are kept here so their QTimers are not collected
    while pending.
    """

    def __init__(self, parent: Optional[QtCore.QObject] = None):
        self._parent = parent
        self._live: Set[QtTimerHandle] = set()

    def schedule(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        timer = QtCore.QTimer(self._parent)
        timer.setSingleShot(True)
        timer.setInterval(max(0, int(round(float(delay_s) * 1000))))
        handle = QtTimerHandle(callback, timer, self)
        timer.timeout.connect(handle.fire)
        self._live.add(handle)
        timer.start()
        return handle

    def cancel_all(self) -> None:
        for handle in list(self._live):
            handle.cancel()

    @property
    def pending(self) -> int:
        return len(self._live)
