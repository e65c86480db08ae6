"""Deferred-callback scheduling for the tour engine.

The controller and target resolver never touch timers directly; they ask a
``Scheduler`` to run a callback later. ``QtScheduler`` uses single-shot
``QTimer`` objects on the GUI thread. ``ManualScheduler`` keeps a virtual clock
for headless tests: nothing fires until ``advance`` is called.

Cancellation is by identity check in the callback (generation tokens), not by
timer handles; ``cancel_all`` only exists so a controller being torn down
stops its pending timers early.
"""

from __future__ import annotations

import heapq
import itertools
from typing import Callable, List, Protocol, Tuple

from PyQt6.QtCore import QObject, QTimer

__all__ = ["Scheduler", "QtScheduler", "ManualScheduler"]


class Scheduler(Protocol):
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> None: ...  # pragma: no cover

    def cancel_all(self) -> None: ...  # pragma: no cover


class QtScheduler(QObject):
    """Single-shot QTimer scheduler bound to the Qt event loop."""

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._timers: List[QTimer] = []

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> None:
        timer = QTimer(self)
        timer.setSingleShot(True)

        def _fire() -> None:
            if timer in self._timers:
                self._timers.remove(timer)
            timer.deleteLater()
            callback()

        timer.timeout.connect(_fire)  # type: ignore[attr-defined]
        self._timers.append(timer)
        timer.start(max(0, int(delay_ms)))

    def cancel_all(self) -> None:
        for timer in self._timers:
            timer.stop()
            timer.deleteLater()
        self._timers.clear()

    def pending_count(self) -> int:
        return len(self._timers)


class ManualScheduler:
    """Virtual-clock scheduler; callbacks run only inside ``advance``."""

    def __init__(self) -> None:
        self._now = 0
        self._seq = itertools.count()
        self._queue: List[Tuple[int, int, Callable[[], None]]] = []

    @property
    def now(self) -> int:
        return self._now

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> None:
        due = self._now + max(0, int(delay_ms))
        heapq.heappush(self._queue, (due, next(self._seq), callback))

    def cancel_all(self) -> None:
        self._queue.clear()

    def pending_count(self) -> int:
        return len(self._queue)

    def advance(self, ms: int) -> int:
        """Move the clock forward, running due callbacks in order.

        Callbacks scheduled while advancing run in the same call when they fall
        due inside the window. Returns the number of callbacks run.
        """
        target = self._now + max(0, int(ms))
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, callback = heapq.heappop(self._queue)
            self._now = due
            callback()
            ran += 1
        self._now = target
        return ran

    def run_all(self) -> int:
        ran = 0
        while self._queue:
            ran += self.advance(self._queue[0][0] - self._now)
        return ran
