"""Synchronous publish/subscribe bus for tour notifications.

The tour controller publishes lifecycle events here so host panels (progress
badges, analytics hooks, debug views) can follow the tour without holding a
reference to the controller.

Goals:
 - No Qt dependency; handlers run on the publishing thread
 - One failing handler never breaks the publish cycle (failures are kept in
   ``errors``)
 - One-shot (once) subscriptions and cancellable handles
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from threading import RLock
from time import perf_counter
from typing import Any, Dict, List, Protocol

__all__ = [
    "TourEvent",
    "Event",
    "EventBus",
    "EventHandler",
    "Subscription",
]


class TourEvent(str, Enum):
    TOUR_STARTED = "tour_started"
    TOUR_STEP_CHANGED = "tour_step_changed"
    TOUR_COMPLETED = "tour_completed"
    TOUR_SKIPPED = "tour_skipped"
    TOUR_SIGNAL_IGNORED = "tour_signal_ignored"
    TOUR_TARGET_RESOLVED = "tour_target_resolved"
    LOG_RECORD_ADDED = "log_record_added"


@dataclass
class Event:
    name: str  # TourEvent value or custom string
    payload: Any
    timestamp: float


class EventHandler(Protocol):
    def __call__(self, event: Event) -> None: ...  # pragma: no cover - structural


@dataclass
class Subscription:
    event: str
    handler: EventHandler
    once: bool
    active: bool = True

    def cancel(self) -> None:
        self.active = False


def _key(name: str | TourEvent) -> str:
    return name.value if isinstance(name, TourEvent) else name


class EventBus:
    """Synchronous dispatcher.

    Subscriber lists are guarded by a re-entrant lock, but handlers run with
    the lock released (snapshot first) so a handler may subscribe, unsubscribe
    or publish again.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._subs: Dict[str, List[Subscription]] = {}
        self._errors: List[tuple[Event, BaseException]] = []

    # Subscriptions ----------------------------------------------------
    def subscribe(
        self, name: str | TourEvent, handler: EventHandler, *, once: bool = False
    ) -> Subscription:
        sub = Subscription(event=_key(name), handler=handler, once=once)
        with self._lock:
            self._subs.setdefault(sub.event, []).append(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            bucket = self._subs.get(sub.event)
            if bucket and sub in bucket:
                bucket.remove(sub)
                if not bucket:
                    self._subs.pop(sub.event, None)
        sub.active = False

    # Publishing -------------------------------------------------------
    def publish(self, name: str | TourEvent, payload: Any = None) -> Event:
        key = _key(name)
        evt = Event(name=key, payload=payload, timestamp=perf_counter())
        with self._lock:
            subs = list(self._subs.get(key, ()))
        spent: List[Subscription] = []
        for sub in subs:
            if not sub.active:
                continue
            try:
                sub.handler(evt)
            except Exception as exc:  # noqa: BLE001 - isolate handler failures
                self._errors.append((evt, exc))
            else:
                if sub.once:
                    spent.append(sub)
        for sub in spent:
            self.unsubscribe(sub)
        return evt

    # Introspection ----------------------------------------------------
    def subscriber_count(self, name: str | TourEvent) -> int:
        with self._lock:
            return len(self._subs.get(_key(name), ()))

    @property
    def errors(self) -> list[tuple[Event, BaseException]]:
        with self._lock:
            return list(self._errors)
