"""Tour diagnostics log capture.

Stale signals, ignored commands, unresolved targets and persistence failures
never surface as exceptions in the host; they are only logged. Tour modules
attach the session context to those records through ``extra``::

    _log.debug("...", extra={"tour": "first_consultation", "step_index": 3,
                             "signal": "demo_loaded", "outcome": "stale_signal"})

``TourLogCapture`` keeps the most recent records of the ``tourguide`` logger
tree with those fields lifted out, so a support panel can ask "what did the
tour ignore on step 3" and a host can dump a JSON Lines diagnostics file
(``TourSession.export_diagnostics``). Each captured record is republished on
the event bus as ``TourEvent.LOG_RECORD_ADDED``.
"""

from __future__ import annotations

import json
import logging
from collections import deque
from dataclasses import asdict, dataclass
from pathlib import Path
from threading import RLock
from typing import Any, Deque, Dict, List, Mapping, Optional

from .event_bus import EventBus, TourEvent

__all__ = ["TOUR_FIELDS", "TourLogEntry", "TourLogCapture", "ROOT_LOGGER_NAME"]

ROOT_LOGGER_NAME = "tourguide"
TOUR_FIELDS = ("tour", "step_index", "step", "signal", "outcome")


@dataclass(frozen=True)
class TourLogEntry:
    level: str
    levelno: int
    logger: str
    message: str
    created: float
    tour: Optional[str] = None
    step_index: Optional[int] = None
    step: Optional[str] = None
    signal: Optional[str] = None
    outcome: Optional[str] = None

    @classmethod
    def from_record(cls, record: logging.LogRecord) -> "TourLogEntry":
        return cls(
            level=record.levelname,
            levelno=record.levelno,
            logger=record.name,
            message=record.getMessage(),
            created=record.created,
            **{name: getattr(record, name, None) for name in TOUR_FIELDS},
        )

    def as_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop("levelno")
        return {k: v for k, v in data.items() if v is not None}


class _CaptureHandler(logging.Handler):
    def __init__(self, capture: "TourLogCapture") -> None:
        super().__init__(level=logging.DEBUG)
        self._capture = capture

    def emit(self, record: logging.LogRecord) -> None:
        self._capture._add(TourLogEntry.from_record(record))


class TourLogCapture:
    """Ring buffer of recent tour log records."""

    def __init__(
        self,
        capacity: int = 200,
        *,
        event_bus: Optional[EventBus] = None,
        logger_name: str = ROOT_LOGGER_NAME,
    ) -> None:
        self._lock = RLock()
        self._entries: Deque[TourLogEntry] = deque(maxlen=capacity)
        self._handler = _CaptureHandler(self)
        self._bus = event_bus
        self._logger = logging.getLogger(logger_name)
        self._saved_level: Optional[int] = None

    @property
    def attached(self) -> bool:
        return self._saved_level is not None

    def attach(self) -> None:
        if self.attached:
            return
        self._saved_level = self._logger.level
        self._logger.addHandler(self._handler)
        # DEBUG carries the ignored-signal records
        if self._logger.getEffectiveLevel() > logging.DEBUG:
            self._logger.setLevel(logging.DEBUG)

    def detach(self) -> None:
        if self._saved_level is None:
            return
        self._logger.removeHandler(self._handler)
        self._logger.setLevel(self._saved_level)
        self._saved_level = None

    def _add(self, entry: TourLogEntry) -> None:
        with self._lock:
            self._entries.append(entry)
        if self._bus is not None:
            self._bus.publish(TourEvent.LOG_RECORD_ADDED, entry.as_dict())

    # Query ------------------------------------------------------------
    def entries(
        self,
        *,
        tour: Optional[str] = None,
        step_index: Optional[int] = None,
        min_level: int = logging.NOTSET,
    ) -> List[TourLogEntry]:
        with self._lock:
            data = list(self._entries)
        return [
            e
            for e in data
            if e.levelno >= min_level
            and (tour is None or e.tour == tour)
            and (step_index is None or e.step_index == step_index)
        ]

    def ignored_signals(self, tour: Optional[str] = None) -> List[TourLogEntry]:
        """Signals the tour dropped, with the step they arrived on and why."""
        return [e for e in self.entries(tour=tour) if e.signal is not None and e.outcome is not None]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def export_jsonl(self, path: str | Path, *, snapshot: Optional[Mapping[str, Any]] = None) -> int:
        """Write a diagnostics dump; returns the number of log lines written.

        The optional ``snapshot`` (controller state) becomes the first line.
        """
        entries = self.entries()
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("w", encoding="utf-8") as fh:
            if snapshot is not None:
                fh.write(json.dumps({"kind": "snapshot", **snapshot}, sort_keys=True) + "\n")
            for entry in entries:
                fh.write(json.dumps({"kind": "log", **entry.as_dict()}, sort_keys=True) + "\n")
        return len(entries)
