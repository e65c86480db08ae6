"""Target resolution for tour steps.

A step names its anchor by a stable identifier; the live element may not be
mounted yet when the step becomes current (a dialog still animating open, a
view still switching). Resolution therefore runs as a short retry cycle:

1. ``watch(step)`` starts a new cycle. The first lookup waits
   ``resolve_delay_ms``; misses are retried every ``retry_interval_ms`` up to
   ``max_resolve_attempts`` lookups.
2. ``on_viewport_resized()`` re-resolves the current step immediately.
3. ``cancel()`` (tour ended) or a newer ``watch`` makes every callback of the
   old cycle a no-op via the generation check.

While the anchor is missing the listener receives ``ResolvedTarget`` with
``awaiting=True`` and the overlay renders nothing. ``center`` steps need no
anchor and resolve at once.

Lookups are host specific and sit behind ``TargetLookup``:
``QtWidgetLookup`` finds a descendant ``QWidget`` by ``objectName`` and scrolls
enclosing ``QScrollArea`` containers before capturing geometry;
``StaticLookup`` serves a plain mapping (headless hosts, tests).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol

from PyQt6.QtCore import QEvent, QObject, QPoint, QSize
from PyQt6.QtWidgets import QScrollArea, QWidget

from ..app.settings import TourSettings
from ..design.onboarding_tour import TourStep
from ..design.placement import Rect
from .scheduler import Scheduler

__all__ = [
    "TargetLookup",
    "StaticLookup",
    "QtWidgetLookup",
    "ResolvedTarget",
    "TargetResolver",
    "ViewportWatcher",
]

_log = logging.getLogger(__name__)


class TargetLookup(Protocol):
    def resolve(self, target_id: str) -> Optional[Rect]: ...  # pragma: no cover - structural


class StaticLookup:
    """Mapping-backed lookup; ``set``/``remove`` simulate mount and unmount."""

    def __init__(self, rects: Optional[Dict[str, Rect]] = None) -> None:
        self._rects: Dict[str, Rect] = dict(rects or {})
        self.calls: List[str] = []

    def set(self, target_id: str, rect: Rect) -> None:
        self._rects[target_id] = rect

    def remove(self, target_id: str) -> None:
        self._rects.pop(target_id, None)

    def resolve(self, target_id: str) -> Optional[Rect]:
        self.calls.append(target_id)
        return self._rects.get(target_id)


class QtWidgetLookup:
    """Resolve targets to widgets under ``root`` by ``objectName``.

    Geometry is reported in ``root`` coordinates, which is what an overlay
    parented to ``root`` paints in. Only widgets inside ``root``'s own window
    count: the overlay is a child of that window and cannot paint over a
    separate top-level ``QDialog``, so panels a step anchors to must be
    in-window widgets. A named widget in another window resolves to ``None``.
    """

    def __init__(self, root: QWidget) -> None:
        self._root = root

    def find_widget(self, target_id: str) -> Optional[QWidget]:
        widget = self._root.findChild(QWidget, target_id)
        if widget is None or not widget.isVisible():
            return None
        if widget.window() is not self._root.window():
            return None
        return widget

    def _scroll_into_view(self, widget: QWidget) -> None:
        parent = widget.parentWidget()
        while parent is not None:
            if isinstance(parent, QScrollArea):
                parent.ensureWidgetVisible(widget)
            parent = parent.parentWidget()

    def resolve(self, target_id: str) -> Optional[Rect]:
        widget = self.find_widget(target_id)
        if widget is None:
            return None
        self._scroll_into_view(widget)
        top_left = self._root.mapFromGlobal(widget.mapToGlobal(QPoint(0, 0)))
        rect = Rect(
            top=top_left.y(),
            left=top_left.x(),
            width=widget.width(),
            height=widget.height(),
        )
        return None if rect.is_empty() else rect


@dataclass(frozen=True)
class ResolvedTarget:
    step_id: str
    rect: Optional[Rect]
    attempts: int
    awaiting: bool  # True: anchor not (yet) found, render nothing


class TargetResolver:
    """Retrying, cancellable resolution of the current step's anchor."""

    def __init__(
        self,
        lookup: TargetLookup,
        scheduler: Scheduler,
        *,
        settings: Optional[TourSettings] = None,
        listener: Optional[Callable[[ResolvedTarget], None]] = None,
    ) -> None:
        self._lookup = lookup
        self._scheduler = scheduler
        self._settings = settings or TourSettings.instance
        self._listener = listener
        self._generation = 0
        self._step: Optional[TourStep] = None
        self._current: Optional[ResolvedTarget] = None
        self._retry_pending = False

    @property
    def current(self) -> Optional[ResolvedTarget]:
        return self._current

    @property
    def step(self) -> Optional[TourStep]:
        return self._step

    def set_listener(self, listener: Optional[Callable[[ResolvedTarget], None]]) -> None:
        self._listener = listener

    # Control ----------------------------------------------------------
    def watch(self, step: Optional[TourStep]) -> None:
        self._generation += 1
        self._step = step
        self._retry_pending = False
        if step is None:
            self._current = None
            return
        if not step.is_anchored:
            self._deliver(ResolvedTarget(step.id, None, 0, awaiting=False))
            return
        self._deliver(ResolvedTarget(step.id, None, 0, awaiting=True))
        self._schedule_attempt(self._generation, 1, self._settings.resolve_delay_ms)

    def cancel(self) -> None:
        self._generation += 1
        self._step = None
        self._current = None
        self._retry_pending = False

    def on_viewport_resized(self) -> None:
        step = self._step
        if step is None:
            return
        if not step.is_anchored:
            self._deliver(ResolvedTarget(step.id, None, 0, awaiting=False))
            return
        rect = self._safe_lookup(step.target_id)
        if rect is not None:
            self._deliver(ResolvedTarget(step.id, rect, 1, awaiting=False))
            return
        if not self._retry_pending:
            # anchor vanished (or never appeared); start a fresh retry cycle
            self._generation += 1
            self._deliver(ResolvedTarget(step.id, None, 1, awaiting=True))
            self._schedule_attempt(self._generation, 2, self._settings.retry_interval_ms)

    # Internal ---------------------------------------------------------
    def _schedule_attempt(self, generation: int, attempt: int, delay_ms: int) -> None:
        self._retry_pending = True
        self._scheduler.call_later(delay_ms, lambda: self._attempt(generation, attempt))

    def _attempt(self, generation: int, attempt: int) -> None:
        if generation != self._generation or self._step is None:
            return
        self._retry_pending = False
        step = self._step
        rect = self._safe_lookup(step.target_id)
        if rect is not None:
            self._deliver(ResolvedTarget(step.id, rect, attempt, awaiting=False))
            return
        if attempt < self._settings.max_resolve_attempts:
            self._schedule_attempt(generation, attempt + 1, self._settings.retry_interval_ms)
            return
        _log.info(
            "Target %r for step %s unresolved after %d attempts",
            step.target_id,
            step.id,
            attempt,
            extra={"step": step.id, "outcome": "target_unresolved"},
        )
        self._deliver(ResolvedTarget(step.id, None, attempt, awaiting=True))

    def _safe_lookup(self, target_id: str) -> Optional[Rect]:
        try:
            rect = self._lookup.resolve(target_id)
        except Exception as exc:  # noqa: BLE001 - a broken lookup means "not found"
            _log.debug("Lookup for %r failed: %s", target_id, exc)
            return None
        if rect is None or rect.is_empty():
            return None
        return rect

    def _deliver(self, target: ResolvedTarget) -> None:
        self._current = target
        if self._listener is not None:
            self._listener(target)


class ViewportWatcher(QObject):
    """Forward resize events of a host window to a callback."""

    def __init__(self, window: QWidget, callback: Callable[[QSize], None]) -> None:
        super().__init__(window)
        self._window = window
        self._callback = callback
        window.installEventFilter(self)

    def detach(self) -> None:
        self._window.removeEventFilter(self)

    def eventFilter(self, obj: QObject, event: QEvent) -> bool:  # noqa: N802
        if obj is self._window and event.type() == QEvent.Type.Resize:
            self._callback(self._window.size())
        return super().eventFilter(obj, event)
