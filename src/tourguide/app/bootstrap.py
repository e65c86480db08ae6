"""Tour bootstrap helpers.

``attach_tour`` is the single entry point a host window needs: it opens the
completion store, builds the controller, resolver and overlay, and starts the
tour unless the user already finished or skipped it.

Usage::

    session = attach_tour(main_window, host_reset=main_window.reset_to_dashboard)
    details_panel.shown.connect(lambda: session.controller.report_screen_active("patient_details"))
    sidebar.restart_tour.connect(session.controller.restart)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from PyQt6.QtWidgets import QWidget

from ..design.onboarding_tour import TourDefinition
from ..design.tour_presets import ensure_default_tours
from ..services.event_bus import EventBus
from ..services.logging_service import TourLogCapture
from ..services.scheduler import QtScheduler, Scheduler
from ..services.target_resolver import QtWidgetLookup, TargetLookup, TargetResolver
from ..services.tour_controller import TourController
from ..views.tour_overlay import TourOverlay
from .completion_store import CompletionStore, JsonCompletionStore
from .settings import TourSettings

__all__ = ["TourSession", "attach_tour", "open_completion_store"]

_log = logging.getLogger(__name__)


@dataclass
class TourSession:
    controller: TourController
    resolver: TargetResolver
    overlay: TourOverlay
    store: CompletionStore
    logs: Optional[TourLogCapture] = None

    def export_diagnostics(self, path: str | Path) -> int:
        """Dump the controller snapshot and captured tour log as JSON Lines."""
        if self.logs is None:
            raise RuntimeError("tour log capture is off; pass log_capacity to attach_tour")
        return self.logs.export_jsonl(path, snapshot=self.controller.snapshot())

    def close(self) -> None:
        self.overlay.detach()
        self.controller.shutdown()
        if self.logs is not None:
            self.logs.detach()


def open_completion_store(
    definition: TourDefinition, settings: Optional[TourSettings] = None
) -> JsonCompletionStore:
    settings = settings or TourSettings.instance
    return JsonCompletionStore(settings.storage_dir, definition.completion_key)


def attach_tour(
    host: QWidget,
    definition: Optional[TourDefinition] = None,
    *,
    settings: Optional[TourSettings] = None,
    store: Optional[CompletionStore] = None,
    lookup: Optional[TargetLookup] = None,
    scheduler: Optional[Scheduler] = None,
    event_bus: Optional[EventBus] = None,
    host_reset: Optional[Callable[[], None]] = None,
    autostart: bool = True,
    log_capacity: Optional[int] = None,
) -> TourSession:
    settings = settings or TourSettings.instance
    logs: Optional[TourLogCapture] = None
    if log_capacity:
        logs = TourLogCapture(log_capacity, event_bus=event_bus)
        logs.attach()
    definition = definition or ensure_default_tours()
    store = store if store is not None else open_completion_store(definition, settings)
    scheduler = scheduler if scheduler is not None else QtScheduler(host)
    controller = TourController(
        definition,
        store,
        scheduler=scheduler,
        event_bus=event_bus,
        host_reset=host_reset,
        parent=host,
    )
    resolver = TargetResolver(lookup or QtWidgetLookup(host), scheduler, settings=settings)
    overlay = TourOverlay(host, controller, resolver, settings=settings)
    if autostart and not controller.start():
        _log.debug("Tour %s not started automatically (completed=%s)", definition.id, controller.completed)
    return TourSession(
        controller=controller, resolver=resolver, overlay=overlay, store=store, logs=logs
    )
