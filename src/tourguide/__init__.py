"""Guided onboarding tour engine for PyQt6 applications.

Curated surface for host applications:

- ``attach_tour`` wires a tour onto a host window (store, controller,
  resolver, overlay) and starts it on first run.
- ``TourController`` is the host-facing command/query/signal bridge.
- ``design`` holds the step catalog, built-in tours and placement math.

Importing the package does not create a QApplication.
"""

from __future__ import annotations

from .design.onboarding_tour import Placement, TourDefinition, TourStep  # noqa: F401
from .services.event_bus import EventBus, TourEvent  # noqa: F401
from .services.tour_controller import TourController  # noqa: F401
from .app.bootstrap import TourSession, attach_tour  # noqa: F401
from . import design  # noqa: F401

__version__ = "0.1.0"

__all__ = [
    "Placement",
    "TourDefinition",
    "TourStep",
    "EventBus",
    "TourEvent",
    "TourController",
    "TourSession",
    "attach_tour",
    "design",
]
