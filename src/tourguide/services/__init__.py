"""Service layer exports.

Responsibilities:
 - Pure tour state machine (`tour_state`)
 - Host-facing controller and scheduling (`TourController`, schedulers)
 - Target resolution with retry (`TargetResolver`)
 - EventBus publish/subscribe and log capture
"""

from .event_bus import EventBus, TourEvent  # noqa: F401
from .scheduler import ManualScheduler, QtScheduler  # noqa: F401
from .tour_controller import TourController  # noqa: F401
from .target_resolver import (  # noqa: F401
    QtWidgetLookup,
    ResolvedTarget,
    StaticLookup,
    TargetResolver,
)

__all__ = [
    "EventBus",
    "TourEvent",
    "ManualScheduler",
    "QtScheduler",
    "TourController",
    "QtWidgetLookup",
    "ResolvedTarget",
    "StaticLookup",
    "TargetResolver",
]
